"""
FastAPI dependency injection for database session, current user and the
recommendation pipeline.
"""

import logging
from datetime import timedelta
from typing import Generator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from cinemate.api import config
from cinemate.api.security import decode_access_token
from cinemate.clients.chat import ChatClient
from cinemate.clients.tmdb import TMDBClient
from cinemate.core.errors import Unauthenticated
from cinemate.core.pipeline import (
    BulkRecommendationPipeline,
    CandidateSourcer,
    InFlightRegistry,
    RecommendationStore,
    SchemaEnforcer,
    TitleResolver,
)
from cinemate.core.rate_limiter import RateLimiter
from cinemate.database import crud
from cinemate.database.connection import DatabaseManager, get_db_manager
from cinemate.database.models import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_database_manager() -> DatabaseManager:
    """Get the global DatabaseManager for the configured path."""
    db_path = config.get_database_path()
    if not db_path.strip():
        return get_db_manager()  # use connection default
    return get_db_manager(db_path=db_path)


def get_db() -> Generator[Session, None, None]:
    """Yield database session for FastAPI Depends()."""
    with get_database_manager().session_scope() as session:
        yield session


def _user_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: Session,
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    claims = decode_access_token(credentials.credentials)
    if not claims:
        return None
    try:
        user_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        return None
    return crud.get_user(db, user_id)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Resolve the bearer token to a user, or None."""
    return _user_from_credentials(credentials, db)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """
    Raises:
        Unauthenticated: No token, an invalid or expired token, or a deleted user
    """
    if user is None:
        raise Unauthenticated()
    return user


# Process-wide singletons
_tmdb_limiter: Optional[RateLimiter] = None
_tmdb_client: Optional[TMDBClient] = None
_search_client: Optional[ChatClient] = None
_generation_client: Optional[ChatClient] = None
_registry: Optional[InFlightRegistry] = None
_pipeline: Optional[BulkRecommendationPipeline] = None


def get_tmdb_limiter() -> RateLimiter:
    """Get or create the TMDB rate limiter shared by every request."""
    global _tmdb_limiter
    if _tmdb_limiter is None:
        _tmdb_limiter = RateLimiter(
            max_requests=config.get_tmdb_max_requests(),
            window_seconds=config.get_tmdb_window_seconds(),
            name="tmdb",
        )
    return _tmdb_limiter


def get_tmdb_client() -> TMDBClient:
    global _tmdb_client
    if _tmdb_client is None:
        _tmdb_client = TMDBClient(
            api_key=config.get_tmdb_api_key(),
            limiter=get_tmdb_limiter(),
            base_url=config.get_tmdb_base_url(),
            timeout=config.get_tmdb_timeout_seconds(),
        )
        if not _tmdb_client.is_configured:
            logger.warning("TMDB_API_KEY not set; recommended titles get hashed ids")
    return _tmdb_client


def get_search_client() -> ChatClient:
    """Perplexity client for candidate sourcing."""
    global _search_client
    if _search_client is None:
        _search_client = ChatClient(
            service="perplexity",
            model=config.get_perplexity_model(),
            api_key=config.get_perplexity_api_key(),
            base_url=config.get_perplexity_base_url(),
            timeout=config.get_ai_timeout_seconds(),
        )
    return _search_client


def get_generation_client() -> ChatClient:
    """OpenAI client for schema enforcement."""
    global _generation_client
    if _generation_client is None:
        _generation_client = ChatClient(
            service="openai",
            model=config.get_openai_model(),
            api_key=config.get_openai_api_key(),
            timeout=config.get_ai_timeout_seconds(),
        )
    return _generation_client


def get_registry() -> InFlightRegistry:
    global _registry
    if _registry is None:
        _registry = InFlightRegistry()
    return _registry


def get_pipeline() -> BulkRecommendationPipeline:
    """Get or create the singleton bulk recommendation pipeline."""
    global _pipeline
    if _pipeline is None:
        timeout = config.get_ai_timeout_seconds()
        _pipeline = BulkRecommendationPipeline(
            sourcer=CandidateSourcer(get_search_client(), timeout=timeout),
            enforcer=SchemaEnforcer(get_generation_client(), timeout=timeout),
            store=RecommendationStore(
                resolver=TitleResolver(get_tmdb_client()),
                dedup_window=timedelta(hours=config.get_dedup_window_hours()),
            ),
            registry=get_registry(),
        )
    return _pipeline


async def close_clients() -> None:
    """Close the HTTP clients opened by the singletons."""
    global _tmdb_client, _search_client, _generation_client, _pipeline
    for client in (_tmdb_client, _search_client, _generation_client):
        if client is not None:
            await client.close()
    _tmdb_client = _search_client = _generation_client = None
    _pipeline = None
