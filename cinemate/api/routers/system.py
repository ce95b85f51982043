"""
System API endpoints (health).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cinemate.api import config
from cinemate.api.dependencies import get_db, get_tmdb_limiter
from cinemate.core.rate_limiter import RateLimiter
from cinemate.database import crud

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health")
def health_check(
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_tmdb_limiter),
):
    """Health check: database, configured upstreams and TMDB limiter state."""
    services = {
        "perplexity": config.get_perplexity_api_key() is not None,
        "openai": config.get_openai_api_key() is not None,
        "tmdb": config.get_tmdb_api_key() is not None,
    }
    try:
        counts = {
            "users": crud.get_user_count(db),
            "movies": crud.get_movie_count(db),
            "ratings": crud.get_rating_count(db),
        }
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "database": str(e), "services": services}
    return {
        "status": "healthy",
        "database": "connected",
        **counts,
        "services": services,
        "rateLimiter": limiter.stats(),
    }
