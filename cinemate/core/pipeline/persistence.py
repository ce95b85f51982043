"""
Persistence: store a ranked batch, skipping titles the user already has
queued, and report per-item outcomes.
"""

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from cinemate.clients.tmdb import TMDBClient, TMDBError
from cinemate.core.pipeline.models import (
    BatchSummary,
    ItemOutcome,
    ItemStatus,
    RankedRecommendation,
)
from cinemate.database import crud
from cinemate.database.crud import TitleKey

logger = logging.getLogger(__name__)

# Fits a signed 32-bit column and stays clear of real TMDB ids
HASH_ID_MIN = 100_000_000
HASH_ID_SPAN = 1_900_000_000


def hashed_movie_id(title: str, year: Optional[int]) -> int:
    """Deterministic movie id for titles that could not be resolved on TMDB."""
    seed = f"{title.casefold().strip()}-{year or ''}"
    digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return (int(digest[:12], 16) % HASH_ID_SPAN) + HASH_ID_MIN


class TitleResolver:
    """
    Map a recommendation to a movie id: the model-supplied TMDB id, a TMDB
    search hit, or the hashed fallback.

    A model-supplied id is only trusted when it is unknown locally or already
    names the same title; otherwise it would relabel an existing movie.
    """

    def __init__(self, tmdb: Optional[TMDBClient] = None):
        self.tmdb = tmdb

    @staticmethod
    def _claims_other_title(session: Session, movie_id: int, item: RankedRecommendation) -> bool:
        movie = crud.get_movie(session, movie_id)
        if movie is None:
            return False
        existing_title, existing_year = crud.title_key(movie.title, movie.release_year)
        title, year = crud.title_key(item.title, item.year)
        if existing_title != title:
            return True
        return existing_year is not None and year is not None and existing_year != year

    async def resolve(self, item: RankedRecommendation, session: Optional[Session] = None) -> int:
        if item.tmdb_id:
            conflict = session is not None and await run_in_threadpool(
                self._claims_other_title, session, item.tmdb_id, item
            )
            if not conflict:
                return item.tmdb_id
            logger.warning(
                "Ignoring tmdbId %s for %s (%s): id belongs to another title",
                item.tmdb_id, item.title, item.year,
            )
        if self.tmdb is not None and self.tmdb.is_configured:
            try:
                match = await self.tmdb.search_movie(item.title, item.year)
            except TMDBError as e:
                logger.warning("TMDB lookup failed for %s (%s): %s", item.title, item.year, e)
                match = None
            if match and match.get("id"):
                return int(match["id"])
        return hashed_movie_id(item.title, item.year)


class RecommendationStore:
    """
    Writes each item in its own transaction; an item whose id lookup or
    write fails is recorded and the rest of the batch continues.
    """

    def __init__(
        self,
        resolver: Optional[TitleResolver] = None,
        dedup_window: timedelta = timedelta(hours=24),
    ):
        self.resolver = resolver or TitleResolver()
        self.dedup_window = dedup_window

    def _existing_keys(self, session: Session, user_id: int) -> Set[TitleKey]:
        since = datetime.now(timezone.utc).replace(tzinfo=None) - self.dedup_window
        keys = crud.get_watchlist_keys(session, user_id)
        keys |= crud.get_recent_recommendation_keys(session, user_id, since)
        return keys

    @staticmethod
    def _store_item(
        session: Session,
        user_id: int,
        batch_id: str,
        position: int,
        movie_id: int,
        item: RankedRecommendation,
    ) -> None:
        crud.store_recommendation(
            session,
            user_id=user_id,
            batch_id=batch_id,
            position=position,
            movie_id=movie_id,
            title=item.title,
            reason=item.reason,
            match_percentage=item.match_percentage,
            release_year=item.year,
            original_title=item.original_title,
            overview=item.overview,
            language=item.language,
            genres=item.genres or None,
            runtime=item.runtime,
            imdb_rating=item.imdb_rating,
            poster_path=item.poster_path,
        )

    async def persist(
        self,
        session: Session,
        user_id: int,
        items: List[RankedRecommendation],
    ) -> BatchSummary:
        """
        Store the batch.

        Returns:
            BatchSummary whose stored + skipped + failed equals len(items)
        """
        summary = BatchSummary(batch_id=str(uuid.uuid4()))
        seen = await run_in_threadpool(self._existing_keys, session, user_id)
        position = 0

        for item in items:
            key = crud.title_key(item.title, item.year)
            if key in seen:
                logger.info("Skipping duplicate: %s (%s)", item.title, item.year)
                summary.outcomes.append(ItemOutcome(item.title, item.year, ItemStatus.DUPLICATE))
                continue
            seen.add(key)

            movie_id = None
            try:
                movie_id = await self.resolver.resolve(item, session)
                await run_in_threadpool(
                    self._store_item, session, user_id, summary.batch_id, position + 1, movie_id, item
                )
            except SQLAlchemyError as e:
                logger.error("Failed to store recommendation %s (%s): %s", item.title, item.year, e)
                summary.outcomes.append(
                    ItemOutcome(item.title, item.year, ItemStatus.FAILED, movie_id, str(e))
                )
                continue
            except Exception as e:
                logger.exception("Failed to resolve recommendation %s (%s)", item.title, item.year)
                summary.outcomes.append(
                    ItemOutcome(item.title, item.year, ItemStatus.FAILED, movie_id, str(e))
                )
                continue

            position += 1
            summary.outcomes.append(ItemOutcome(item.title, item.year, ItemStatus.STORED, movie_id))

        logger.info(
            "Batch %s: %d stored, %d skipped, %d failed",
            summary.batch_id, summary.stored, summary.skipped, summary.failed,
        )
        return summary
