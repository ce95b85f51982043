"""
Recommendation API endpoints.
"""

import json
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from cinemate.api.dependencies import (
    get_current_user,
    get_db,
    get_optional_user,
    get_pipeline,
    get_registry,
)
from cinemate.api.models.recommendation import (
    BulkRecommendationRequest,
    MarkRatedRequest,
    NextRecommendationsResponse,
    RecommendationItem,
)
from cinemate.core.errors import PipelineError
from cinemate.core.pipeline import BulkRecommendationPipeline, InFlightRegistry, recommendation_status
from cinemate.database import crud
from cinemate.database.models import Recommendation, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])


def _genres(raw: str | None) -> list[str]:
    try:
        genres = json.loads(raw or "[]")
    except ValueError:
        return []
    return [g for g in genres if isinstance(g, str)]


def _to_item(rec: Recommendation) -> RecommendationItem:
    movie = rec.movie
    return RecommendationItem(
        movie_id=rec.movie_id,
        title=movie.title,
        release_year=movie.release_year,
        overview=movie.overview,
        poster_path=movie.poster_path,
        genres=_genres(movie.genres),
        reason=rec.reason,
        match_percentage=rec.match_percentage,
        position=rec.position,
        batch_id=rec.batch_id,
    )


@router.post("/bulk")
async def generate_bulk(
    request: Request,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
    pipeline: BulkRecommendationPipeline = Depends(get_pipeline),
):
    """
    Generate, de-duplicate and store a new batch of recommendations.

    The body is optional; an unreadable one is treated as no filters.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    raw_filters = BulkRecommendationRequest.from_payload(payload).to_filters()
    try:
        summary = await pipeline.run(db, user, raw_filters)
    except PipelineError:
        raise
    except Exception as e:
        logger.exception("Bulk recommendation generation failed")
        return JSONResponse(
            status_code=500,
            content={"error": PipelineError.error, "details": str(e)},
        )
    return summary.to_payload()


@router.get("/bulk")
def bulk_status(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    registry: InFlightRegistry = Depends(get_registry),
):
    """Report whether the user can generate a batch and the state of their queue."""
    return recommendation_status(db, user, registry)


@router.get("/next", response_model=NextRecommendationsResponse)
def next_recommendations(
    limit: int = Query(10, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Serve the next unseen recommendations and mark them shown."""
    recs = crud.get_next_recommendations(db, user.user_id, limit=limit)
    items = [_to_item(r) for r in recs]
    return NextRecommendationsResponse(user_id=user.user_id, recommendations=items, n=len(items))


@router.post("/mark-rated")
def mark_rated(
    body: MarkRatedRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark the user's recommendations for a title as rated."""
    updated = crud.mark_recommendation_rated(db, user.user_id, body.movie_id)
    return {"movieId": body.movie_id, "updated": updated}
