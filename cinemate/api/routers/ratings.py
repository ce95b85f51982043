"""
Rating API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from cinemate.api.dependencies import get_current_user, get_db
from cinemate.api.models.rating import RatingCreate, RatingList, RatingResponse
from cinemate.database import crud
from cinemate.database.models import Rating, User

router = APIRouter(prefix="/api/ratings", tags=["ratings"])


def _to_response(rating: Rating) -> RatingResponse:
    return RatingResponse(
        rating_id=rating.rating_id,
        movie_id=rating.movie_id,
        title=rating.movie.title,
        release_year=rating.movie.release_year,
        rating=rating.rating,
    )


@router.get("", response_model=RatingList)
def list_ratings(
    limit: int | None = Query(None, ge=1, le=1000),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the user's ratings, most recent first."""
    ratings = crud.get_user_ratings(db, user.user_id, limit=limit)
    return RatingList(
        user_id=user.user_id,
        count=len(ratings),
        ratings=[_to_response(r) for r in ratings],
    )


@router.post("", response_model=RatingResponse)
def rate_movie(
    body: RatingCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add or update a rating; recommendations for the title are marked rated."""
    try:
        rating = crud.upsert_rating(
            db,
            user_id=user.user_id,
            movie_id=body.movie_id,
            rating=body.rating,
            title=body.title,
            release_year=body.release_year,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    crud.mark_recommendation_rated(db, user.user_id, body.movie_id)
    return _to_response(rating)


@router.delete("")
def delete_rating(
    movie_id: int = Query(..., alias="movieId", gt=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete the user's rating for a title."""
    if not crud.delete_rating(db, user.user_id, movie_id):
        raise HTTPException(status_code=404, detail="Rating not found")
    return {"deleted": True, "movieId": movie_id}
