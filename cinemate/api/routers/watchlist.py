"""
Watchlist API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from cinemate.api.dependencies import get_current_user, get_db
from cinemate.api.models.watchlist import WatchlistAdd, WatchlistItemResponse, WatchlistResponse
from cinemate.database import crud
from cinemate.database.models import User

router = APIRouter(prefix="/api/watchlist", tags=["watchlist"])


@router.get("", response_model=WatchlistResponse)
def get_watchlist(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get the user's watchlist, most recently added first."""
    items = crud.get_watchlist(db, user.user_id)
    return WatchlistResponse(
        user_id=user.user_id,
        items=[
            WatchlistItemResponse(
                movie_id=item.movie_id,
                title=item.movie.title,
                release_year=item.movie.release_year,
                added_at=item.added_at,
            )
            for item in items
        ],
    )


@router.post("")
def add_to_watchlist(
    body: WatchlistAdd,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add a title; adding one that is already listed is not an error."""
    item, created = crud.add_to_watchlist(
        db,
        user_id=user.user_id,
        movie_id=body.movie_id,
        title=body.title,
        release_year=body.release_year,
    )
    return {"movieId": item.movie_id, "alreadyExists": not created}


@router.delete("")
def remove_from_watchlist(
    movie_id: int = Query(..., alias="movieId", gt=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove a title from the watchlist."""
    if not crud.remove_from_watchlist(db, user.user_id, movie_id):
        raise HTTPException(status_code=404, detail="Watchlist item not found")
    return {"deleted": True, "movieId": movie_id}
