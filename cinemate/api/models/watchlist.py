"""
Pydantic schemas for Watchlist API.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class WatchlistAdd(BaseModel):
    """Request body for adding a title to the watchlist."""

    model_config = ConfigDict(populate_by_name=True)

    movie_id: int = Field(..., gt=0, alias="movieId")
    title: str = Field(..., min_length=1)
    release_year: int | None = Field(None, ge=1870, le=2100, alias="releaseYear")


class WatchlistItemResponse(BaseModel):
    """Single watchlist entry."""

    movie_id: int
    title: str
    release_year: int | None = None
    added_at: datetime | None = None


class WatchlistResponse(BaseModel):
    """Response model for the watchlist."""

    user_id: int
    items: list[WatchlistItemResponse]
