"""
Pydantic schemas for Rating API.
"""

from pydantic import BaseModel, ConfigDict, Field


class RatingCreate(BaseModel):
    """Request body for rating a title (creates or updates)."""

    model_config = ConfigDict(populate_by_name=True)

    movie_id: int = Field(..., gt=0, alias="movieId")
    title: str = Field(..., min_length=1)
    release_year: int | None = Field(None, ge=1870, le=2100, alias="releaseYear")
    rating: float = Field(..., ge=1.0, le=5.0)


class RatingResponse(BaseModel):
    """Response model for rating."""

    rating_id: int
    movie_id: int
    title: str
    release_year: int | None = None
    rating: float


class RatingList(BaseModel):
    """A user's ratings, most recent first."""

    user_id: int
    count: int
    ratings: list[RatingResponse]
