"""
Pydantic schemas for Recommendation API.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BulkRecommendationRequest(BaseModel):
    """
    Request body for generating a batch. Every field is optional.

    Fields are left loosely typed so any JSON object validates; the request
    gate falls back to defaults for values it cannot use.
    """

    model_config = ConfigDict(populate_by_name=True)

    count: Any = None
    year_from: Any = Field(None, alias="yearFrom")
    year_to: Any = Field(None, alias="yearTo")
    genres: Any = None
    languages: Any = None
    min_imdb_rating: Any = Field(None, alias="minImdbRating")
    min_box_office: Any = Field(None, alias="minBoxOffice")
    max_budget: Any = Field(None, alias="maxBudget")

    @classmethod
    def from_payload(cls, payload: Any) -> "BulkRecommendationRequest":
        """Build from a decoded JSON body; anything but an object means no filters."""
        return cls.model_validate(payload if isinstance(payload, dict) else {})

    def to_filters(self) -> dict:
        """Raw filter mapping for the request gate."""
        return self.model_dump(exclude_none=True)


class MarkRatedRequest(BaseModel):
    """Request body for marking a recommended title as rated."""

    model_config = ConfigDict(populate_by_name=True)

    movie_id: int = Field(..., gt=0, alias="movieId")


class RecommendationItem(BaseModel):
    """Single stored recommendation with its movie."""

    movie_id: int
    title: str
    release_year: int | None = None
    overview: str | None = None
    poster_path: str | None = None
    genres: list[str] = []
    reason: str | None = None
    match_percentage: int | None = None
    position: int
    batch_id: str


class NextRecommendationsResponse(BaseModel):
    """Response model for the next recommendations."""

    user_id: int
    recommendations: list[RecommendationItem]
    n: int
