"""
Pydantic schemas for API request/response validation.
"""

from cinemate.api.models.auth import SignupRequest, LoginRequest, TokenResponse
from cinemate.api.models.user import UserResponse, PreferencesUpdate
from cinemate.api.models.rating import RatingCreate, RatingResponse, RatingList
from cinemate.api.models.watchlist import WatchlistAdd, WatchlistItemResponse, WatchlistResponse
from cinemate.api.models.recommendation import (
    BulkRecommendationRequest,
    MarkRatedRequest,
    RecommendationItem,
    NextRecommendationsResponse,
)

__all__ = [
    "SignupRequest",
    "LoginRequest",
    "TokenResponse",
    "UserResponse",
    "PreferencesUpdate",
    "RatingCreate",
    "RatingResponse",
    "RatingList",
    "WatchlistAdd",
    "WatchlistItemResponse",
    "WatchlistResponse",
    "BulkRecommendationRequest",
    "MarkRatedRequest",
    "RecommendationItem",
    "NextRecommendationsResponse",
]
