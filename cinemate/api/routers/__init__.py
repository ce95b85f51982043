"""
API route handlers.
"""

from cinemate.api.routers import auth, users, ratings, watchlist, recommendations, system

__all__ = ["auth", "users", "ratings", "watchlist", "recommendations", "system"]
