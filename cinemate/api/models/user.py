"""
Pydantic schemas for User API.
"""

import json

from pydantic import BaseModel, Field, field_validator


class UserResponse(BaseModel):
    """Response model for user."""

    user_id: int
    email: str
    name: str | None = None
    languages: list[str] = []

    @field_validator("languages", mode="before")
    @classmethod
    def _decode_languages(cls, value):
        # Stored as a JSON array in a text column
        if isinstance(value, str):
            try:
                value = json.loads(value or "[]")
            except ValueError:
                return []
        return value or []

    class Config:
        from_attributes = True


class PreferencesUpdate(BaseModel):
    """Request body for replacing language preferences."""

    languages: list[str] = Field(default_factory=list, max_length=20)
