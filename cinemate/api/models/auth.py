"""
Pydantic schemas for Auth API.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cinemate.api.models.user import UserResponse


class SignupRequest(BaseModel):
    """Request body for creating an account."""

    name: str | None = Field(None, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    languages: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return value


class LoginRequest(BaseModel):
    """Request body for logging in."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """Bearer token issued on signup and login."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")
    token_type: str = Field("bearer", alias="tokenType")
    user: UserResponse
