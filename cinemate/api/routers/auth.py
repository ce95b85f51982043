"""
Account signup and login endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cinemate.api.dependencies import get_db
from cinemate.api.models.auth import LoginRequest, SignupRequest, TokenResponse
from cinemate.api.models.user import UserResponse
from cinemate.api.security import create_access_token, hash_password, verify_password
from cinemate.database import crud

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_for(user) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.user_id, user.email),
        user=UserResponse.model_validate(user),
    )


@router.post("/signup", response_model=TokenResponse, status_code=201)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    """Create an account and return an access token."""
    try:
        user = crud.create_user(
            db,
            email=body.email,
            password_hash=hash_password(body.password),
            name=body.name,
            languages=body.languages,
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    logger.info("Created user %s", user.user_id)
    return _token_for(user)


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for an access token."""
    user = crud.get_user_by_email(db, body.email)
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _token_for(user)
