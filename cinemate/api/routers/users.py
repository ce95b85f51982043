"""
Current-user profile endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cinemate.api.dependencies import get_current_user, get_db
from cinemate.api.models.user import PreferencesUpdate, UserResponse
from cinemate.database import crud
from cinemate.database.models import User

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def get_me(user: User = Depends(get_current_user)):
    """Get the authenticated user's profile."""
    return user


@router.put("/me/preferences", response_model=UserResponse)
def update_preferences(
    body: PreferencesUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace the preferred languages used as the default language filter."""
    languages = [lang.strip() for lang in body.languages if lang.strip()]
    return crud.update_user_languages(db, user.user_id, languages)
