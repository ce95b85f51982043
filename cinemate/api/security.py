"""
Password hashing and access tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from cinemate.api.config import get_jwt_expire_minutes, get_jwt_secret

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(user_id: int, email: str, expires_minutes: Optional[int] = None) -> str:
    """
    Sign a bearer token for a user.

    Args:
        user_id: Subject of the token
        email: Included for clients that display it
        expires_minutes: Lifetime (JWT_EXPIRE_MINUTES when None)
    """
    minutes = expires_minutes if expires_minutes is not None else get_jwt_expire_minutes()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Returns:
        Token claims, or None when the token is invalid or expired
    """
    try:
        return jwt.decode(token, get_jwt_secret(), algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None
