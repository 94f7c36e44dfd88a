"""Bearer JWT issuing and verification."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from errors import AuthenticationError
from models.User import User

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, email: str, expires_minutes: Optional[int] = None) -> str:
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify signature and expiry.

    Raises:
        AuthenticationError: token is invalid, expired or lacks user_id
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    if not payload.get("user_id"):
        raise AuthenticationError("Invalid token payload")
    return payload


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if creds is None or not creds.credentials:
        raise AuthenticationError("Missing bearer token")

    payload = decode_access_token(creds.credentials)
    user = db.query(User).filter(User.user_id == payload["user_id"]).first()
    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")
    return user
