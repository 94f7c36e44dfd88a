"""
Google sign-in: exchange a Google access token for the user's profile,
find or create the local user and issue our own bearer token.
"""
import logging
from typing import Optional, Tuple

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from errors import AuthenticationError
from models.User import User
from utils.security import create_access_token

logger = logging.getLogger(__name__)


async def fetch_google_profile(access_token: str, timeout: float = 10.0) -> dict:
    """
    Fetch the Google userinfo profile for `access_token`.

    Raises:
        AuthenticationError: Google rejected the token or returned no email
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(
                settings.GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            resp.raise_for_status()
            profile = resp.json()
    except httpx.HTTPError as exc:
        logger.warning("Google userinfo request failed: %s", exc)
        raise AuthenticationError("Invalid Google token")

    if not profile or not profile.get("email"):
        raise AuthenticationError("Invalid Google token")
    return profile


def find_or_create_user(
    db: Session,
    email: str,
    full_name: Optional[str] = None,
    google_id: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> User:
    """Look the user up by email, creating it on first login.

    Optional fields are only overwritten when a new value is present.
    """
    user = db.query(User).filter(User.email == email).first()

    if user is None:
        user = User(email=email, full_name=full_name, google_id=google_id, avatar_url=avatar_url)
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # created concurrently by another login
            db.rollback()
            user = db.query(User).filter(User.email == email).one()
        else:
            db.refresh(user)
            logger.info("Created user %s", user.user_id)
            return user

    changed = False
    for attr, value in (("full_name", full_name), ("google_id", google_id), ("avatar_url", avatar_url)):
        if value and getattr(user, attr) != value:
            setattr(user, attr, value)
            changed = True

    if changed:
        db.commit()
        db.refresh(user)
    return user


async def google_login(db: Session, access_token: str) -> Tuple[str, User]:
    profile = await fetch_google_profile(access_token)
    user = find_or_create_user(
        db,
        email=profile["email"],
        full_name=profile.get("name"),
        google_id=profile.get("sub"),
        avatar_url=profile.get("picture"),
    )
    if not user.is_active:
        raise AuthenticationError("User account is disabled")

    return create_access_token(user.user_id, user.email), user
