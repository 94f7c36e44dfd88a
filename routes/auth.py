from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from models.User import User
from schemas import GoogleLoginRequest, TokenResponse, TokenUser, UserRead
from database import get_db
from services import auth_service
from utils.security import get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/google", response_model=TokenResponse)
async def google_login(payload: GoogleLoginRequest, db: Session = Depends(get_db)):
    """Sign in with a Google OAuth access token"""
    token, user = await auth_service.google_login(db, payload.access_token)
    return TokenResponse(
        token=token,
        user=TokenUser(id=user.user_id, email=user.email, full_name=user.full_name, avatar_url=user.avatar_url),
    )


@router.get("/me", response_model=UserRead)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
