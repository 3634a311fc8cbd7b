"""
Authentication API routes.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from taxfiler.core.auth import CurrentUser, get_current_user
from taxfiler.core.config import settings
from taxfiler.core.database import get_db
from taxfiler.modules.accounts import services
from taxfiler.modules.accounts.schemas import (
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    SignupRequest,
    SignupResponse,
    UserProfile,
    UserSummary,
)

router = APIRouter()


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(request: SignupRequest, db: Session = Depends(get_db)):
    """Register a new account. The password is never echoed back."""
    user = services.register(
        db,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
    )
    return SignupResponse(user=UserSummary.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Authenticate with email and password.
    Returns a JWT token valid for 7 days.
    """
    user, token = services.authenticate(db, request.email, request.password)
    return LoginResponse(
        token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserSummary.model_validate(user),
    )


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the full profile of the authenticated user."""
    user = services.get_profile(db, current.user_id)
    return ProfileResponse(user=UserProfile.model_validate(user))
