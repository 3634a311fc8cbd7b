"""
Dashboard profile routes for the signed-in user.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taxfiler.core.auth import CurrentUser, get_current_user
from taxfiler.core.database import get_db
from taxfiler.modules.accounts import services
from taxfiler.modules.accounts.schemas import (
    DashboardUser,
    DashboardUserResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
)

router = APIRouter()


@router.get("/me", response_model=DashboardUserResponse)
def get_me(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current user with W-9/W-2 upload status."""
    user = services.get_profile(db, current.user_id)
    return DashboardUserResponse(user=DashboardUser.model_validate(user))


@router.put("/me", response_model=ProfileUpdateResponse)
def update_me(
    request: ProfileUpdateRequest,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update name and filing status. Other fields are not editable here."""
    user = services.update_profile(
        db,
        current.user_id,
        first_name=request.first_name,
        last_name=request.last_name,
        filing_status=request.filing_status,
    )
    return ProfileUpdateResponse(user=DashboardUser.model_validate(user))
