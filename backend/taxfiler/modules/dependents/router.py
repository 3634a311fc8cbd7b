"""
Dependent API routes.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import Field
from sqlalchemy.orm import Session

from taxfiler.core.auth import CurrentUser, get_current_user
from taxfiler.core.database import get_db
from taxfiler.modules.dependents import services
from taxfiler.shared.schemas import CamelModel, MessageResponse

router = APIRouter()


class DependentCreate(CamelModel):
    """New dependent. dob must be a real calendar date (YYYY-MM-DD)."""
    name: str = Field(min_length=1)
    relationship: Optional[str] = None
    dob: Optional[date] = None
    ssn: Optional[str] = None


class DependentOut(CamelModel):
    id: str
    user_id: str
    name: str
    relationship: Optional[str] = None
    dob: Optional[date] = None
    ssn: Optional[str] = None

    @classmethod
    def from_model(cls, dependent, **extra):
        return cls(
            id=dependent.id,
            user_id=dependent.user_id,
            name=dependent.name,
            relationship=dependent.relation_type,
            dob=dependent.dob,
            ssn=dependent.ssn,
            **extra,
        )


class DependentCreated(DependentOut):
    success: bool = True
    message: str = "Dependent added successfully"


@router.get("/dependents", response_model=List[DependentOut])
def list_dependents(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the user's dependents in the order they were added."""
    return [DependentOut.from_model(d) for d in services.list_dependents(db, current.user_id)]


@router.post("/dependents", response_model=DependentCreated, status_code=status.HTTP_201_CREATED)
def add_dependent(
    request: DependentCreate,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add a dependent."""
    dependent = services.add_dependent(
        db,
        current.user_id,
        name=request.name,
        relationship=request.relationship,
        dob=request.dob,
        ssn=request.ssn,
    )
    return DependentCreated.from_model(dependent)


@router.delete("/dependents/{dependent_id}", response_model=MessageResponse)
def remove_dependent(
    dependent_id: str,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove one of the user's own dependents."""
    services.remove_dependent(db, current.user_id, dependent_id)
    return MessageResponse(message="Dependent removed successfully")
