"""
Dependent registry services.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from taxfiler.core.errors import NotFound, ValidationError
from taxfiler.modules.dependents.models import Dependent

logger = logging.getLogger(__name__)


def list_dependents(db: Session, user_id: str) -> List[Dependent]:
    """Dependents owned by the user, oldest first."""
    return (
        db.query(Dependent)
        .filter(Dependent.user_id == user_id)
        .order_by(Dependent.created_at.asc(), Dependent.id.asc())
        .all()
    )


def add_dependent(
    db: Session,
    user_id: str,
    name: str,
    relationship: Optional[str] = None,
    dob: Optional[date] = None,
    ssn: Optional[str] = None,
) -> Dependent:
    """Create a dependent for the user. A name is required."""
    name = (name or '').strip()
    if not name:
        raise ValidationError(errors=[{"field": "name", "message": "Dependent name is required"}])

    dependent = Dependent(
        user_id=user_id,
        name=name,
        relation_type=relationship.strip() if relationship else relationship,
        dob=dob,
        ssn=ssn.strip() if ssn else ssn,
    )
    db.add(dependent)
    db.commit()
    db.refresh(dependent)

    logger.info(f"User {user_id} added dependent {dependent.id}")
    return dependent


def remove_dependent(db: Session, user_id: str, dependent_id: str) -> None:
    """
    Delete a dependent owned by the user.

    The lookup filters on both ids, so another account's dependent is
    reported as NotFound rather than deleted.
    """
    dependent = (
        db.query(Dependent)
        .filter(Dependent.id == dependent_id, Dependent.user_id == user_id)
        .first()
    )
    if dependent is None:
        raise NotFound("Dependent not found")

    db.delete(dependent)
    db.commit()
    logger.info(f"User {user_id} removed dependent {dependent_id}")
