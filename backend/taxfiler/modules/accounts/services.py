"""
Account services - registration, login and profile maintenance.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taxfiler.core.auth import hash_password, verify_password, create_access_token
from taxfiler.core.errors import DuplicateEmail, InvalidCredentials, NotFound, ValidationError
from taxfiler.modules.accounts.models import User, FILING_STATUSES
from taxfiler.shared.models.base import utcnow

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def register(
    db: Session,
    email: str,
    password: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> User:
    """
    Create a new account.

    Raises DuplicateEmail if the address is already registered. The
    password is stored only as a bcrypt hash.
    """
    email = normalize_email(email)
    if find_user_by_email(db, email) is not None:
        raise DuplicateEmail()

    user = User(
        email=email,
        password=hash_password(password),
        first_name=first_name or '',
        last_name=last_name or '',
        address={},
        income={},
        deductions={},
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email
        db.rollback()
        raise DuplicateEmail()
    db.refresh(user)

    logger.info(f"Registered user {user.id}")
    return user


def authenticate(db: Session, email: str, password: str) -> Tuple[User, str]:
    """
    Verify credentials, stamp last_login and issue a session token.

    Unknown email and wrong password raise the same InvalidCredentials
    error so callers cannot probe which addresses exist.
    """
    user = find_user_by_email(db, email)
    if user is None or not verify_password(password, user.password):
        logger.info("Rejected login attempt")
        raise InvalidCredentials()

    user.last_login = utcnow()
    db.commit()
    db.refresh(user)

    token = create_access_token(user.id, user.email)
    logger.info(f"User {user.id} logged in")
    return user, token


def get_profile(db: Session, user_id: str) -> User:
    """Load a user by id or raise NotFound."""
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def update_profile(
    db: Session,
    user_id: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    filing_status: Optional[str] = None,
) -> User:
    """Update the whitelisted profile fields. None means leave unchanged."""
    if filing_status is not None and filing_status not in FILING_STATUSES:
        raise ValidationError(errors=[{"field": "filingStatus", "message": "Invalid filing status"}])

    user = get_profile(db, user_id)
    if first_name is not None:
        user.first_name = first_name
    if last_name is not None:
        user.last_name = last_name
    if filing_status is not None:
        user.filing_status = filing_status

    db.commit()
    db.refresh(user)
    return user
