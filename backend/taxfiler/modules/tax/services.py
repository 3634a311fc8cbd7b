"""
Derivation engine - W-2 extraction and Form 1098 estimation.

Both results are stored on the owning user (income.w2Data and
deductions.form1098). The JSON columns are reassigned, not mutated in
place, so SQLAlchemy sees the change. Concurrent partial updates are
last-write-wins.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from taxfiler.core.errors import NotFound, ValidationError
from taxfiler.modules.accounts.models import User
from taxfiler.modules.accounts.services import get_profile
from taxfiler.modules.documents.storage import DocumentStore
from taxfiler.modules.tax.extraction import DocumentExtractor
from taxfiler.modules.tax.forms import W2Record, Form1098, build_form_1098, merge_record
from taxfiler.shared.models.base import utcnow

logger = logging.getLogger(__name__)

W2_KEY = "w2Data"
W2_STAMP_KEY = "lastW2Extraction"
FORM_1098_KEY = "form1098"
FORM_1098_STAMP_KEY = "last1098Generation"


def _dump(record: BaseModel) -> Dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True)


def load_w2(user: User) -> Optional[W2Record]:
    data = (user.income or {}).get(W2_KEY)
    return W2Record.model_validate(data) if data else None


def load_1098(user: User) -> Optional[Form1098]:
    data = (user.deductions or {}).get(FORM_1098_KEY)
    return Form1098.model_validate(data) if data else None


def last_w2_extraction(user: User) -> Optional[str]:
    return (user.income or {}).get(W2_STAMP_KEY)


def last_1098_generation(user: User) -> Optional[str]:
    return (user.deductions or {}).get(FORM_1098_STAMP_KEY)


def _save_w2(user: User, record: W2Record, stamp: bool) -> None:
    income = dict(user.income or {})
    income[W2_KEY] = _dump(record)
    if stamp:
        income[W2_STAMP_KEY] = utcnow().isoformat()
    user.income = income


def _save_1098(user: User, form: Form1098, stamp: bool) -> None:
    deductions = dict(user.deductions or {})
    deductions[FORM_1098_KEY] = _dump(form)
    if stamp:
        deductions[FORM_1098_STAMP_KEY] = utcnow().isoformat()
    user.deductions = deductions


def _clean_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    # Explicit nulls mean "no change"
    return {key: value for key, value in changes.items() if value is not None}


def _merge(record: BaseModel, changes: Dict[str, Any]) -> BaseModel:
    try:
        return merge_record(record, _clean_changes(changes), utcnow())
    except PydanticValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError(errors=errors)


def extract_w2(db: Session, store: DocumentStore, extractor: DocumentExtractor, user_id: str) -> W2Record:
    """
    Run the extractor over the user's current W-2 upload.

    Replaces any previous snapshot wholesale.
    """
    user = get_profile(db, user_id)
    if not user.w2_file_name:
        raise NotFound("No W-2 file found for this user. Please upload a W-2 form first.")
    if not store.exists("w2", user.w2_file_name):
        raise NotFound("W-2 file not found on server.")

    record = extractor.extract(store.path_for("w2", user.w2_file_name), user)
    _save_w2(user, record, stamp=True)
    db.commit()

    logger.info(f"Extracted W-2 for user {user_id} using {extractor.method}")
    return record


def get_w2(db: Session, user_id: str) -> W2Record:
    user = get_profile(db, user_id)
    record = load_w2(user)
    if record is None:
        raise NotFound("No extracted W-2 data found. Please extract W-2 data first.")
    return record


def update_w2(db: Session, user_id: str, changes: Dict[str, Any]) -> W2Record:
    """Merge field changes into the stored W-2 snapshot."""
    user = get_profile(db, user_id)
    record = load_w2(user)
    if record is None:
        raise NotFound("No W-2 data found to update. Please extract W-2 data first.")

    updated = _merge(record, changes)
    _save_w2(user, updated, stamp=False)
    db.commit()
    return updated


def generate_1098(db: Session, user_id: str) -> Form1098:
    """
    Estimate a Form 1098 from the stored W-2 snapshot.

    Replaces any previous 1098 wholesale.
    """
    user = get_profile(db, user_id)
    w2 = load_w2(user)
    if w2 is None:
        raise NotFound("No W-2 data found. Please extract W-2 data first.")

    form = build_form_1098(user, w2, utcnow())
    _save_1098(user, form, stamp=True)
    db.commit()

    logger.info(f"Generated 1098 for user {user_id} from wages {w2.box1_wages:,.2f}")
    return form


def get_1098(db: Session, user_id: str) -> Form1098:
    user = get_profile(db, user_id)
    form = load_1098(user)
    if form is None:
        raise NotFound("No 1098 data found. Please generate 1098 form first.")
    return form


def update_1098(db: Session, user_id: str, changes: Dict[str, Any]) -> Form1098:
    """Merge field changes into the stored Form 1098."""
    user = get_profile(db, user_id)
    form = load_1098(user)
    if form is None:
        raise NotFound("No 1098 data found to update. Please generate 1098 form first.")

    updated = _merge(form, changes)
    _save_1098(user, updated, stamp=False)
    db.commit()
    return updated
