"""
Document intake - validates W-9/W-2 uploads and records them on the user.
"""

import logging
import os
from typing import Optional

from sqlalchemy.orm import Session

from taxfiler.core.config import settings
from taxfiler.core.errors import NoFile, UnsupportedFileType, FileTooLarge, ValidationError
from taxfiler.modules.accounts.services import get_profile
from taxfiler.modules.documents.storage import DocumentStore, StoredFile, DOCUMENT_KINDS

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".pdf", ".doc", ".docx"}

ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def validate_upload(filename: Optional[str], content_type: Optional[str], content: bytes) -> str:
    """
    Check an upload against the type and size rules.

    Returns the normalized (lower-case) file extension. Both the extension
    and the declared content type must be on the allow-list.
    """
    if not filename or not content:
        raise NoFile()

    extension = os.path.splitext(filename)[1].lower()
    declared = (content_type or "").split(";")[0].strip().lower()
    if extension not in ALLOWED_EXTENSIONS or declared not in ALLOWED_CONTENT_TYPES:
        raise UnsupportedFileType()

    if len(content) > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise FileTooLarge(f"File too large. Maximum size is {limit_mb}MB")

    return extension


def upload_document(
    db: Session,
    store: DocumentStore,
    user_id: str,
    kind: str,
    filename: Optional[str],
    content_type: Optional[str],
    content: bytes,
) -> StoredFile:
    """
    Validate and store an uploaded W-9 or W-2 and point the user at it.

    A previous upload of the same kind is left on disk; only the user's
    file pointer moves.
    """
    if kind not in DOCUMENT_KINDS:
        raise ValidationError(f"Unknown document kind: {kind}")

    extension = validate_upload(filename, content_type, content)
    user = get_profile(db, user_id)

    stored = store.save(kind, user_id, extension, content)

    setattr(user, f"{kind}_uploaded", True)
    setattr(user, f"{kind}_upload_date", stored.upload_date)
    setattr(user, f"{kind}_file_name", stored.file_name)
    if user.form_completion_status == "not_started":
        user.form_completion_status = "in_progress"
    db.commit()

    logger.info(f"User {user_id} uploaded {kind} as {stored.file_name}")
    return stored
