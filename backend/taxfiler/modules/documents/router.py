"""
Document upload API routes.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from taxfiler.core.auth import CurrentUser, get_current_user
from taxfiler.core.config import settings
from taxfiler.core.database import get_db
from taxfiler.modules.documents import services
from taxfiler.modules.documents.storage import DocumentStore, get_document_store
from taxfiler.shared.schemas import CamelModel

router = APIRouter()

LABELS = {"w9": "W-9", "w2": "W-2"}


class UploadResponse(CamelModel):
    success: bool = True
    message: str
    file_name: str
    upload_date: datetime


def _read_limited(upload: Optional[UploadFile]) -> bytes:
    """
    Read the upload, stopping one byte past the size limit.

    The size itself is judged by validate_upload, after the type check.
    """
    if upload is None:
        return b""
    return upload.file.read(settings.MAX_UPLOAD_BYTES + 1)


def _handle_upload(kind: str, upload: Optional[UploadFile], current: CurrentUser, db: Session, store: DocumentStore):
    content = _read_limited(upload)
    stored = services.upload_document(
        db,
        store,
        current.user_id,
        kind,
        filename=upload.filename if upload else None,
        content_type=upload.content_type if upload else None,
        content=content,
    )
    return UploadResponse(
        message=f"{LABELS[kind]} form uploaded successfully",
        file_name=stored.file_name,
        upload_date=stored.upload_date,
    )


@router.post("/upload-w9", response_model=UploadResponse)
def upload_w9(
    w9_form: Optional[UploadFile] = File(default=None, alias="w9Form"),
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
):
    """Upload a W-9 (multipart field 'w9Form')."""
    return _handle_upload("w9", w9_form, current, db, store)


@router.post("/upload-w2", response_model=UploadResponse)
def upload_w2(
    w2_form: Optional[UploadFile] = File(default=None, alias="w2Form"),
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
):
    """Upload a W-2 (multipart field 'w2Form')."""
    return _handle_upload("w2", w2_form, current, db, store)
