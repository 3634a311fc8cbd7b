"""
Tax document API routes.
Handles W-2 extraction, Form 1098 generation and the 1098 PDF download.
"""

import re
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from taxfiler.core.auth import CurrentUser, get_current_user
from taxfiler.core.database import get_db
from taxfiler.modules.accounts.services import get_profile
from taxfiler.modules.documents.storage import DocumentStore, get_document_store
from taxfiler.modules.tax import services
from taxfiler.modules.tax.extraction import DocumentExtractor, get_w2_extractor
from taxfiler.modules.tax.forms import W2Record, Form1098, W2Update, Form1098Update
from taxfiler.modules.tax.pdf_generator import render_form_1098_pdf, iter_pdf_chunks
from taxfiler.shared.schemas import CamelModel

router = APIRouter()


class W2ExtractResponse(CamelModel):
    success: bool = True
    message: str = "W-2 data extracted successfully"
    data: W2Record
    file_name: str
    extraction_date: datetime


class W2DataResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: W2Record
    last_extraction: Optional[datetime] = None


class Form1098GenerateResponse(CamelModel):
    success: bool = True
    message: str = "1098 form data generated successfully"
    data: Form1098
    generated_date: datetime


class Form1098DataResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: Form1098
    last_generation: Optional[datetime] = None


def _safe_filename_part(value: Optional[str]) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "", value or "") or "user"


@router.post("/extract-w2", response_model=W2ExtractResponse)
def extract_w2(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    extractor: DocumentExtractor = Depends(get_w2_extractor),
):
    """
    Extract W-2 box data from the user's uploaded W-2.

    The default extractor returns a sample statement rather than reading
    the file.
    """
    record = services.extract_w2(db, store, extractor, current.user_id)
    user = get_profile(db, current.user_id)
    return W2ExtractResponse(
        data=record,
        file_name=user.w2_file_name,
        extraction_date=record.extraction_date,
    )


@router.get("/w2-data", response_model=W2DataResponse)
def get_w2_data(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the stored W-2 snapshot."""
    record = services.get_w2(db, current.user_id)
    user = get_profile(db, current.user_id)
    return W2DataResponse(data=record, last_extraction=services.last_w2_extraction(user))


@router.put("/w2-data", response_model=W2DataResponse)
def update_w2_data(
    request: W2Update,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Correct individual W-2 fields. Unspecified fields are kept."""
    record = services.update_w2(db, current.user_id, request.model_dump(exclude_unset=True))
    return W2DataResponse(message="W-2 data updated successfully", data=record)


@router.post("/generate-1098", response_model=Form1098GenerateResponse)
def generate_1098(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Estimate Form 1098 from W-2 wages.

    Interest is 4% of wages (max $10,000), insurance 0.5% and principal
    3.5x wages.
    """
    form = services.generate_1098(db, current.user_id)
    return Form1098GenerateResponse(data=form, generated_date=form.generated_date)


@router.get("/1098-data", response_model=Form1098DataResponse)
def get_1098_data(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the stored Form 1098."""
    form = services.get_1098(db, current.user_id)
    user = get_profile(db, current.user_id)
    return Form1098DataResponse(data=form, last_generation=services.last_1098_generation(user))


@router.put("/1098-data", response_model=Form1098DataResponse)
def update_1098_data(
    request: Form1098Update,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Correct individual 1098 fields. Unspecified fields are kept."""
    form = services.update_1098(db, current.user_id, request.model_dump(exclude_unset=True))
    return Form1098DataResponse(message="1098 data updated successfully", data=form)


@router.get("/download-1098")
def download_1098_pdf(
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Download Form 1098 as PDF.

    Returns a printable statement built from the stored 1098 data. The PDF
    is fully rendered before any response bytes are sent.
    """
    form = services.get_1098(db, current.user_id)
    user = get_profile(db, current.user_id)
    filename = (
        f"Form1098_{form.form_year}_"
        f"{_safe_filename_part(user.first_name)}_{_safe_filename_part(user.last_name)}.pdf"
    )
    pdf = render_form_1098_pdf(form)

    return StreamingResponse(
        iter_pdf_chunks(pdf),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )
