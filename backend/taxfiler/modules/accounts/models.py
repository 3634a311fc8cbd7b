"""
Account module database models.
"""

from sqlalchemy import Column, String, DateTime, Boolean, JSON, Enum
from sqlalchemy.orm import relationship

from taxfiler.shared.models.base import BaseModel


FILING_STATUSES = ('single', 'married-joint', 'married-separate', 'head-of-household', 'qualifying-widow')

TAX_CLASSIFICATIONS = (
    'individual', 'sole_proprietor', 'c_corporation', 's_corporation',
    'partnership', 'trust_estate', 'llc', 'other',
)

FORM_COMPLETION_STATUSES = ('not_started', 'in_progress', 'completed')


class User(BaseModel):
    """A filer account with profile, tax fields and document status."""

    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    filing_status = Column(Enum(*FILING_STATUSES, name='filing_status'), nullable=True)

    # W-9 fields
    tax_classification = Column(Enum(*TAX_CLASSIFICATIONS, name='tax_classification'), nullable=True)
    business_name = Column(String(200), nullable=True)
    ssn = Column(String(11), nullable=True)
    ein = Column(String(10), nullable=True)

    address = Column(JSON, nullable=True, default=dict)  # {street, city, state, zip}
    income = Column(JSON, nullable=True, default=dict)  # {w2Data, lastW2Extraction}
    deductions = Column(JSON, nullable=True, default=dict)  # {form1098, last1098Generation}

    w9_uploaded = Column(Boolean, nullable=False, default=False)
    w9_upload_date = Column(DateTime(timezone=True), nullable=True)
    w9_file_name = Column(String(255), nullable=True)

    w2_uploaded = Column(Boolean, nullable=False, default=False)
    w2_upload_date = Column(DateTime(timezone=True), nullable=True)
    w2_file_name = Column(String(255), nullable=True)

    form_completion_status = Column(
        Enum(*FORM_COMPLETION_STATUSES, name='form_completion_status'),
        nullable=False,
        default='not_started',
    )
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    dependents = relationship(
        "Dependent",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Dependent.created_at",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


# Register Dependent so the relationship above resolves wherever User is used
from taxfiler.modules.dependents.models import Dependent  # noqa: E402,F401
