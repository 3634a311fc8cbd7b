"""
Dependent module database models.
"""

from sqlalchemy import Column, String, Date, ForeignKey, Index
from sqlalchemy.orm import relationship

from taxfiler.shared.models.base import BaseModel


class Dependent(BaseModel):
    """A person claimed on a user's return."""

    __tablename__ = "dependents"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(200), nullable=False)
    relation_type = Column("relationship", String(100), nullable=True)  # child, parent, relative, etc.
    dob = Column(Date, nullable=True)
    ssn = Column(String(11), nullable=True)

    # Relationships
    user = relationship("User", back_populates="dependents")

    __table_args__ = (
        Index('idx_dependents_user', 'user_id'),
    )
