"""Shared database models."""

from taxfiler.shared.models.base import BaseModel, TimestampMixin, new_id, utcnow

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "new_id",
    "utcnow",
]
