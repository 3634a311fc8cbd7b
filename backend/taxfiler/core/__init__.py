"""Core application components."""

from taxfiler.core.config import settings
from taxfiler.core.database import Base, get_db, engine

__all__ = ["settings", "Base", "get_db", "engine"]
