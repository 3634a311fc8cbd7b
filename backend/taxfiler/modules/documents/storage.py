"""
Disk storage for uploaded tax documents.

Files live in one flat directory per document kind:
    <UPLOAD_DIR>/w9-forms/w9-<userId>-<epochMillis>-<random>.<ext>
    <UPLOAD_DIR>/w2-forms/w2-<userId>-<epochMillis>-<random>.<ext>
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from taxfiler.core.config import settings
from taxfiler.shared.models.base import utcnow

logger = logging.getLogger(__name__)

DOCUMENT_KINDS = ("w9", "w2")


@dataclass
class StoredFile:
    """A document written to disk."""
    file_name: str
    upload_date: datetime
    path: Path


class DocumentStore:
    """Writes uploads under per-kind directories with collision-free names."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def directory_for(self, kind: str) -> Path:
        if kind not in DOCUMENT_KINDS:
            raise ValueError(f"Unknown document kind: {kind}")
        return self.base_dir / f"{kind}-forms"

    def ensure_directories(self) -> None:
        """Create the per-kind directories. Safe to call repeatedly."""
        for kind in DOCUMENT_KINDS:
            self.directory_for(kind).mkdir(parents=True, exist_ok=True)
        logger.info(f"Upload directories ready under {self.base_dir}")

    @staticmethod
    def generate_name(kind: str, user_id: str, extension: str, now: Optional[datetime] = None) -> str:
        now = now or utcnow()
        millis = int(now.timestamp() * 1000)
        suffix = secrets.randbelow(10**9)
        return f"{kind}-{user_id}-{millis}-{suffix}{extension}"

    def save(self, kind: str, user_id: str, extension: str, content: bytes) -> StoredFile:
        """Write content to a new file. Existing files are never overwritten."""
        directory = self.directory_for(kind)
        uploaded_at = utcnow()
        while True:
            file_name = self.generate_name(kind, user_id, extension, uploaded_at)
            path = directory / file_name
            try:
                # 'x' fails instead of clobbering an existing file
                with open(path, "xb") as fh:
                    fh.write(content)
                break
            except FileExistsError:
                continue

        logger.info(f"Stored {kind} upload {file_name} ({len(content)} bytes)")
        return StoredFile(file_name=file_name, upload_date=uploaded_at, path=path)

    def path_for(self, kind: str, file_name: str) -> Path:
        return self.directory_for(kind) / Path(file_name).name

    def exists(self, kind: str, file_name: Optional[str]) -> bool:
        if not file_name:
            return False
        return self.path_for(kind, file_name).is_file()


def get_document_store() -> DocumentStore:
    """Dependency providing the configured document store."""
    return DocumentStore(settings.UPLOAD_DIR)
