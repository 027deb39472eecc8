"""Local file blob store for image bytes."""

import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from photo_journal.domain.errors import BlobStoreError
from photo_journal.services.entries import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class FileBlobStore(BlobStore):
    """Flat directory with one ``{uuid}.jpg`` file per blob."""

    root: Path
    suffix: str = ".jpg"

    def path_for(self, ref: str) -> Path:
        """Resolve a blob reference to its file, rejecting foreign paths."""
        if not ref or Path(ref).name != ref:
            raise BlobStoreError(f"Invalid blob reference: {ref!r}")
        return self.root / ref

    def put(self, data: bytes) -> str:
        """Write bytes under a new unique filename and return it."""
        ref = f"{uuid4()}{self.suffix}"
        path = self.path_for(ref)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BlobStoreError(f"Blob directory unavailable: {self.root}") from exc
        try:
            path.write_bytes(data)
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise BlobStoreError(f"Failed to write blob {ref}") from exc
        return ref

    def get(self, ref: str) -> bytes | None:
        """Return blob bytes, or None when the file is absent."""
        try:
            return self.path_for(ref).read_bytes()
        except FileNotFoundError:
            return None
        except OSError:
            logger.warning("Failed to read blob %s", ref, exc_info=True)
            return None

    def delete(self, ref: str) -> None:
        """Remove a blob; failures are logged and never raised."""
        try:
            self.path_for(ref).unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to delete blob %s", ref, exc_info=True)
