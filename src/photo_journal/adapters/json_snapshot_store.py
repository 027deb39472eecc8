"""File-backed key-value store for JSON snapshots."""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from photo_journal.domain.errors import PersistenceError
from photo_journal.services.snapshots import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class JsonFileSnapshotStore(SnapshotStore):
    """Stores each key as ``{key}.json`` in one directory."""

    root: Path

    def path_for(self, key: str) -> Path:
        """Return the file backing a key."""
        if not key or Path(key).name != key:
            raise PersistenceError(f"Invalid snapshot key: {key!r}")
        return self.root / f"{key}.json"

    def read(self, key: str) -> bytes | None:
        """Return the stored bytes for a key, if present."""
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Failed to read snapshot {key}") from exc

    def write(self, key: str, data: bytes) -> None:
        """Write to a temp file and rename it over the key's file."""
        path = self.path_for(key)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.root, prefix=f".{key}.", suffix=".tmp"
            )
        except OSError as exc:
            raise PersistenceError(f"Failed to write snapshot {key}") from exc
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Failed to write snapshot {key}") from exc
        logger.debug("Wrote snapshot %s (%d bytes)", key, len(data))

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Failed to delete snapshot {key}") from exc
