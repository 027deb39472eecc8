"""Locally persisted API credential."""

import json
import logging
import threading

from photo_journal.services.snapshots import SnapshotStore

logger = logging.getLogger(__name__)


class CredentialService:
    """Holds the single user-supplied API key required for analysis."""

    def __init__(
        self, snapshot_store: SnapshotStore, key: str, fallback: str | None = None
    ) -> None:
        self.snapshot_store = snapshot_store
        self.key = key
        self.fallback = fallback
        self._lock = threading.RLock()

    def get_api_key(self) -> str | None:
        """Return the stored key, else the configured fallback."""
        with self._lock:
            raw = self.snapshot_store.read(self.key)
        if raw is not None:
            try:
                value = json.loads(raw)
            except ValueError:
                logger.warning("Discarding unreadable credential snapshot")
            else:
                if isinstance(value, str) and value.strip():
                    return value.strip()
        if self.fallback and self.fallback.strip():
            return self.fallback.strip()
        return None

    def is_configured(self) -> bool:
        return self.get_api_key() is not None

    def set_api_key(self, api_key: str) -> None:
        """Persist a new API key."""
        cleaned = api_key.strip()
        if not cleaned:
            raise ValueError("API key must not be blank")
        with self._lock:
            self.snapshot_store.write(self.key, json.dumps(cleaned).encode("utf-8"))

    def clear(self) -> None:
        """Forget the stored key; the configured fallback still applies."""
        with self._lock:
            self.snapshot_store.delete(self.key)
