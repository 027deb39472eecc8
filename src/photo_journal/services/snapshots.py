"""Whole-collection snapshot persistence helpers."""

import logging
from collections.abc import Sequence
from typing import Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from photo_journal.domain.errors import PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotStore(Protocol):
    """Key-value persistence for serialized snapshots."""

    def read(self, key: str) -> bytes | None:
        """Return the stored bytes for a key, if present."""

    def write(self, key: str, data: bytes) -> None:
        """Atomically replace the bytes stored under a key."""

    def delete(self, key: str) -> None:
        """Remove a key if present."""


def load_snapshot(
    store: SnapshotStore, key: str, adapter: TypeAdapter[list[T]]
) -> list[T]:
    """Decode a stored collection, discarding it when it cannot be decoded."""
    raw = store.read(key)
    if raw is None:
        return []
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        logger.warning(
            "Discarding unreadable snapshot %s (%d errors)", key, exc.error_count()
        )
        return []


def save_snapshot(
    store: SnapshotStore,
    key: str,
    adapter: TypeAdapter[list[T]],
    values: Sequence[T],
) -> None:
    """Serialize the whole collection and write it under one key."""
    try:
        data = adapter.dump_json(list(values))
    except ValueError as exc:
        raise PersistenceError(f"Failed to encode snapshot {key}") from exc
    store.write(key, data)
