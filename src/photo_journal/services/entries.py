"""Entry repository backed by whole-collection snapshots."""

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from photo_journal.domain.entries import PHOTO_ENTRIES_ADAPTER, PhotoEntry
from photo_journal.domain.errors import EntryNotFoundError
from photo_journal.domain.items import LineItem, remove_at_offsets
from photo_journal.services.snapshots import SnapshotStore, load_snapshot, save_snapshot

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Storage for raw image bytes."""

    def put(self, data: bytes) -> str:
        """Store bytes under a new reference and return it."""

    def get(self, ref: str) -> bytes | None:
        """Return stored bytes, or None when the blob is missing."""

    def delete(self, ref: str) -> None:
        """Remove a blob without raising."""


class EntryRepository:
    """Ordered photo entries persisted as one snapshot.

    Every mutation rewrites the whole collection. In-memory state is only
    replaced once the snapshot write succeeded, and all operations are
    serialized through one lock.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        snapshot_store: SnapshotStore,
        key: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.blob_store = blob_store
        self.snapshot_store = snapshot_store
        self.key = key
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._lock = threading.RLock()
        self._entries: list[PhotoEntry] = []
        self.load()

    @property
    def entries(self) -> tuple[PhotoEntry, ...]:
        """Immutable snapshot of the current collection."""
        with self._lock:
            return tuple(self._entries)

    def load(self) -> list[PhotoEntry]:
        """Reload the collection from the snapshot store."""
        with self._lock:
            self._entries = load_snapshot(
                self.snapshot_store, self.key, PHOTO_ENTRIES_ADAPTER
            )
            return list(self._entries)

    def save(self, entries: Sequence[PhotoEntry]) -> None:
        """Persist the given collection and make it current."""
        with self._lock:
            save_snapshot(self.snapshot_store, self.key, PHOTO_ENTRIES_ADAPTER, entries)
            self._entries = list(entries)

    def get(self, entry_id: UUID) -> PhotoEntry:
        with self._lock:
            return self._entries[self._index_of(entry_id)]

    def add(self, image_bytes: bytes, caption: str) -> PhotoEntry:
        """Store the image, append a new entry and persist."""
        with self._lock:
            image_filename = self.blob_store.put(image_bytes)
            entry = PhotoEntry(
                image_filename=image_filename,
                caption=caption,
                created_at=self._clock(),
            )
            try:
                self.save([*self._entries, entry])
            except Exception:
                self.blob_store.delete(image_filename)
                raise
            logger.info("Added entry %s", entry.id)
            return entry

    def update(self, entry: PhotoEntry) -> PhotoEntry:
        """Replace the caption and item list of the entry with the same id.

        The stored image reference and creation time are kept.
        """
        with self._lock:
            index = self._index_of(entry.id)
            current = self._entries[index]
            changes = {"caption": entry.caption, "item_list": entry.item_list}
            updated = list(self._entries)
            updated[index] = PhotoEntry.model_validate(
                current.model_copy(update=changes).model_dump()
            )
            self.save(updated)
            return updated[index]

    def update_caption(self, entry_id: UUID, caption: str) -> PhotoEntry:
        with self._lock:
            entry = self.get(entry_id)
            return self.update(entry.model_copy(update={"caption": caption}))

    def delete(self, indices: Iterable[int]) -> list[PhotoEntry]:
        """Delete entries at positions of the current collection.

        Positions refer to the collection before the batch. The snapshot is
        written once, and blobs are removed best-effort only after it succeeds.
        """
        with self._lock:
            positions = sorted(set(indices))
            remaining = remove_at_offsets(self._entries, positions)
            removed = [self._entries[position] for position in positions]
            self.save(remaining)
            for entry in removed:
                self.blob_store.delete(entry.image_filename)
            if removed:
                logger.info("Deleted %d entries", len(removed))
            return removed

    def delete_entry(self, entry_id: UUID) -> PhotoEntry:
        with self._lock:
            return self.delete([self._index_of(entry_id)])[0]

    def attach_item_list(self, entry_id: UUID, items: Sequence[LineItem]) -> PhotoEntry:
        """Embed an item list in the entry, replacing any previous one."""
        with self._lock:
            entry = self.get(entry_id)
            return self.update(entry.model_copy(update={"item_list": list(items)}))

    def detach_item_list(self, entry_id: UUID) -> PhotoEntry:
        with self._lock:
            entry = self.get(entry_id)
            return self.update(entry.model_copy(update={"item_list": None}))

    def read_item_list(self, entry_id: UUID) -> list[LineItem]:
        """Return the embedded item list, or an empty list when absent."""
        with self._lock:
            return list(self.get(entry_id).item_list or [])

    def read_image(self, entry_id: UUID) -> bytes | None:
        """Return the entry's image bytes, or None for a missing blob."""
        entry = self.get(entry_id)
        return self.blob_store.get(entry.image_filename)

    def _index_of(self, entry_id: UUID) -> int:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        raise EntryNotFoundError(entry_id)
