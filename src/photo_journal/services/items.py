"""Standalone item price list service."""

import threading
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import TypeVar

from photo_journal.domain.entries import LINE_ITEMS_ADAPTER
from photo_journal.domain.items import ItemList, LineItem
from photo_journal.services.snapshots import SnapshotStore, load_snapshot, save_snapshot

T = TypeVar("T")


class ItemPriceService:
    """Global item editor persisted under its own snapshot key.

    Independent from the item lists embedded in photo entries.
    """

    def __init__(self, snapshot_store: SnapshotStore, key: str) -> None:
        self.snapshot_store = snapshot_store
        self.key = key
        self._lock = threading.RLock()
        self._list = ItemList()
        self.load()

    @property
    def items(self) -> list[LineItem]:
        with self._lock:
            return self._list.items

    def load(self) -> list[LineItem]:
        """Reload items from the snapshot store."""
        with self._lock:
            self._list = ItemList(
                load_snapshot(self.snapshot_store, self.key, LINE_ITEMS_ADAPTER)
            )
            return self._list.items

    def save(self) -> None:
        with self._lock:
            save_snapshot(
                self.snapshot_store, self.key, LINE_ITEMS_ADAPTER, self._list.items
            )

    def add_item(self, name: str, price: Decimal | float | str = 0) -> LineItem:
        """Append an item (default price zero) and persist."""
        with self._lock:
            return self._commit(lambda draft: draft.add_item(name, price))

    def update_item(self, item: LineItem) -> LineItem:
        with self._lock:
            return self._commit(lambda draft: draft.update_item(item))

    def delete_items(self, indices: Iterable[int]) -> None:
        positions = list(indices)
        with self._lock:
            self._commit(lambda draft: draft.delete_items(positions))

    def delete_all(self) -> None:
        with self._lock:
            self._commit(lambda draft: draft.delete_all())

    def generate_items_from_string(self, text: str) -> list[LineItem]:
        """Replace all items with zero-priced items parsed from labels."""
        with self._lock:
            return self._commit(lambda draft: draft.replace_from_string(text))

    def total_price(self) -> Decimal:
        with self._lock:
            return self._list.total_price()

    def _commit(self, change: Callable[[ItemList], T]) -> T:
        """Apply a change to a draft copy, persist it, then make it current."""
        draft = ItemList(self._list.items)
        result = change(draft)
        save_snapshot(self.snapshot_store, self.key, LINE_ITEMS_ADAPTER, draft.items)
        self._list = draft
        return result
