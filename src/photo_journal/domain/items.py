"""Domain models for priced line items."""

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from photo_journal.domain.errors import EntryNotFoundError

T = TypeVar("T")

_CENT = Decimal("0.01")


class LineItem(BaseModel):
    """A named, priced row of an item list."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(min_length=1)
    price: Decimal = Field(default=Decimal("0"), ge=0)


def remove_at_offsets(sequence: Sequence[T], indices: Iterable[int]) -> list[T]:
    """Return the sequence without the given positions.

    Indices refer to the sequence as it was before any removal, so the order
    and duplicates within ``indices`` do not matter.
    """
    targets = set(indices)
    for index in targets:
        if index < 0 or index >= len(sequence):
            raise IndexError(f"index {index} out of range for {len(sequence)} items")
    return [value for position, value in enumerate(sequence) if position not in targets]


def parse_item_names(text: str) -> list[str]:
    """Split a comma-delimited label string into trimmed, non-empty names."""
    return [name for name in (chunk.strip() for chunk in text.split(",")) if name]


def items_from_labels(text: str) -> list[LineItem]:
    """Build zero-priced line items from a comma-delimited label string."""
    return [LineItem(name=name) for name in parse_item_names(text)]


def sum_prices(items: Iterable[LineItem]) -> Decimal:
    """Exact sum of item prices."""
    return sum((item.price for item in items), Decimal("0"))


def format_price(amount: Decimal, currency_symbol: str = "$") -> str:
    """Format an amount with exactly two fraction digits."""
    quantized = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    return f"{currency_symbol}{quantized:.2f}"


class ItemList:
    """Ordered, editable list of line items.

    Used as the editing session for both the standalone price list and the
    item list embedded in a photo entry.
    """

    def __init__(self, items: Iterable[LineItem] = ()) -> None:
        self._items: list[LineItem] = list(items)

    @property
    def items(self) -> list[LineItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def add_item(self, name: str, price: Decimal | float | str = 0) -> LineItem:
        """Append a new item and return it."""
        item = LineItem(name=name, price=price)
        self._items.append(item)
        return item

    def update_item(self, item: LineItem) -> LineItem:
        """Replace the item with the same id, keeping its position."""
        validated = LineItem.model_validate(item.model_dump())
        for position, current in enumerate(self._items):
            if current.id == validated.id:
                self._items[position] = validated
                return validated
        raise EntryNotFoundError(item.id)

    def delete_items(self, indices: Iterable[int]) -> None:
        self._items = remove_at_offsets(self._items, indices)

    def delete_all(self) -> None:
        self._items.clear()

    def replace_from_string(self, text: str) -> list[LineItem]:
        """Replace the contents with zero-priced items parsed from labels."""
        self._items = items_from_labels(text)
        return self.items

    def total_price(self) -> Decimal:
        return sum_prices(self._items)
