"""Domain models for photo journal entries."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from photo_journal.domain.items import LineItem


class PhotoEntry(BaseModel):
    """One photo with its caption, timestamp and optional item list."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    image_filename: str
    caption: str = ""
    created_at: datetime
    item_list: list[LineItem] | None = None


PHOTO_ENTRIES_ADAPTER = TypeAdapter(list[PhotoEntry])
LINE_ITEMS_ADAPTER = TypeAdapter(list[LineItem])
