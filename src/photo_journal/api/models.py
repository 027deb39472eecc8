"""Request bodies accepted by the HTTP API."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CaptionUpdate(BaseModel):
    caption: str


class IndexBatch(BaseModel):
    """Positions of the current collection to delete as one batch."""

    indices: list[int] = Field(min_length=1)


class ItemPayload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID | None = None
    name: str = Field(min_length=1)
    price: Decimal = Field(default=Decimal("0"), ge=0)


class ItemPatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1)
    price: Decimal | None = Field(default=None, ge=0)


class ItemListPayload(BaseModel):
    items: list[ItemPayload]


class LabelsPayload(BaseModel):
    labels: str


class ApiKeyPayload(BaseModel):
    api_key: str = Field(min_length=1)
