"""Request and response records for the image analysis call."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field

from photo_journal.domain.errors import AnalysisError


class TextContentPart(BaseModel):
    """Plain-text instruction part of a chat message."""

    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    url: str


class ImageContentPart(BaseModel):
    """Image part of a chat message, carried as a data URI."""

    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


class ChatMessage(BaseModel):
    role: str = "user"
    content: list[TextContentPart | ImageContentPart]


class ChatCompletionRequest(BaseModel):
    """Body of a chat-completion request."""

    model: str
    messages: list[ChatMessage]
    max_tokens: int = Field(gt=0)


class CompletionMessage(BaseModel):
    content: str | None = None


class CompletionChoice(BaseModel):
    message: CompletionMessage


class ChatCompletionResponse(BaseModel):
    """Successful chat-completion body; only the fields the adapter reads."""

    choices: list[CompletionChoice] = Field(min_length=1)


class ApiErrorBody(BaseModel):
    message: str


class ApiErrorEnvelope(BaseModel):
    """Top-level ``{"error": {"message": ...}}`` body."""

    error: ApiErrorBody


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result delivered once an analysis task completes."""

    labels: str | None = None
    error: AnalysisError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
