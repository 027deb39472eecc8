"""Image analysis through a remote vision-language model."""

import asyncio
import base64
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from photo_journal.domain.analysis import (
    AnalysisOutcome,
    ChatCompletionRequest,
    ChatMessage,
    ImageContentPart,
    ImageUrl,
    TextContentPart,
)
from photo_journal.domain.errors import (
    AnalysisError,
    CredentialRequiredError,
    InvalidImageError,
)
from photo_journal.domain.items import LineItem, items_from_labels
from photo_journal.services.credentials import CredentialService
from photo_journal.services.images import encode_jpeg

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = (
    "What objects (not humans or pets) can you identify in this image? "
    "Please list them as comma-separated values."
)


class ChatCompletionClient(Protocol):
    """Interface for the remote chat-completion endpoint."""

    async def complete(self, request: ChatCompletionRequest, api_key: str) -> str:
        """Return the text of the first completion or raise AnalysisError."""


@dataclass
class AnalysisHandle:
    """Handle on a running analysis task.

    Discarding the handle cancels the task and guarantees the completion
    callback never runs.
    """

    task: asyncio.Task[None] | None = None
    discarded: bool = False

    def discard(self) -> None:
        self.discarded = True
        if self.task is not None:
            self.task.cancel()

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()


@dataclass
class AnalysisService:
    """Prepares images, calls the model and returns comma-delimited labels.

    Results are never applied to entries here; callers decide whether to use
    them as a caption or an item list.
    """

    client: ChatCompletionClient
    credentials: CredentialService
    model: str
    max_tokens: int = 300
    timeout_seconds: float = 30.0
    max_dimension: int = 512
    jpeg_quality: int = 70
    prompt: str = ANALYSIS_PROMPT

    def require_api_key(self) -> str:
        """Return the configured key or raise CredentialRequiredError."""
        api_key = self.credentials.get_api_key()
        if api_key is None:
            raise CredentialRequiredError()
        return api_key

    async def analyze(self, image_bytes: bytes | None) -> str:
        """Return the labels the model identifies in the image."""
        return await self._analyze(image_bytes, self.require_api_key())

    async def _analyze(self, image_bytes: bytes | None, api_key: str) -> str:
        if not image_bytes:
            raise AnalysisError.image_processing_failed("Could not load image")
        try:
            jpeg = await asyncio.to_thread(
                encode_jpeg, image_bytes, self.jpeg_quality, self.max_dimension
            )
        except InvalidImageError as exc:
            raise AnalysisError.image_processing_failed() from exc
        request = self.build_request(jpeg)
        try:
            async with asyncio.timeout(self.timeout_seconds):
                content = await self.client.complete(request, api_key)
        except TimeoutError as exc:
            raise AnalysisError.timeout(self.timeout_seconds) from exc
        return content.strip()

    def start(
        self,
        image_bytes: bytes | None,
        on_complete: Callable[[AnalysisOutcome], None],
    ) -> AnalysisHandle:
        """Run an analysis in the background of the running event loop.

        The credential check happens before scheduling. ``on_complete`` runs
        once on the loop that called ``start`` unless the handle is discarded.
        """
        api_key = self.require_api_key()
        handle = AnalysisHandle()

        async def run() -> None:
            try:
                labels = await self._analyze(image_bytes, api_key)
                outcome = AnalysisOutcome(labels=labels)
            except AnalysisError as exc:
                logger.warning("Image analysis failed: %s", exc)
                outcome = AnalysisOutcome(error=exc)
            except Exception as exc:
                logger.exception("Unexpected image analysis failure")
                error = AnalysisError.invalid_response()
                error.__cause__ = exc
                outcome = AnalysisOutcome(error=error)
            if handle.discarded:
                logger.info("Dropping analysis result for a discarded session")
                return
            on_complete(outcome)

        handle.task = asyncio.get_running_loop().create_task(run())
        return handle

    def build_request(self, jpeg: bytes) -> ChatCompletionRequest:
        encoded = base64.b64encode(jpeg).decode("ascii")
        return ChatCompletionRequest(
            model=self.model,
            messages=[
                ChatMessage(
                    content=[
                        TextContentPart(text=self.prompt),
                        ImageContentPart(
                            image_url=ImageUrl(url=f"data:image/jpeg;base64,{encoded}")
                        ),
                    ]
                )
            ],
            max_tokens=self.max_tokens,
        )

    @staticmethod
    def suggest_items(labels: str) -> list[LineItem]:
        """Turn labels into zero-priced line items for an item list draft."""
        return items_from_labels(labels)
