"""Chat-completion HTTP client for image analysis."""

import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from photo_journal.domain.analysis import (
    ApiErrorEnvelope,
    ChatCompletionRequest,
    ChatCompletionResponse,
)
from photo_journal.domain.errors import AnalysisError
from photo_journal.services.analysis import ChatCompletionClient

logger = logging.getLogger(__name__)


@dataclass
class HttpxChatCompletionClient(ChatCompletionClient):
    """Chat-completion client implemented with httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 30.0

    @classmethod
    def create(
        cls, base_url: str, timeout: float = 30.0
    ) -> "HttpxChatCompletionClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def complete(self, request: ChatCompletionRequest, api_key: str) -> str:
        """POST the request and return the first completion's text."""
        url = f"{self.base_url}/chat/completions"
        try:
            response = await self.http_client.post(
                url,
                json=request.model_dump(),
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as exc:
            raise AnalysisError.timeout(self.timeout) from exc
        except httpx.HTTPError as exc:
            raise AnalysisError.network_error(str(exc) or type(exc).__name__) from exc

        logger.info("Analysis response status %s", response.status_code)
        if response.status_code != httpx.codes.OK:
            message = _error_message(response.content)
            if message is not None:
                raise AnalysisError.api_error(message)
            raise AnalysisError.http_error(response.status_code)

        if not response.content:
            raise AnalysisError.no_data_received()

        try:
            completion = ChatCompletionResponse.model_validate_json(response.content)
        except ValidationError:
            message = _error_message(response.content)
            if message is not None:
                raise AnalysisError.api_error(message) from None
            raise AnalysisError.invalid_response() from None
        content = completion.choices[0].message.content
        if content is None:
            raise AnalysisError.invalid_response()
        return content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _error_message(body: bytes) -> str | None:
    """Return the message of a top-level error object, if the body has one."""
    if not body:
        return None
    try:
        return ApiErrorEnvelope.model_validate_json(body).error.message
    except ValidationError:
        return None
