"""Error taxonomy for the photo journal core."""

from enum import StrEnum
from uuid import UUID


class PhotoJournalError(Exception):
    """Base class for all photo journal errors."""


class BlobStoreError(PhotoJournalError, OSError):
    """Raised when image bytes cannot be written to the blob store."""


class PersistenceError(PhotoJournalError):
    """Raised when a snapshot cannot be encoded or written."""


class ExportError(PhotoJournalError):
    """Raised when a document cannot be generated or written."""


class InvalidImageError(PhotoJournalError):
    """Raised when bytes cannot be decoded as an image."""


class CredentialRequiredError(PhotoJournalError):
    """Raised when analysis is requested without a configured API key."""

    def __init__(self) -> None:
        super().__init__("An API key is required before images can be analyzed")


class EntryNotFoundError(PhotoJournalError, LookupError):
    """Raised when no entry or item matches the requested id."""

    def __init__(self, entry_id: UUID) -> None:
        super().__init__(f"No record with id {entry_id}")
        self.entry_id = entry_id


class AnalysisErrorKind(StrEnum):
    """Failure categories of the remote analysis call."""

    IMAGE_PROCESSING_FAILED = "image_processing_failed"
    NO_DATA_RECEIVED = "no_data_received"
    INVALID_RESPONSE = "invalid_response"
    API_ERROR = "api_error"
    HTTP_ERROR = "http_error"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"


_DEFAULT_MESSAGES = {
    AnalysisErrorKind.IMAGE_PROCESSING_FAILED: (
        "Failed to process the image for analysis"
    ),
    AnalysisErrorKind.NO_DATA_RECEIVED: "No data received from the API",
    AnalysisErrorKind.INVALID_RESPONSE: (
        "The API response was invalid or in an unexpected format"
    ),
    AnalysisErrorKind.TIMEOUT: "The analysis request timed out",
    AnalysisErrorKind.NETWORK_ERROR: "The analysis service could not be reached",
}


class AnalysisError(PhotoJournalError):
    """Typed failure of the image analysis adapter."""

    def __init__(
        self,
        kind: AnalysisErrorKind,
        message: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.kind = kind
        self.detail = message
        self.status_code = status_code
        super().__init__(self.description)

    @property
    def description(self) -> str:
        """Human readable description of the failure."""
        if self.kind is AnalysisErrorKind.API_ERROR:
            return f"API Error: {self.detail}"
        if self.kind is AnalysisErrorKind.HTTP_ERROR:
            return f"HTTP Error: Status code {self.status_code}"
        base = _DEFAULT_MESSAGES[self.kind]
        return f"{base}: {self.detail}" if self.detail else base

    @classmethod
    def image_processing_failed(cls, detail: str | None = None) -> "AnalysisError":
        return cls(AnalysisErrorKind.IMAGE_PROCESSING_FAILED, detail)

    @classmethod
    def no_data_received(cls) -> "AnalysisError":
        return cls(AnalysisErrorKind.NO_DATA_RECEIVED)

    @classmethod
    def invalid_response(cls) -> "AnalysisError":
        return cls(AnalysisErrorKind.INVALID_RESPONSE)

    @classmethod
    def api_error(cls, message: str) -> "AnalysisError":
        return cls(AnalysisErrorKind.API_ERROR, message)

    @classmethod
    def http_error(cls, status_code: int) -> "AnalysisError":
        return cls(AnalysisErrorKind.HTTP_ERROR, status_code=status_code)

    @classmethod
    def timeout(cls, seconds: float | None = None) -> "AnalysisError":
        detail = f"no response within {seconds:g}s" if seconds else None
        return cls(AnalysisErrorKind.TIMEOUT, detail)

    @classmethod
    def network_error(cls, detail: str) -> "AnalysisError":
        return cls(AnalysisErrorKind.NETWORK_ERROR, detail)
