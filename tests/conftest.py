"""Shared test fixtures."""

import io
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
from PIL import Image

from photo_journal.adapters.pdf_renderer import ReportLabPdfRenderer
from photo_journal.config import (
    API_KEY_SNAPSHOT_KEY,
    ENTRIES_SNAPSHOT_KEY,
    ITEMS_SNAPSHOT_KEY,
    Settings,
)
from photo_journal.containers import AppContainer
from photo_journal.domain.analysis import ChatCompletionRequest
from photo_journal.domain.errors import PersistenceError
from photo_journal.services.analysis import AnalysisService, ChatCompletionClient
from photo_journal.services.credentials import CredentialService
from photo_journal.services.entries import BlobStore, EntryRepository
from photo_journal.services.export import ExportService
from photo_journal.services.items import ItemPriceService
from photo_journal.services.layout import DocumentLayoutEngine
from photo_journal.services.snapshots import SnapshotStore

FIXED_NOW = datetime(2025, 3, 6, 15, 4, 5, tzinfo=UTC)


def make_jpeg(width: int = 40, height: int = 20, color: str = "red") -> bytes:
    """Encode a solid-color JPEG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="JPEG")
    return buffer.getvalue()


@dataclass
class InMemorySnapshotStore(SnapshotStore):
    """In-memory snapshot store for tests."""

    data: dict[str, bytes] = field(default_factory=dict)
    fail_writes: bool = False
    writes: int = 0

    def read(self, key: str) -> bytes | None:
        return self.data.get(key)

    def write(self, key: str, data: bytes) -> None:
        if self.fail_writes:
            raise PersistenceError(f"write refused for {key}")
        self.writes += 1
        self.data[key] = data

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


@dataclass
class InMemoryBlobStore(BlobStore):
    """In-memory blob store for tests."""

    blobs: dict[str, bytes] = field(default_factory=dict)
    fail_deletes: bool = False
    deleted: list[str] = field(default_factory=list)

    def put(self, data: bytes) -> str:
        ref = f"{uuid4()}.jpg"
        self.blobs[ref] = data
        return ref

    def get(self, ref: str) -> bytes | None:
        return self.blobs.get(ref)

    def delete(self, ref: str) -> None:
        self.deleted.append(ref)
        if self.fail_deletes:
            return
        self.blobs.pop(ref, None)


@dataclass
class FakeChatCompletionClient(ChatCompletionClient):
    """Fake chat-completion client returning a fixed label string."""

    content: str = " milk, eggs, bread "
    error: Exception | None = None
    requests: list[tuple[ChatCompletionRequest, str]] = field(default_factory=list)

    async def complete(self, request: ChatCompletionRequest, api_key: str) -> str:
        self.requests.append((request, api_key))
        if self.error is not None:
            raise self.error
        return self.content


class SteppingClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime = FIXED_NOW) -> None:
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def snapshot_store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def repository(
    blob_store: InMemoryBlobStore, snapshot_store: InMemorySnapshotStore
) -> EntryRepository:
    return EntryRepository(
        blob_store=blob_store,
        snapshot_store=snapshot_store,
        key=ENTRIES_SNAPSHOT_KEY,
        clock=SteppingClock(),
    )


@pytest.fixture
def layout_engine() -> DocumentLayoutEngine:
    return DocumentLayoutEngine(app_name="PhotoJournal")


@pytest.fixture
def export_service(
    blob_store: InMemoryBlobStore,
    layout_engine: DocumentLayoutEngine,
    tmp_path: Path,
) -> ExportService:
    return ExportService(
        blob_store=blob_store,
        layout_engine=layout_engine,
        renderer=ReportLabPdfRenderer(),
        export_dir=tmp_path / "exports",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def chat_client() -> FakeChatCompletionClient:
    return FakeChatCompletionClient()


@pytest.fixture
def credential_service(snapshot_store: InMemorySnapshotStore) -> CredentialService:
    service = CredentialService(snapshot_store, API_KEY_SNAPSHOT_KEY)
    service.set_api_key("sk-test")
    return service


@pytest.fixture
def analysis_service(
    chat_client: FakeChatCompletionClient, credential_service: CredentialService
) -> AnalysisService:
    return AnalysisService(
        client=chat_client,
        credentials=credential_service,
        model="gpt-4o",
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path / "data",
        export_dir=tmp_path / "exports",
        openai_api_key=None,
    )


@pytest.fixture
def container(
    settings: Settings,
    repository: EntryRepository,
    snapshot_store: InMemorySnapshotStore,
    export_service: ExportService,
    analysis_service: AnalysisService,
    credential_service: CredentialService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        entry_repository=repository,
        item_price_service=ItemPriceService(snapshot_store, ITEMS_SNAPSHOT_KEY),
        credential_service=credential_service,
        export_service=export_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
