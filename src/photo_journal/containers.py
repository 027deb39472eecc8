"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from photo_journal.adapters.file_blob_store import FileBlobStore
from photo_journal.adapters.json_snapshot_store import JsonFileSnapshotStore
from photo_journal.adapters.openai_chat_client import HttpxChatCompletionClient
from photo_journal.adapters.pdf_renderer import ReportLabPdfRenderer
from photo_journal.config import (
    API_KEY_SNAPSHOT_KEY,
    ENTRIES_SNAPSHOT_KEY,
    ITEMS_SNAPSHOT_KEY,
    Settings,
)
from photo_journal.services.analysis import AnalysisService
from photo_journal.services.credentials import CredentialService
from photo_journal.services.entries import EntryRepository
from photo_journal.services.export import ExportService
from photo_journal.services.items import ItemPriceService
from photo_journal.services.layout import DocumentLayoutEngine


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    entry_repository: EntryRepository
    item_price_service: ItemPriceService
    credential_service: CredentialService
    export_service: ExportService
    analysis_service: AnalysisService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    snapshot_store = JsonFileSnapshotStore(resolved_settings.store_dir)
    blob_store = FileBlobStore(resolved_settings.photos_dir)
    entry_repository = EntryRepository(
        blob_store=blob_store,
        snapshot_store=snapshot_store,
        key=ENTRIES_SNAPSHOT_KEY,
    )
    item_price_service = ItemPriceService(snapshot_store, ITEMS_SNAPSHOT_KEY)
    credential_service = CredentialService(
        snapshot_store,
        API_KEY_SNAPSHOT_KEY,
        fallback=resolved_settings.openai_api_key,
    )
    layout_engine = DocumentLayoutEngine(
        app_name=resolved_settings.app_name,
        currency_symbol=resolved_settings.currency_symbol,
        timezone=ZoneInfo(resolved_settings.display_timezone),
    )
    export_service = ExportService(
        blob_store=blob_store,
        layout_engine=layout_engine,
        renderer=ReportLabPdfRenderer(),
        export_dir=resolved_settings.resolved_export_dir,
    )
    chat_client = HttpxChatCompletionClient.create(
        resolved_settings.openai_base_url,
        timeout=resolved_settings.analysis_timeout_seconds,
    )
    analysis_service = AnalysisService(
        client=chat_client,
        credentials=credential_service,
        model=resolved_settings.openai_model,
        max_tokens=resolved_settings.analysis_max_tokens,
        timeout_seconds=resolved_settings.analysis_timeout_seconds,
        max_dimension=resolved_settings.analysis_image_max_dimension,
        jpeg_quality=resolved_settings.analysis_jpeg_quality,
    )

    async def close_resources() -> None:
        await chat_client.close()

    return AppContainer(
        settings=resolved_settings,
        entry_repository=entry_repository,
        item_price_service=item_price_service,
        credential_service=credential_service,
        export_service=export_service,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
