"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response

from photo_journal.api.models import (
    ApiKeyPayload,
    CaptionUpdate,
    IndexBatch,
    ItemListPayload,
    ItemPatch,
    ItemPayload,
    LabelsPayload,
)
from photo_journal.app_logging import configure_logging
from photo_journal.containers import AppContainer
from photo_journal.domain.entries import PhotoEntry
from photo_journal.domain.errors import (
    AnalysisError,
    AnalysisErrorKind,
    BlobStoreError,
    CredentialRequiredError,
    EntryNotFoundError,
    ExportError,
    InvalidImageError,
    PersistenceError,
)
from photo_journal.domain.items import LineItem, format_price, sum_prices
from photo_journal.services.export import ExportedDocument
from photo_journal.services.images import encode_jpeg

API_KEY_SETTINGS_PATH = "/settings/api-key"


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    _register_error_handlers(app, logger)

    def _container(request: Request) -> AppContainer:
        return request.app.state.container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/entries")
    def list_entries(request: Request) -> dict[str, object]:
        entries = _container(request).entry_repository.entries
        return {"entries": [_entry_json(entry) for entry in entries]}

    @app.post("/entries", status_code=status.HTTP_201_CREATED)
    async def add_entry(request: Request, caption: str = "") -> dict[str, object]:
        """Import raw image bytes from the request body as a new entry."""
        state = _container(request)
        body = await request.body()
        if not body:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Request body is empty")
        jpeg = await asyncio.to_thread(
            encode_jpeg, body, quality=state.settings.photo_jpeg_quality
        )
        entry = await asyncio.to_thread(state.entry_repository.add, jpeg, caption)
        return _entry_json(entry)

    @app.post("/entries/delete")
    def delete_entries(batch: IndexBatch, request: Request) -> dict[str, object]:
        """Delete entries by position in the current collection."""
        try:
            removed = _container(request).entry_repository.delete(batch.indices)
        except IndexError as exc:
            raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc)) from exc
        return {"deleted": [str(entry.id) for entry in removed]}

    @app.get("/entries/{entry_id}")
    def get_entry(entry_id: UUID, request: Request) -> dict[str, object]:
        return _entry_json(_container(request).entry_repository.get(entry_id))

    @app.patch("/entries/{entry_id}")
    def update_caption(
        entry_id: UUID, payload: CaptionUpdate, request: Request
    ) -> dict[str, object]:
        repository = _container(request).entry_repository
        return _entry_json(repository.update_caption(entry_id, payload.caption))

    @app.delete("/entries/{entry_id}")
    def delete_entry(entry_id: UUID, request: Request) -> dict[str, str]:
        _container(request).entry_repository.delete_entry(entry_id)
        return {"status": "deleted"}

    @app.get("/entries/{entry_id}/image")
    def entry_image(entry_id: UUID, request: Request) -> Response:
        """Return the entry's JPEG, or 404 when the blob is missing."""
        data = _container(request).entry_repository.read_image(entry_id)
        if data is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Image unavailable")
        return Response(content=data, media_type="image/jpeg")

    @app.get("/entries/{entry_id}/items")
    def read_entry_items(entry_id: UUID, request: Request) -> dict[str, object]:
        state = _container(request)
        items = state.entry_repository.read_item_list(entry_id)
        return _items_json(items, state.settings.currency_symbol)

    @app.put("/entries/{entry_id}/items")
    def attach_entry_items(
        entry_id: UUID, payload: ItemListPayload, request: Request
    ) -> dict[str, object]:
        state = _container(request)
        items = [_line_item(item) for item in payload.items]
        entry = state.entry_repository.attach_item_list(entry_id, items)
        return _items_json(entry.item_list or [], state.settings.currency_symbol)

    @app.delete("/entries/{entry_id}/items")
    def detach_entry_items(entry_id: UUID, request: Request) -> dict[str, str]:
        _container(request).entry_repository.detach_item_list(entry_id)
        return {"status": "detached"}

    @app.get("/entries/{entry_id}/items/export")
    def export_entry_items(entry_id: UUID, request: Request) -> Response:
        state = _container(request)
        items = state.entry_repository.read_item_list(entry_id)
        return _pdf_response(state.export_service.export_item_list(items))

    @app.post("/entries/{entry_id}/analysis")
    async def analyze_entry(entry_id: UUID, request: Request) -> dict[str, object]:
        """Return suggested labels; nothing is applied to the entry."""
        state = _container(request)
        image = await asyncio.to_thread(state.entry_repository.read_image, entry_id)
        labels = await state.analysis_service.analyze(image)
        suggestions = state.analysis_service.suggest_items(labels)
        return {
            "labels": labels,
            "suggested_items": [item.name for item in suggestions],
        }

    @app.post("/export")
    def export_collection(request: Request) -> Response:
        state = _container(request)
        entries = state.entry_repository.entries
        return _pdf_response(state.export_service.export_collection(entries))

    @app.get("/items")
    def list_items(request: Request) -> dict[str, object]:
        state = _container(request)
        items = state.item_price_service.items
        return _items_json(items, state.settings.currency_symbol)

    @app.post("/items", status_code=status.HTTP_201_CREATED)
    def add_item(payload: ItemPayload, request: Request) -> dict[str, object]:
        item = _container(request).item_price_service.add_item(
            payload.name, payload.price
        )
        return item.model_dump(mode="json")

    @app.patch("/items/{item_id}")
    def update_item(
        item_id: UUID, payload: ItemPatch, request: Request
    ) -> dict[str, object]:
        service = _container(request).item_price_service
        current = next((item for item in service.items if item.id == item_id), None)
        if current is None:
            raise EntryNotFoundError(item_id)
        changes = payload.model_dump(exclude_none=True)
        updated = service.update_item(current.model_copy(update=changes))
        return updated.model_dump(mode="json")

    @app.post("/items/delete")
    def delete_items(batch: IndexBatch, request: Request) -> dict[str, str]:
        try:
            _container(request).item_price_service.delete_items(batch.indices)
        except IndexError as exc:
            raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc)) from exc
        return {"status": "deleted"}

    @app.delete("/items")
    def delete_all_items(request: Request) -> dict[str, str]:
        _container(request).item_price_service.delete_all()
        return {"status": "deleted"}

    @app.post("/items/from-labels")
    def items_from_labels(
        payload: LabelsPayload, request: Request
    ) -> dict[str, object]:
        """Replace the price list with zero-priced items parsed from labels."""
        state = _container(request)
        items = state.item_price_service.generate_items_from_string(payload.labels)
        return _items_json(items, state.settings.currency_symbol)

    @app.get("/items/export")
    def export_items(request: Request) -> Response:
        state = _container(request)
        items = state.item_price_service.items
        return _pdf_response(state.export_service.export_item_list(items))

    @app.get("/settings")
    def read_settings(request: Request) -> dict[str, object]:
        state = _container(request)
        return {
            "app_name": state.settings.app_name,
            "api_key_configured": state.credential_service.is_configured(),
        }

    @app.put(API_KEY_SETTINGS_PATH)
    def set_api_key(payload: ApiKeyPayload, request: Request) -> dict[str, str]:
        try:
            _container(request).credential_service.set_api_key(payload.api_key)
        except ValueError as exc:
            raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc)) from exc
        return {"status": "saved"}

    @app.delete(API_KEY_SETTINGS_PATH)
    def clear_api_key(request: Request) -> dict[str, str]:
        _container(request).credential_service.clear()
        return {"status": "cleared"}

    return app


def _register_error_handlers(app: FastAPI, logger: logging.Logger) -> None:
    """Map core errors to JSON responses."""

    @app.exception_handler(EntryNotFoundError)
    async def not_found(request: Request, exc: EntryNotFoundError) -> JSONResponse:
        return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_404_NOT_FOUND)

    @app.exception_handler(InvalidImageError)
    async def invalid_image(request: Request, exc: InvalidImageError) -> JSONResponse:
        return JSONResponse(
            {"detail": str(exc)}, status_code=status.HTTP_400_BAD_REQUEST
        )

    @app.exception_handler(ExportError)
    async def export_failed(request: Request, exc: ExportError) -> JSONResponse:
        return JSONResponse(
            {"detail": str(exc)}, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
        )

    @app.exception_handler(CredentialRequiredError)
    async def credential_required(
        request: Request, exc: CredentialRequiredError
    ) -> JSONResponse:
        return JSONResponse(
            {"detail": str(exc), "settings_url": API_KEY_SETTINGS_PATH},
            status_code=status.HTTP_428_PRECONDITION_REQUIRED,
        )

    @app.exception_handler(AnalysisError)
    async def analysis_failed(request: Request, exc: AnalysisError) -> JSONResponse:
        status_code = (
            status.HTTP_504_GATEWAY_TIMEOUT
            if exc.kind is AnalysisErrorKind.TIMEOUT
            else status.HTTP_502_BAD_GATEWAY
        )
        return JSONResponse(
            {"detail": exc.description, "kind": exc.kind.value},
            status_code=status_code,
        )

    @app.exception_handler(PersistenceError)
    @app.exception_handler(BlobStoreError)
    async def storage_failed(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Storage failure: %s", exc)
        return JSONResponse(
            {"detail": "Storage failure"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def _entry_json(entry: PhotoEntry) -> dict[str, object]:
    return entry.model_dump(mode="json")


def _items_json(items: Sequence[LineItem], currency_symbol: str) -> dict[str, object]:
    return {
        "items": [item.model_dump(mode="json") for item in items],
        "total": format_price(sum_prices(items), currency_symbol),
    }


def _line_item(payload: ItemPayload) -> LineItem:
    if payload.id is None:
        return LineItem(name=payload.name, price=payload.price)
    return LineItem(id=payload.id, name=payload.name, price=payload.price)


def _pdf_response(document: ExportedDocument) -> Response:
    return Response(
        content=document.read_bytes(),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{document.path.name}"',
            "X-Page-Count": str(document.page_count),
        },
    )
