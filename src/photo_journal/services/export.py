"""Export of the photo collection and item lists as PDF documents."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from photo_journal.domain.entries import PhotoEntry
from photo_journal.domain.errors import ExportError
from photo_journal.domain.items import LineItem
from photo_journal.services.entries import BlobStore
from photo_journal.services.images import image_size
from photo_journal.services.layout import (
    DocumentLayout,
    DocumentLayoutEngine,
    PhotoPage,
)

logger = logging.getLogger(__name__)

ITEM_LIST_FILE_PREFIX = "ItemPriceList"


@dataclass(frozen=True)
class RenderedDocument:
    """Complete PDF byte stream."""

    data: bytes = field(repr=False)
    page_count: int


class DocumentRenderer(Protocol):
    """Turns a computed layout into document bytes."""

    def render(self, layout: DocumentLayout) -> RenderedDocument:
        """Render every page of the layout."""


@dataclass(frozen=True)
class ExportedDocument:
    """A fully written export file."""

    path: Path
    page_count: int

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


@dataclass
class ExportService:
    """Lays out, renders and writes export documents."""

    blob_store: BlobStore
    layout_engine: DocumentLayoutEngine
    renderer: DocumentRenderer
    export_dir: Path
    clock: Callable[[], datetime] = field(default_factory=lambda: _utcnow)

    def render_collection(self, entries: Sequence[PhotoEntry]) -> RenderedDocument:
        """Render the title page plus one page per entry whose image resolves."""
        if not entries:
            raise ExportError("There are no entries to export")
        photos = [self._resolve(entry) for entry in entries]
        layout = self.layout_engine.layout_collection(photos, generated_at=self.clock())
        return self.renderer.render(layout)

    def render_item_list(
        self, items: Sequence[LineItem], title: str = "Item Price List"
    ) -> RenderedDocument:
        if not items:
            raise ExportError("There are no items to export")
        layout = self.layout_engine.layout_item_list(
            items, generated_at=self.clock(), title=title
        )
        return self.renderer.render(layout)

    def export_collection(self, entries: Sequence[PhotoEntry]) -> ExportedDocument:
        """Write the collection document to ``{AppName}_{epochSeconds}.pdf``."""
        document = self.render_collection(entries)
        return self._write(self.layout_engine.app_name, document)

    def export_item_list(
        self, items: Sequence[LineItem], title: str = "Item Price List"
    ) -> ExportedDocument:
        """Write an item list document to ``ItemPriceList_{epochSeconds}.pdf``."""
        document = self.render_item_list(items, title=title)
        return self._write(ITEM_LIST_FILE_PREFIX, document)

    def _resolve(self, entry: PhotoEntry) -> PhotoPage:
        data = self.blob_store.get(entry.image_filename)
        size = image_size(data) if data is not None else None
        if size is None:
            logger.warning("Skipping entry %s: image unavailable", entry.id)
            data = None
        return PhotoPage(
            caption=entry.caption,
            created_at=entry.created_at,
            image=data,
            image_size=size,
        )

    def _write(self, prefix: str, document: RenderedDocument) -> ExportedDocument:
        """Write via a ``.part`` file so a partial document is never visible."""
        stamp = int(self.clock().timestamp())
        try:
            self.export_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExportError(
                f"Export directory unavailable: {self.export_dir}"
            ) from exc
        path = self._free_path(prefix, stamp)
        partial = path.with_name(path.name + ".part")
        try:
            partial.write_bytes(document.data)
            partial.replace(path)
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise ExportError(f"Failed to write {path.name}") from exc
        logger.info("Exported %d pages to %s", document.page_count, path)
        return ExportedDocument(path=path, page_count=document.page_count)

    def _free_path(self, prefix: str, stamp: int) -> Path:
        """Return the first unused name, suffixing ``_1``, ``_2`` on collisions."""
        path = self.export_dir / f"{prefix}_{stamp}.pdf"
        counter = 0
        while path.exists() or path.with_name(path.name + ".part").exists():
            counter += 1
            path = self.export_dir / f"{prefix}_{stamp}_{counter}.pdf"
        return path


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)
