"""PDF rendering backed by reportlab."""

import io
import logging
from dataclasses import dataclass

from reportlab.lib.colors import HexColor
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from photo_journal.domain.errors import ExportError
from photo_journal.services.export import DocumentRenderer, RenderedDocument
from photo_journal.services.layout import (
    DocumentLayout,
    ImageBox,
    PageElement,
    RuleBox,
    TextBox,
)

logger = logging.getLogger(__name__)


@dataclass
class ReportLabPdfRenderer(DocumentRenderer):
    """Draws layouts onto a reportlab canvas.

    The canvas runs in invariant mode, so the same layout always produces
    the same bytes.
    """

    page_compression: bool = True

    def render(self, layout: DocumentLayout) -> RenderedDocument:
        """Render every page; any failure raises ExportError."""
        buffer = io.BytesIO()
        try:
            pdf = canvas.Canvas(
                buffer,
                pagesize=(layout.width, layout.height),
                invariant=1,
                pageCompression=int(self.page_compression),
            )
            pdf.setTitle(layout.metadata.title)
            pdf.setAuthor(layout.metadata.author)
            pdf.setCreator(layout.metadata.creator)
            for page in layout.pages:
                for element in page.elements:
                    _draw(pdf, element, layout.height)
                pdf.showPage()
            pdf.save()
        except Exception as exc:
            logger.exception("PDF rendering failed")
            raise ExportError("Failed to render document") from exc
        return RenderedDocument(data=buffer.getvalue(), page_count=len(layout.pages))


def _draw(pdf: canvas.Canvas, element: PageElement, page_height: float) -> None:
    """Draw one element, flipping top-down layout coordinates to PDF space."""
    if isinstance(element, TextBox):
        pdf.setFont(element.font_name, element.font_size)
        pdf.setFillColor(HexColor(element.color))
        pdf.drawString(element.x, page_height - element.baseline, element.text)
    elif isinstance(element, ImageBox):
        pdf.drawImage(
            ImageReader(io.BytesIO(element.data)),
            element.x,
            page_height - element.bottom,
            width=element.width,
            height=element.height,
        )
    elif isinstance(element, RuleBox):
        pdf.setStrokeColor(HexColor(element.color))
        pdf.setLineWidth(element.line_width)
        y = page_height - element.top
        pdf.line(element.x1, y, element.x2, y)
