"""Document layout engine for collection and item-list exports.

Layout is pure geometry: pages are described as text, image and rule boxes
placed in top-down page coordinates (points, origin at the top-left corner).
A renderer turns the result into PDF bytes.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo

from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import getAscent, stringWidth

from photo_journal.domain.items import LineItem, format_price, sum_prices

# ISO A4 at 72 dpi
PAGE_WIDTH = 8.27 * 72.0
PAGE_HEIGHT = 11.69 * 72.0

LINE_HEIGHT_FACTOR = 1.2

REGULAR_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"

BLACK = "#000000"
DARK_GRAY = "#555555"

PHOTO_SIDE_MARGIN = 50.0
PHOTO_TOP = 100.0
PHOTO_BOTTOM_MARGIN = 50.0
PHOTO_RESERVED_HEIGHT = 200.0
MIN_PHOTO_HEIGHT = 100.0
CAPTION_GAP = 20.0
DATE_GAP = 10.0

TITLE_GAP = 20.0
TITLE_DATE_FROM_BOTTOM = 100.0

LIST_MARGIN = 50.0
LIST_FOOTER_SPACE = 30.0
LIST_NUMBER_WIDTH = 30.0
LIST_PRICE_WIDTH = 100.0
LIST_ROW_GAP = 6.0
LIST_SECTION_GAP = 20.0
LIST_RULE_GAP = 4.0
LIST_FONT_SIZE = 12.0

ELLIPSIS = "..."


@dataclass(frozen=True)
class TextBox:
    """A single line of text."""

    text: str
    font_name: str
    font_size: float
    x: float
    top: float
    width: float
    color: str = BLACK

    @property
    def height(self) -> float:
        return self.font_size * LINE_HEIGHT_FACTOR

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def baseline(self) -> float:
        """Distance from the page top to the text baseline."""
        half_leading = (LINE_HEIGHT_FACTOR - 1.0) * self.font_size / 2
        return self.top + half_leading + getAscent(self.font_name, self.font_size)


@dataclass(frozen=True)
class ImageBox:
    """An image drawn into a rectangle."""

    data: bytes = field(repr=False)
    x: float
    top: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class RuleBox:
    """A horizontal line."""

    x1: float
    x2: float
    top: float
    line_width: float = 0.5
    color: str = DARK_GRAY


PageElement = TextBox | ImageBox | RuleBox


@dataclass(frozen=True)
class PageLayout:
    elements: tuple[PageElement, ...]

    def texts(self) -> list[str]:
        """Text content of the page in drawing order."""
        return [
            element.text for element in self.elements if isinstance(element, TextBox)
        ]


@dataclass(frozen=True)
class DocumentMetadata:
    title: str
    author: str
    creator: str


@dataclass(frozen=True)
class DocumentLayout:
    """Ordered pages plus document information."""

    metadata: DocumentMetadata
    pages: tuple[PageLayout, ...]
    width: float = PAGE_WIDTH
    height: float = PAGE_HEIGHT


@dataclass(frozen=True)
class PhotoPage:
    """One entry prepared for export.

    ``image`` and ``image_size`` are None when the blob could not be
    resolved; such records produce no page.
    """

    caption: str
    created_at: datetime
    image: bytes | None = field(default=None, repr=False)
    image_size: tuple[int, int] | None = None


def fit_image(
    width: float,
    height: float,
    max_width: float,
    max_height: float,
    allow_upscale: bool = False,
) -> tuple[float, float]:
    """Scale a size uniformly to fit a box, preserving aspect ratio."""
    if width <= 0 or height <= 0:
        raise ValueError("image dimensions must be positive")
    scale = min(max_width / width, max_height / height)
    if not allow_upscale:
        scale = min(scale, 1.0)
    return width * scale, height * scale


def format_long_timestamp(moment: datetime) -> str:
    """Format like ``March 6, 2025 at 3:04:05 PM``."""
    hour = moment.hour % 12 or 12
    return (
        f"{moment:%B} {moment.day}, {moment.year} "
        f"at {hour}:{moment:%M:%S} {moment:%p}"
    )


def format_medium_date(moment: datetime) -> str:
    """Format like ``Mar 6, 2025``."""
    return f"{moment:%b} {moment.day}, {moment.year}"


def _text_width(text: str, font_name: str, font_size: float) -> float:
    return stringWidth(text, font_name, font_size)


def _line_height(font_size: float) -> float:
    return font_size * LINE_HEIGHT_FACTOR


def _wrap(text: str, font_name: str, font_size: float, max_width: float) -> list[str]:
    if not text.strip():
        return []
    return list(simpleSplit(text.strip(), font_name, font_size, max_width))


def _clip_lines(
    lines: list[str], max_lines: int, font_name: str, font_size: float, max_width: float
) -> list[str]:
    """Keep at most ``max_lines`` lines, ending the last kept line with an ellipsis."""
    if len(lines) <= max_lines:
        return lines
    if max_lines <= 0:
        return []
    kept = lines[:max_lines]
    last = kept[-1]
    while last and _text_width(last + ELLIPSIS, font_name, font_size) > max_width:
        last = last[:-1]
    kept[-1] = last.rstrip() + ELLIPSIS
    return kept


@dataclass
class DocumentLayoutEngine:
    """Computes page layouts for the two export kinds."""

    app_name: str
    currency_symbol: str = "$"
    timezone: tzinfo = UTC
    page_width: float = PAGE_WIDTH
    page_height: float = PAGE_HEIGHT

    def layout_collection(
        self, photos: Sequence[PhotoPage], generated_at: datetime
    ) -> DocumentLayout:
        """Title page followed by one page per photo that has an image."""
        pages = [self._title_page(generated_at)]
        for photo in photos:
            if photo.image is None or photo.image_size is None:
                continue
            pages.append(self._photo_page(photo, photo.image, photo.image_size))
        metadata = DocumentMetadata(
            title=f"{self.app_name} Photos",
            author=f"{self.app_name} User",
            creator=f"{self.app_name} App",
        )
        return DocumentLayout(
            metadata=metadata,
            pages=tuple(pages),
            width=self.page_width,
            height=self.page_height,
        )

    def layout_item_list(
        self,
        items: Sequence[LineItem],
        generated_at: datetime,
        title: str = "Item Price List",
    ) -> DocumentLayout:
        """Numbered item rows and a total, flowing over as many pages as needed."""
        pages: list[list[PageElement]] = []
        current: list[PageElement] = []
        cursor = LIST_MARGIN

        title_box = self._left_text(title, BOLD_FONT, 24, LIST_MARGIN, cursor)
        current.append(title_box)
        cursor = title_box.bottom + DATE_GAP
        stamp = f"Generated on {format_long_timestamp(self._local(generated_at))}"
        date_box = self._left_text(
            stamp, REGULAR_FONT, LIST_FONT_SIZE, LIST_MARGIN, cursor, DARK_GRAY
        )
        current.append(date_box)
        cursor = date_box.bottom + LIST_SECTION_GAP
        cursor = self._column_header(current, cursor)

        content_bottom = self.page_height - LIST_MARGIN - LIST_FOOTER_SPACE
        name_x = LIST_MARGIN + LIST_NUMBER_WIDTH
        price_right = self.page_width - LIST_MARGIN
        name_width = price_right - LIST_PRICE_WIDTH - name_x

        for number, item in enumerate(items, start=1):
            lines = _wrap(item.name, REGULAR_FONT, LIST_FONT_SIZE, name_width) or [""]
            row_height = len(lines) * _line_height(LIST_FONT_SIZE) + LIST_ROW_GAP
            if cursor + row_height > content_bottom:
                pages.append(current)
                current = []
                cursor = self._column_header(current, LIST_MARGIN)
            current.append(
                self._left_text(
                    f"{number}.", REGULAR_FONT, LIST_FONT_SIZE, LIST_MARGIN, cursor
                )
            )
            current.append(
                self._right_text(
                    format_price(item.price, self.currency_symbol),
                    REGULAR_FONT,
                    LIST_FONT_SIZE,
                    price_right,
                    cursor,
                )
            )
            line_top = cursor
            for line in lines:
                box = self._left_text(
                    line, REGULAR_FONT, LIST_FONT_SIZE, name_x, line_top
                )
                current.append(box)
                line_top = box.bottom
            cursor += row_height

        total_height = LIST_RULE_GAP * 2 + _line_height(LIST_FONT_SIZE)
        if cursor + total_height > content_bottom:
            pages.append(current)
            current = []
            cursor = self._column_header(current, LIST_MARGIN)
        current.append(RuleBox(x1=LIST_MARGIN, x2=price_right, top=cursor))
        cursor += LIST_RULE_GAP * 2
        current.append(
            self._left_text("Total", BOLD_FONT, LIST_FONT_SIZE, name_x, cursor)
        )
        current.append(
            self._right_text(
                format_price(sum_prices(items), self.currency_symbol),
                BOLD_FONT,
                LIST_FONT_SIZE,
                price_right,
                cursor,
            )
        )
        pages.append(current)

        page_count = len(pages)
        for number, elements in enumerate(pages, start=1):
            footer = f"Page {number} of {page_count}"
            elements.append(
                self._centered_text(
                    footer,
                    REGULAR_FONT,
                    10,
                    self.page_height - LIST_MARGIN,
                    DARK_GRAY,
                )
            )

        metadata = DocumentMetadata(
            title=title,
            author=f"{self.app_name} User",
            creator=f"{self.app_name} App",
        )
        return DocumentLayout(
            metadata=metadata,
            pages=tuple(PageLayout(tuple(elements)) for elements in pages),
            width=self.page_width,
            height=self.page_height,
        )

    def _title_page(self, generated_at: datetime) -> PageLayout:
        title = self._centered_text(
            self.app_name, BOLD_FONT, 36, self.page_height / 3.0
        )
        subtitle = self._centered_text(
            "Photo Collection", REGULAR_FONT, 18, title.bottom + TITLE_GAP, DARK_GRAY
        )
        stamp = f"Generated on {format_long_timestamp(self._local(generated_at))}"
        date = self._centered_text(
            stamp,
            REGULAR_FONT,
            14,
            self.page_height - TITLE_DATE_FROM_BOTTOM,
            DARK_GRAY,
        )
        return PageLayout((title, subtitle, date))

    def _photo_page(
        self, photo: PhotoPage, image_data: bytes, image_size: tuple[int, int]
    ) -> PageLayout:
        content_width = self.page_width - 2 * PHOTO_SIDE_MARGIN
        caption_size = 14.0
        date_size = 12.0
        caption_line = _line_height(caption_size)
        fixed_text = CAPTION_GAP + DATE_GAP + _line_height(date_size)
        available = (
            self.page_height - PHOTO_TOP - PHOTO_BOTTOM_MARGIN - MIN_PHOTO_HEIGHT
        )
        max_lines = int((available - fixed_text) // caption_line)
        lines = _clip_lines(
            _wrap(photo.caption, REGULAR_FONT, caption_size, content_width),
            max_lines,
            REGULAR_FONT,
            caption_size,
            content_width,
        )
        text_height = fixed_text + len(lines) * caption_line
        max_height = min(
            self.page_height - PHOTO_RESERVED_HEIGHT,
            self.page_height - PHOTO_TOP - PHOTO_BOTTOM_MARGIN - text_height,
        )
        width, height = fit_image(
            image_size[0], image_size[1], content_width, max_height
        )
        image = ImageBox(
            data=image_data,
            x=(self.page_width - width) / 2.0,
            top=PHOTO_TOP,
            width=width,
            height=height,
        )
        elements: list[PageElement] = [image]
        cursor = image.bottom + CAPTION_GAP
        for line in lines:
            box = self._centered_text(line, REGULAR_FONT, caption_size, cursor)
            elements.append(box)
            cursor = box.bottom
        date_box = self._centered_text(
            format_medium_date(self._local(photo.created_at)),
            REGULAR_FONT,
            date_size,
            cursor + DATE_GAP,
            DARK_GRAY,
        )
        elements.append(date_box)
        return PageLayout(tuple(elements))

    def _column_header(self, elements: list[PageElement], top: float) -> float:
        """Append the item-list column header and return the next cursor."""
        price_right = self.page_width - LIST_MARGIN
        header = [
            self._left_text("#", BOLD_FONT, LIST_FONT_SIZE, LIST_MARGIN, top),
            self._left_text(
                "Item", BOLD_FONT, LIST_FONT_SIZE, LIST_MARGIN + LIST_NUMBER_WIDTH, top
            ),
            self._right_text("Price", BOLD_FONT, LIST_FONT_SIZE, price_right, top),
        ]
        elements.extend(header)
        rule_top = header[0].bottom + LIST_RULE_GAP
        elements.append(RuleBox(x1=LIST_MARGIN, x2=price_right, top=rule_top))
        return rule_top + LIST_RULE_GAP * 2

    def _local(self, moment: datetime) -> datetime:
        return moment.astimezone(self.timezone)

    @staticmethod
    def _left_text(
        text: str,
        font_name: str,
        font_size: float,
        x: float,
        top: float,
        color: str = BLACK,
    ) -> TextBox:
        width = _text_width(text, font_name, font_size)
        return TextBox(text, font_name, font_size, x, top, width, color)

    @staticmethod
    def _right_text(
        text: str, font_name: str, font_size: float, right: float, top: float
    ) -> TextBox:
        width = _text_width(text, font_name, font_size)
        return TextBox(text, font_name, font_size, right - width, top, width)

    def _centered_text(
        self,
        text: str,
        font_name: str,
        font_size: float,
        top: float,
        color: str = BLACK,
    ) -> TextBox:
        width = _text_width(text, font_name, font_size)
        x = (self.page_width - width) / 2.0
        return TextBox(text, font_name, font_size, x, top, width, color)
