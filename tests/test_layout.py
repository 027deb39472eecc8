"""Tests for document layout geometry."""

from datetime import timedelta, timezone
from decimal import Decimal

import pytest

from photo_journal.domain.items import LineItem
from photo_journal.services.layout import (
    CAPTION_GAP,
    LIST_FOOTER_SPACE,
    LIST_MARGIN,
    MIN_PHOTO_HEIGHT,
    PAGE_HEIGHT,
    PAGE_WIDTH,
    PHOTO_BOTTOM_MARGIN,
    PHOTO_SIDE_MARGIN,
    PHOTO_TOP,
    DocumentLayoutEngine,
    ImageBox,
    PhotoPage,
    TextBox,
    fit_image,
    format_long_timestamp,
    format_medium_date,
)
from tests.conftest import FIXED_NOW


def _photo(caption: str = "Desk", size: tuple[int, int] = (800, 400)) -> PhotoPage:
    return PhotoPage(
        caption=caption, created_at=FIXED_NOW, image=b"jpeg", image_size=size
    )


def test_fit_image_scales_down_preserving_ratio() -> None:
    assert fit_image(400, 200, 100, 100) == (100, 50)
    assert fit_image(200, 400, 100, 100) == (50, 100)


def test_fit_image_never_upscales_by_default() -> None:
    assert fit_image(40, 20, 500, 500) == (40, 20)
    assert fit_image(40, 20, 400, 400, allow_upscale=True) == (400, 200)


def test_fit_image_rejects_empty_dimensions() -> None:
    with pytest.raises(ValueError):
        fit_image(0, 20, 100, 100)


def test_date_formats() -> None:
    assert format_long_timestamp(FIXED_NOW) == "March 6, 2025 at 3:04:05 PM"
    assert format_medium_date(FIXED_NOW) == "Mar 6, 2025"


def test_title_page_texts_and_metadata(layout_engine: DocumentLayoutEngine) -> None:
    layout = layout_engine.layout_collection([], generated_at=FIXED_NOW)

    assert len(layout.pages) == 1
    assert layout.pages[0].texts() == [
        "PhotoJournal",
        "Photo Collection",
        "Generated on March 6, 2025 at 3:04:05 PM",
    ]
    assert layout.metadata.title == "PhotoJournal Photos"
    assert layout.metadata.author == "PhotoJournal User"
    assert layout.metadata.creator == "PhotoJournal App"
    assert (layout.width, layout.height) == (PAGE_WIDTH, PAGE_HEIGHT)


def test_title_page_uses_display_timezone() -> None:
    engine = DocumentLayoutEngine(
        app_name="PhotoJournal", timezone=timezone(timedelta(hours=-5))
    )

    layout = engine.layout_collection([], generated_at=FIXED_NOW)

    assert layout.pages[0].texts()[-1] == (
        "Generated on March 6, 2025 at 10:04:05 AM"
    )


def test_photo_page_centers_image_and_stacks_caption_and_date(
    layout_engine: DocumentLayoutEngine,
) -> None:
    layout = layout_engine.layout_collection([_photo()], generated_at=FIXED_NOW)

    page = layout.pages[1]
    image, caption, date = page.elements
    assert isinstance(image, ImageBox)
    assert isinstance(caption, TextBox)
    assert isinstance(date, TextBox)
    assert image.top == PHOTO_TOP
    assert image.width == pytest.approx(PAGE_WIDTH - 2 * PHOTO_SIDE_MARGIN)
    assert image.height == pytest.approx(image.width / 2)
    assert image.x == pytest.approx(PHOTO_SIDE_MARGIN)
    assert caption.text == "Desk"
    assert caption.top == pytest.approx(image.bottom + CAPTION_GAP)
    assert caption.x + caption.width / 2 == pytest.approx(PAGE_WIDTH / 2)
    assert date.text == "Mar 6, 2025"
    assert date.top > caption.bottom


def test_photo_page_keeps_small_images_at_native_size(
    layout_engine: DocumentLayoutEngine,
) -> None:
    layout = layout_engine.layout_collection(
        [_photo(size=(40, 20))], generated_at=FIXED_NOW
    )

    image = layout.pages[1].elements[0]
    assert isinstance(image, ImageBox)
    assert (image.width, image.height) == (40, 20)


def test_empty_caption_produces_only_image_and_date(
    layout_engine: DocumentLayoutEngine,
) -> None:
    layout = layout_engine.layout_collection([_photo("  ")], generated_at=FIXED_NOW)

    assert layout.pages[1].texts() == ["Mar 6, 2025"]


def test_long_caption_is_clipped_and_fits_page(
    layout_engine: DocumentLayoutEngine,
) -> None:
    caption = " ".join(["objects"] * 2000)

    layout = layout_engine.layout_collection(
        [_photo(caption, size=(400, 4000))], generated_at=FIXED_NOW
    )

    page = layout.pages[1]
    image = page.elements[0]
    assert isinstance(image, ImageBox)
    assert image.height >= MIN_PHOTO_HEIGHT
    texts = page.texts()
    assert texts[-2].endswith("...")
    assert texts[-1] == "Mar 6, 2025"
    lowest = max(element.bottom for element in page.elements)
    assert lowest <= PAGE_HEIGHT - PHOTO_BOTTOM_MARGIN + 1e-6


def test_photos_without_images_are_skipped(
    layout_engine: DocumentLayoutEngine,
) -> None:
    missing = PhotoPage(caption="gone", created_at=FIXED_NOW)

    layout = layout_engine.layout_collection(
        [_photo("first"), missing, _photo("third")], generated_at=FIXED_NOW
    )

    assert len(layout.pages) == 3
    assert layout.pages[1].texts()[0] == "first"
    assert layout.pages[2].texts()[0] == "third"


def test_item_list_single_page(layout_engine: DocumentLayoutEngine) -> None:
    items = [
        LineItem(name="Apples", price=Decimal("1.50")),
        LineItem(name="Bread", price=Decimal("3")),
    ]

    layout = layout_engine.layout_item_list(items, generated_at=FIXED_NOW)

    assert len(layout.pages) == 1
    texts = layout.pages[0].texts()
    assert texts[:2] == [
        "Item Price List",
        "Generated on March 6, 2025 at 3:04:05 PM",
    ]
    for expected in ("#", "Item", "Price", "1.", "Apples", "$1.50", "2.", "Bread"):
        assert expected in texts
    assert "$3.00" in texts
    assert texts[-3:] == ["Total", "$4.50", "Page 1 of 1"]
    assert layout.metadata.title == "Item Price List"


def test_item_list_prices_are_right_aligned(
    layout_engine: DocumentLayoutEngine,
) -> None:
    items = [
        LineItem(name="Cheap", price=Decimal("1")),
        LineItem(name="Pricey", price=Decimal("1234.5")),
    ]

    layout = layout_engine.layout_item_list(items, generated_at=FIXED_NOW)

    prices = [
        element
        for element in layout.pages[0].elements
        if isinstance(element, TextBox) and element.text.startswith("$")
    ]
    right_edges = {round(box.x + box.width, 6) for box in prices}
    assert right_edges == {round(PAGE_WIDTH - LIST_MARGIN, 6)}


def test_item_list_paginates_with_headers_and_footers(
    layout_engine: DocumentLayoutEngine,
) -> None:
    items = [LineItem(name=f"Item {n}", price=Decimal("0.10")) for n in range(100)]

    layout = layout_engine.layout_item_list(items, generated_at=FIXED_NOW)

    page_count = len(layout.pages)
    assert page_count > 1
    numbers: list[str] = []
    for index, page in enumerate(layout.pages, start=1):
        texts = page.texts()
        assert "Price" in texts
        assert texts[-1] == f"Page {index} of {page_count}"
        numbers.extend(
            text for text in texts if text.endswith(".") and text[0].isdigit()
        )
        for element in page.elements[:-1]:
            assert element.top <= PAGE_HEIGHT - LIST_MARGIN - LIST_FOOTER_SPACE
    assert numbers == [f"{n}." for n in range(1, 101)]
    assert "Total" not in layout.pages[0].texts()
    assert layout.pages[-1].texts()[-2] == "$10.00"


def test_item_list_wraps_long_names(layout_engine: DocumentLayoutEngine) -> None:
    name = " ".join(["Extraordinarily"] * 30)

    layout = layout_engine.layout_item_list(
        [LineItem(name=name, price=Decimal("2"))], generated_at=FIXED_NOW
    )

    texts = layout.pages[0].texts()
    name_lines = [text for text in texts if text.startswith("Extraordinarily")]
    assert len(name_lines) > 1
    assert " ".join(name_lines) == name


def test_item_list_currency_symbol() -> None:
    engine = DocumentLayoutEngine(app_name="PhotoJournal", currency_symbol="€")

    layout = engine.layout_item_list(
        [LineItem(name="Tea", price=Decimal("2.5"))], generated_at=FIXED_NOW
    )

    assert "€2.50" in layout.pages[0].texts()
