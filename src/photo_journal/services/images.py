"""Image decoding and JPEG re-encoding helpers."""

import io

from PIL import Image, ImageOps, UnidentifiedImageError

from photo_journal.domain.errors import InvalidImageError


def encode_jpeg(
    image_bytes: bytes, quality: int, max_dimension: int | None = None
) -> bytes:
    """Re-encode image bytes as JPEG, optionally downscaled to fit a square box."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as source:
            image = ImageOps.exif_transpose(source)
            if max_dimension is not None:
                image.thumbnail((max_dimension, max_dimension))
            buffer = io.BytesIO()
            image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise InvalidImageError("Could not decode image") from exc
    return buffer.getvalue()


def image_size(image_bytes: bytes) -> tuple[int, int] | None:
    """Return (width, height) in pixels, or None if the bytes are not an image."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image.load()
            return image.size
    except (UnidentifiedImageError, OSError, ValueError):
        return None
