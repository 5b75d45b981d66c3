"""Mark payload handling: raster images representing a drawn signature."""

from __future__ import annotations

import base64
import binascii
import io
from typing import Union

from PIL import Image, UnidentifiedImageError

# Raster formats accepted for marks
ALLOWED_MARK_FORMATS = ("PNG", "JPEG")

_DATA_URL_PREFIX = "data:"


class MarkDecodeError(Exception):
    """Raised when a mark payload is not a usable raster image."""
    pass


def decode_mark_payload(payload: Union[bytes, str]) -> bytes:
    """Normalize a mark payload to raw image bytes.

    Args:
        payload: Raw image bytes, or a ``data:image/...;base64,`` URL as
            produced by browser canvases

    Returns:
        Raw image bytes

    Raises:
        MarkDecodeError: If a data URL is malformed or not base64
    """
    if isinstance(payload, bytes):
        return payload
    text = payload.strip()
    if not text.startswith(_DATA_URL_PREFIX):
        raise MarkDecodeError("String mark payloads must be data URLs")
    header, sep, data = text.partition(",")
    if not sep or ";base64" not in header:
        raise MarkDecodeError("Mark data URL must be base64 encoded")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MarkDecodeError(f"Invalid base64 in mark data URL: {e}") from e


def encode_mark_data_url(mark: bytes) -> str:
    """Encode mark bytes as a data URL (used by the JSON store)."""
    mime = "image/jpeg" if mark[:3] == b"\xff\xd8\xff" else "image/png"
    return f"data:{mime};base64,{base64.b64encode(mark).decode('ascii')}"


def load_mark_image(mark: bytes) -> Image.Image:
    """Decode mark bytes into an RGBA Pillow image.

    Raises:
        MarkDecodeError: If bytes are not a PNG/JPEG image
    """
    try:
        img = Image.open(io.BytesIO(mark))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise MarkDecodeError(f"Mark is not a readable image: {e}") from e
    if img.format not in ALLOWED_MARK_FORMATS:
        raise MarkDecodeError(
            f"Mark format {img.format} not supported; expected one of {', '.join(ALLOWED_MARK_FORMATS)}"
        )
    if img.width <= 0 or img.height <= 0:
        raise MarkDecodeError("Mark image has no pixels")
    return img.convert("RGBA")


def is_blank_mark(img: Image.Image) -> bool:
    """True if the image has no visible stroke.

    Fully transparent images are blank. Opaque images are blank when every
    pixel has the same colour (an untouched canvas).
    """
    alpha = img.getchannel("A")
    if alpha.getbbox() is None:
        return True
    lo, hi = alpha.getextrema()
    if lo < 255:
        # transparent background with visible pixels
        return False
    extrema = img.convert("RGB").getextrema()
    return all(band_lo == band_hi for band_lo, band_hi in extrema)
