"""Decoding host input into pixels and encoding the composite for output.

AIDEV-NOTE: The host shell owns files and transport. This module only turns
bytes (or a data: URL string) into a PixelBuffer and back.
"""

import base64
import binascii
import io
import logging
from urllib.parse import unquote_to_bytes

from PIL import Image, UnidentifiedImageError

from ..errors import ImageDecodeError
from .buffer import PixelBuffer

logger = logging.getLogger(__name__)

JPEG_FORMATS = {"jpg", "jpeg"}


def _data_url_payload(data_url: str) -> bytes:
    header, _, payload = data_url.partition(",")
    if not header.startswith("data:") or not payload:
        raise ImageDecodeError("Malformed data URL")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True)
        return unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Malformed data URL payload: {e}") from e


def decode_image(
    source: "bytes | bytearray | memoryview | str",
    width: "int | None" = None,
    height: "int | None" = None,
) -> PixelBuffer:
    """Decode host input into an RGBA PixelBuffer.

    Args:
        source: Encoded image bytes (PNG, JPEG, ...), a `data:` URL, or raw
            RGBA bytes when width and height are given
        width: Pixel width of raw RGBA input
        height: Pixel height of raw RGBA input

    Returns:
        PixelBuffer in RGBA

    Raises:
        ImageDecodeError: If the input cannot be decoded
    """
    if isinstance(source, str):
        if not source.startswith("data:"):
            raise ImageDecodeError(
                "Invalid image source - must be bytes, raw RGBA with dimensions, or a data URL"
            )
        source = _data_url_payload(source)

    if not isinstance(source, (bytes, bytearray, memoryview)):
        raise ImageDecodeError(f"Invalid image source type: {type(source).__name__}")
    source = bytes(source)

    if width is not None or height is not None:
        if not width or not height or width <= 0 or height <= 0:
            raise ImageDecodeError(f"Invalid raw image size {width}x{height}")
        try:
            return PixelBuffer.from_bytes(source, int(width), int(height))
        except ValueError as e:
            raise ImageDecodeError(f"Failed to load raw pixels: {e}") from e

    try:
        with Image.open(io.BytesIO(source)) as image:
            image.load()
            # AIDEV-NOTE: Always convert to RGBA for consistent processing
            return PixelBuffer.from_image(image.convert("RGBA"))
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Failed to load image: {e}") from e


def normalize_format(fmt: "str | None") -> str:
    """"jpg"/"jpeg" select JPEG; anything else is PNG."""
    return "JPEG" if fmt and fmt.lower() in JPEG_FORMATS else "PNG"


def mime_type(fmt: "str | None") -> str:
    return "image/jpeg" if normalize_format(fmt) == "JPEG" else "image/png"


def encode_image(buffer: PixelBuffer, fmt: str = "png", quality: float = 0.9) -> bytes:
    """Encode pixels as PNG or JPEG bytes.

    Args:
        buffer: Pixels to encode
        fmt: "png", "jpg" or "jpeg"
        quality: JPEG quality 0.0-1.0 (ignored for PNG)

    AIDEV-NOTE: JPEG has no alpha; the RGB samples are written as stored.
    """
    pil_format = normalize_format(fmt)
    image = buffer.to_image()
    out = io.BytesIO()
    if pil_format == "JPEG":
        jpeg_quality = int(round(max(0.0, min(1.0, quality)) * 100))
        image.convert("RGB").save(out, format="JPEG", quality=jpeg_quality)
    else:
        image.save(out, format="PNG")
    return out.getvalue()


def encode_data_url(buffer: PixelBuffer, fmt: str = "png", quality: float = 0.9) -> str:
    payload = base64.b64encode(encode_image(buffer, fmt, quality)).decode("ascii")
    return f"data:{mime_type(fmt)};base64,{payload}"
