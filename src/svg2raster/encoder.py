"""Mapping from the requested output format to screenshot parameters.

Playwright captures only PNG and JPEG. WebP output is captured as PNG and
transcoded losslessly with Pillow so it keeps the alpha channel.
"""

import base64
import io
import logging
import math
from typing import Any

from PIL import Image

logger = logging.getLogger(__name__)


def jpeg_quality(quality: float) -> int:
    """Scale a [0, 1] quality to the 0-100 integer scale, rounding halves up."""
    return min(max(math.floor(quality * 100 + 0.5), 0), 100)


def capture_type(output_type: str) -> str:
    """Return the screenshot type used to produce ``output_type``."""
    return "jpeg" if output_type == "jpeg" else "png"


def screenshot_options(output_type: str, quality: float = 1.0) -> dict[str, Any]:
    """Build the keyword arguments for ``Page.screenshot``.

    ``quality`` only matters for JPEG; PNG and WebP ignore it. Format
    legality is checked by the caller.
    """
    options: dict[str, Any] = {"type": capture_type(output_type), "full_page": True}
    if output_type == "jpeg":
        options["quality"] = jpeg_quality(quality)
    else:
        options["omit_background"] = True
    return options


def decode_image(data: bytes, mode: str | None = None) -> Image.Image:
    """Decode image data from bytes to a PIL image."""
    with io.BytesIO(data) as input:
        image = Image.open(input)
        image.load()
    if mode is not None:
        return image.convert(mode)
    return image


def encode_image(image: Image.Image, output_type: str, quality: float = 1.0) -> bytes:
    """Encode a PIL image in the requested output format.

    For JPEG, RGBA images are flattened onto a white background.
    """
    options: dict[str, Any] = {}
    if output_type == "jpeg":
        if image.mode in ("RGBA", "LA", "P"):
            image = image.convert("RGBA")
            rgb_image = Image.new("RGB", image.size, (255, 255, 255))
            rgb_image.paste(image, mask=image.split()[3])  # Use alpha as mask
            image = rgb_image
        options["quality"] = jpeg_quality(quality)
    elif output_type == "webp":
        options["lossless"] = True

    with io.BytesIO() as output:
        image.save(output, format=output_type.upper(), **options)
        return output.getvalue()


def encode(buffer: bytes, output_type: str) -> bytes:
    """Turn captured screenshot bytes into the final ``output_type`` encoding."""
    if capture_type(output_type) == output_type:
        return buffer
    logger.debug(f"Transcoding {len(buffer)} byte capture to {output_type}")
    return encode_image(decode_image(buffer), output_type)


def encode_data_uri(buffer: bytes, output_type: str) -> str:
    """Wrap encoded image bytes as a base64 data URI."""
    base64_data = base64.b64encode(buffer).decode("utf-8")
    return f"data:image/{output_type};base64,{base64_data}"
