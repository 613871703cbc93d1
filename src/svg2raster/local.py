"""In-process rendering with resvg.

This is the lighter path used when the server-rendered fallback is not
selected. It needs no browser, but supports fewer SVG features and does not
honor CSS @font-face rules with data URIs.
"""

import logging
import re

import resvg_py
from PIL import Image

from svg2raster import encoder
from svg2raster.errors import RenderError
from svg2raster.models import (
    DEFAULT_DEVICE_SCALE_FACTOR,
    DEFAULT_QUALITY,
    RenderRequest,
    RenderResult,
)

logger = logging.getLogger(__name__)

FONT_FACE_URL_RE = re.compile(r'src:\s*url\(["\']?(file://[^"\')]+)["\']?\)')


def extract_font_file_paths(svg: str) -> list[str]:
    """Extract font file paths from @font-face ``src: url("file://...")`` rules."""
    return [match.replace("file://", "") for match in FONT_FACE_URL_RE.findall(svg)]


class ResvgRenderer:
    """SVG renderer using the resvg library.

    Example:
        >>> result = ResvgRenderer().render('<svg ...>...</svg>', output_type="webp")
        >>> result.format
        'webp'
    """

    def __init__(self, dpi: int = 0) -> None:
        """Initialize the renderer.

        Args:
            dpi: Dots per inch used to resolve physical units. If 0 (default),
                uses resvg's default of 96 DPI.
        """
        self.dpi = dpi

    def render(
        self,
        svg: str,
        output_type: str = "png",
        quality: float = DEFAULT_QUALITY,
        device_scale_factor: float = DEFAULT_DEVICE_SCALE_FACTOR,
        output_path: str | None = None,
    ) -> RenderResult:
        """Render SVG markup to an encoded image.

        The image is rasterized at its intrinsic size and resampled by
        ``device_scale_factor``.

        Raises:
            ValidationError: If the SVG is empty, the format unsupported or a
                numeric option out of range.
            RenderError: If resvg cannot render the document.
        """
        request = RenderRequest(
            svg=svg,
            output_type=output_type,
            quality=quality,
            device_scale_factor=device_scale_factor,
        )
        font_files = extract_font_file_paths(request.svg)
        if font_files:
            logger.debug(f"Extracted {len(font_files)} font file(s) from SVG")

        try:
            png_bytes = resvg_py.svg_to_bytes(
                svg_string=request.svg,
                dpi=int(self.dpi),
                font_files=font_files or None,
            )
        except ValueError as e:
            raise RenderError(f"resvg failed to render SVG: {e}") from e

        image = encoder.decode_image(bytes(png_bytes), mode="RGBA")
        width, height = image.size
        physical_size = (
            max(round(width * request.device_scale_factor), 1),
            max(round(height * request.device_scale_factor), 1),
        )
        if physical_size != image.size:
            image = image.resize(physical_size, Image.LANCZOS)

        buffer = encoder.encode_image(image, request.output_type, request.quality)
        result = RenderResult(
            buffer=buffer,
            width=width,
            height=height,
            format=request.output_type,
            device_scale_factor=request.device_scale_factor,
        )
        if output_path:
            with open(output_path, "wb") as f:
                f.write(buffer)
            result.saved_path = output_path
        return result
