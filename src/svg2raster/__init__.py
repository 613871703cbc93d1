"""Render SVG documents to PNG, JPEG or WebP with a headless browser.

The server-side renderer is a quality-parity fallback for clients whose own
capture path is lower fidelity; see :mod:`svg2raster.capture`.
"""

from svg2raster.capability import (
    CapabilityDetector,
    StaticCapability,
    UserAgentCapability,
)
from svg2raster.dimensions import guess_dimensions
from svg2raster.errors import (
    ConfigurationError,
    DimensionError,
    RenderError,
    RenderTimeoutError,
    Svg2RasterError,
    TransportError,
    ValidationError,
)
from svg2raster.models import RenderRequest, RenderResult
from svg2raster.renderer import (
    PageRenderer,
    render,
    render_sync,
    svg_to_jpeg,
    svg_to_png,
    svg_to_webp,
)
from svg2raster.transport import FallbackTransport, svg_data_uri_to_string
from svg2raster.version import __version__ as __version__

__all__ = [
    "CapabilityDetector",
    "ConfigurationError",
    "DimensionError",
    "FallbackTransport",
    "PageRenderer",
    "RenderError",
    "RenderRequest",
    "RenderResult",
    "RenderTimeoutError",
    "StaticCapability",
    "Svg2RasterError",
    "TransportError",
    "UserAgentCapability",
    "ValidationError",
    "guess_dimensions",
    "render",
    "render_sync",
    "svg_data_uri_to_string",
    "svg_to_jpeg",
    "svg_to_png",
    "svg_to_webp",
]
