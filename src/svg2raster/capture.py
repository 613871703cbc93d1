"""Choose between the server-rendered fallback and the local path."""

import asyncio
import inspect
import logging
from typing import Any, Callable

from svg2raster.capability import CapabilityDetector
from svg2raster.encoder import encode_data_uri
from svg2raster.local import ResvgRenderer
from svg2raster.models import DEFAULT_DEVICE_SCALE_FACTOR, DEFAULT_QUALITY
from svg2raster.transport import (
    DEFAULT_SERVER_URL,
    FallbackTransport,
    svg_data_uri_to_string,
)

logger = logging.getLogger(__name__)


async def to_image(
    node: Any,
    to_svg: Callable[..., Any],
    output_type: str = "png",
    *,
    detector: CapabilityDetector,
    use_fallback: bool = True,
    server_url: str = DEFAULT_SERVER_URL,
    transport: FallbackTransport | None = None,
    local: ResvgRenderer | None = None,
    quality: float = DEFAULT_QUALITY,
    device_scale_factor: float = DEFAULT_DEVICE_SCALE_FACTOR,
    **svg_options: Any,
) -> str:
    """Render a DOM node to an image data URI on whichever path fits.

    The fallback service is used when ``use_fallback`` is set and the
    detector prefers server rendering; otherwise the snapshot is rendered
    in process. Both paths return the same representation.

    Args:
        node: Node handed to the snapshot producer.
        to_svg: Snapshot producer returning an SVG data URI.
        output_type: "png", "jpeg" or "webp".
        detector: Rendering-path check.
        use_fallback: Set to False to opt out of the fallback service.
        server_url: URL of the fallback ``/render`` endpoint.
        transport: Optional preconfigured transport (overrides ``server_url``).
        local: Optional local renderer.
        quality: JPEG quality in [0, 1].
        device_scale_factor: Physical pixels per logical pixel.
        **svg_options: Passed through to ``to_svg``.

    Returns:
        Base64 data URI of the rendered image.
    """
    if use_fallback and detector.prefers_server_rendering():
        logger.debug("Using fallback render service")
        transport = transport or FallbackTransport(server_url)
        return await transport.render_node(
            node,
            output_type,
            to_svg,
            quality=quality,
            device_scale_factor=device_scale_factor,
            **svg_options,
        )

    logger.debug("Using local renderer")
    svg_data_uri = to_svg(node, **svg_options)
    if inspect.isawaitable(svg_data_uri):
        svg_data_uri = await svg_data_uri
    local = local or ResvgRenderer()
    result = await asyncio.to_thread(
        local.render,
        svg_data_uri_to_string(svg_data_uri),
        output_type=output_type,
        quality=quality,
        device_scale_factor=device_scale_factor,
    )
    return encode_data_uri(result.buffer, result.format)
