"""Client side of the fallback protocol.

Takes the SVG snapshot of a DOM node, ships it to the fallback service and
turns the binary reply into the data URI the lighter client path would have
produced. Whether to take this path is decided by the caller.
"""

import base64
import binascii
import inspect
import logging
from typing import Any, Callable
from urllib.parse import unquote

import httpx

from svg2raster.encoder import encode_data_uri
from svg2raster.errors import TransportError
from svg2raster.models import DEFAULT_DEVICE_SCALE_FACTOR, DEFAULT_QUALITY

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "/render"

SVG_DATA_URI_PREFIX = "data:image/svg+xml"


def svg_data_uri_to_string(svg_data_uri: str) -> str:
    """Recover raw SVG markup from a ``data:image/svg+xml[;enc],<payload>`` URI.

    Strings that are not SVG data URIs are returned unchanged.
    """
    if not svg_data_uri.startswith(SVG_DATA_URI_PREFIX):
        return svg_data_uri

    header, _, payload = svg_data_uri.partition(",")
    if ";base64" in header.lower():
        try:
            return base64.b64decode(payload).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise TransportError(f"Invalid base64 SVG data URI: {e}") from e
    return unquote(payload)


class FallbackTransport:
    """HTTP client of the fallback render service.

    Example:
        >>> transport = FallbackTransport("http://localhost:4000/render")
        >>> png = await transport.fetch_render('<svg width="10" height="10"/>')
    """

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            server_url: URL of the ``/render`` endpoint. A relative URL needs
                a ``client`` configured with a ``base_url``.
            client: Optional shared client. It is not closed by the transport.
                When omitted, a client is created for each request.
            timeout: Request timeout in seconds for the per-request client.
                None means no timeout.
        """
        self.server_url = server_url
        self.client = client
        self.timeout = timeout

    async def fetch_render(
        self,
        svg: str,
        output_type: str = "png",
        quality: float = DEFAULT_QUALITY,
        device_scale_factor: float = DEFAULT_DEVICE_SCALE_FACTOR,
    ) -> bytes:
        """Ask the service to render SVG markup and return the image bytes.

        Raises:
            TransportError: If the service is unreachable or reports a failure.
        """
        payload = {
            "svg": svg,
            "outputType": output_type,
            "quality": quality,
            "deviceScaleFactor": device_scale_factor,
        }
        logger.debug(f"Requesting {output_type} render from {self.server_url}")
        try:
            if self.client is not None:
                response = await self.client.post(self.server_url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.server_url, json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f"Fallback render failed: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Fallback render failed: {_error_message(response)}"
            )
        if not response.content:
            raise TransportError("Fallback render failed: empty response body")
        return response.content

    async def render_node(
        self,
        node: Any,
        output_type: str,
        to_svg: Callable[..., Any],
        quality: float = DEFAULT_QUALITY,
        device_scale_factor: float = DEFAULT_DEVICE_SCALE_FACTOR,
        **svg_options: Any,
    ) -> str:
        """Render a DOM node through the fallback service.

        Args:
            node: Node handed to the snapshot producer.
            output_type: "png", "jpeg" or "webp".
            to_svg: Snapshot producer, ``to_svg(node, **svg_options)``
                returning an SVG data URI (plain or awaitable).
            quality: JPEG quality in [0, 1].
            device_scale_factor: Physical pixels per logical pixel.
            **svg_options: Passed through to ``to_svg``.

        Returns:
            Base64 data URI of the rendered image.
        """
        svg_data_uri = to_svg(node, **svg_options)
        if inspect.isawaitable(svg_data_uri):
            svg_data_uri = await svg_data_uri
        svg = svg_data_uri_to_string(svg_data_uri)
        buffer = await self.fetch_render(
            svg,
            output_type=output_type,
            quality=quality,
            device_scale_factor=device_scale_factor,
        )
        return encode_data_uri(buffer, output_type)


def _error_message(response: httpx.Response) -> str:
    """Extract the service's error message, falling back to the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase or f"HTTP {response.status_code}"
