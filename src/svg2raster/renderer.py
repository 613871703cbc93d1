"""Headless browser renderer.

Each call launches its own browser, loads the SVG into a minimal HTML shell,
measures the rendered <svg> element, fits the viewport to it and takes a
full-page screenshot. Nothing is shared between calls.
"""

import asyncio
import concurrent.futures
import contextlib
import logging
import os
from datetime import datetime
from typing import Any, AsyncIterator, Literal

from svg2raster import encoder
from svg2raster.dimensions import guess_dimensions
from svg2raster.driver import Driver, get_driver
from svg2raster.errors import (
    ConfigurationError,
    DimensionError,
    RenderError,
    RenderTimeoutError,
)
from svg2raster.models import (
    DEFAULT_DEVICE_SCALE_FACTOR,
    DEFAULT_QUALITY,
    DEFAULT_TIMEOUT_MS,
    MeasuredExtent,
    RenderRequest,
    RenderResult,
)

logger = logging.getLogger(__name__)

BrowserType = Literal["chromium", "firefox", "webkit"]

LAUNCH_ARGS: tuple[str, ...] = ("--no-sandbox", "--disable-setuid-sandbox")

MEASURE_SCRIPT = """() => {
    const svg = document.querySelector('svg');
    if (!svg) return null;
    const rect = svg.getBoundingClientRect();
    return {width: rect.width, height: rect.height};
}"""

# Page size before measurement, matching a default desktop browser window.
INITIAL_VIEWPORT: dict[str, int] = {"width": 800, "height": 600}


def initial_viewport(svg: str) -> dict[str, int]:
    """Viewport to load ``svg`` in before its rendered size is known.

    The markup guess only ever enlarges ``INITIAL_VIEWPORT``, so a small
    ``width``/``height`` on a child element cannot shrink the layout box of
    an <svg> that has no size of its own.
    """
    dimensions = guess_dimensions(svg)
    guess = MeasuredExtent.from_box(dimensions.width, dimensions.height)
    return {
        "width": max(guess.width, INITIAL_VIEWPORT["width"]),
        "height": max(guess.height, INITIAL_VIEWPORT["height"]),
    }


def build_html(svg: str) -> str:
    """Embed SVG markup in a transparent, margin-free, centered HTML page."""
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8" />
<meta name="viewport" content="width=device-width, initial-scale=1.0" />
<style>
* {{
    margin: 0;
    padding: 0;
    box-sizing: border-box;
}}
html, body {{
    width: 100%;
    height: 100%;
    background: transparent;
    display: flex;
    align-items: center;
    justify-content: center;
    overflow: hidden;
}}
svg {{
    display: block;
    max-width: 100vw;
    max-height: 100vh;
}}
</style>
</head>
<body>
{svg}
</body>
</html>"""


class PageRenderer:
    """Browser-based SVG renderer using Playwright.

    The renderer itself holds configuration only. Every :meth:`render` call
    owns a fresh browser instance and closes it before returning or raising.

    Example:
        >>> renderer = PageRenderer()
        >>> result = await renderer.render('<svg width="300" height="150"/>')
        >>> result.width, result.height
        (300, 150)
    """

    def __init__(
        self,
        browser_type: BrowserType = "chromium",
        launch_args: tuple[str, ...] = LAUNCH_ARGS,
        debug_dir: str | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            browser_type: Browser engine to launch ("chromium", "firefox" or
                "webkit"). Default is "chromium".
            launch_args: Command line switches passed to the browser.
            debug_dir: If set, the HTML shell and the capture of every call
                are written to this directory under timestamped names.
        """
        self.browser_type = browser_type
        self.launch_args = launch_args
        self.debug_dir = debug_dir

    async def render(
        self,
        svg: str,
        output_type: str = "png",
        quality: float = DEFAULT_QUALITY,
        device_scale_factor: float = DEFAULT_DEVICE_SCALE_FACTOR,
        timeout_ms: float = DEFAULT_TIMEOUT_MS,
        output_path: str | None = None,
    ) -> RenderResult:
        """Render SVG markup to an encoded image.

        Args:
            svg: SVG markup.
            output_type: "png", "jpeg" or "webp".
            quality: JPEG quality in [0, 1]. Ignored for other formats.
            device_scale_factor: Physical pixels per logical pixel.
            timeout_ms: Bound on waiting for the document to settle.
            output_path: If set, the encoded image is also written here.

        Returns:
            RenderResult with the logical (unscaled) size of the capture.

        Raises:
            ValidationError: If the SVG is empty, the format unsupported or a
                numeric option out of range.
            ConfigurationError: If the browser engine is unavailable.
            RenderTimeoutError: If loading exceeds ``timeout_ms``.
            DimensionError: If the document contains no <svg> element.
            RenderError: On any other capture failure.
        """
        request = RenderRequest(
            svg=svg,
            output_type=output_type,
            quality=quality,
            device_scale_factor=device_scale_factor,
            timeout_ms=timeout_ms,
        )
        return await self.render_request(request, output_path=output_path)

    async def render_request(
        self, request: RenderRequest, output_path: str | None = None
    ) -> RenderResult:
        """Render an already validated request. See :meth:`render`."""
        driver = get_driver()
        html = build_html(request.svg)
        timestamp = datetime.now().isoformat().replace(":", "-").replace(".", "-")
        if self.debug_dir:
            await self._dump(
                self.debug_dir, f"html-{timestamp}.html", html.encode("utf-8")
            )

        logger.debug(
            f"Rendering {len(request.svg.encode('utf-8')) / 1024:.2f} KB SVG "
            f"as {request.output_type} (scale {request.device_scale_factor}x)"
        )
        async with self._open_page(driver, request) as page:
            await self._load(driver, page, html, request.timeout_ms)
            extent = await self._measure(driver, page)
            await self._fit(driver, page, extent)
            buffer = await self._capture(driver, page, request)

        if not buffer:
            raise RenderError("Screenshot returned no data")

        result = RenderResult(
            buffer=buffer,
            width=extent.width,
            height=extent.height,
            format=request.output_type,
            device_scale_factor=request.device_scale_factor,
        )
        if output_path:
            await asyncio.to_thread(_write_file, output_path, buffer)
            result.saved_path = output_path
        if self.debug_dir:
            result.debug_path = await self._dump(
                self.debug_dir, f"capture-{timestamp}.{request.output_type}", buffer
            )
        return result

    @contextlib.asynccontextmanager
    async def _open_page(
        self, driver: Driver, request: RenderRequest
    ) -> AsyncIterator[Any]:
        """Launch an isolated browser and yield a single page in it.

        The initial viewport is at least ``INITIAL_VIEWPORT`` and grows to the
        size guessed from the markup; it is replaced by the measured size
        before capture.
        """
        viewport = initial_viewport(request.svg)
        async with contextlib.AsyncExitStack() as stack:
            try:
                playwright = await stack.enter_async_context(driver.connect())
            except driver.error as e:
                raise ConfigurationError(
                    f"Could not start the browser driver: {e}"
                ) from e

            launcher = getattr(playwright, self.browser_type)
            logger.debug(f"Launching headless {self.browser_type}")
            try:
                browser = await launcher.launch(
                    headless=True, args=list(self.launch_args)
                )
            except driver.error as e:
                raise ConfigurationError(
                    f"Could not launch {self.browser_type}: {e}. "
                    f"Run: playwright install {self.browser_type}"
                ) from e
            stack.push_async_callback(self._close_browser, browser)

            try:
                context = await browser.new_context(
                    viewport=viewport,
                    device_scale_factor=request.device_scale_factor,
                )
            except driver.error as e:
                raise RenderError(f"Failed to create browser context: {e}") from e
            stack.push_async_callback(context.close)

            try:
                page = await context.new_page()
            except driver.error as e:
                raise RenderError(f"Failed to open page: {e}") from e
            yield page

    async def _close_browser(self, browser: Any) -> None:
        logger.debug(f"Closing headless {self.browser_type}")
        await browser.close()

    async def _load(
        self, driver: Driver, page: Any, html: str, timeout_ms: float
    ) -> None:
        try:
            await page.set_content(html, wait_until="networkidle", timeout=timeout_ms)
        except driver.timeout_error as e:
            raise RenderTimeoutError(
                f"Content did not settle within {timeout_ms:g} ms"
            ) from e
        except driver.error as e:
            raise RenderError(f"Failed to load content: {e}") from e

    async def _measure(self, driver: Driver, page: Any) -> MeasuredExtent:
        try:
            box = await page.evaluate(MEASURE_SCRIPT)
        except driver.error as e:
            raise RenderError(f"Failed to measure SVG element: {e}") from e
        if box is None:
            raise DimensionError("SVG element not found in the rendered document")
        extent = MeasuredExtent.from_box(box["width"], box["height"])
        logger.debug(f"Measured SVG extent {extent.width}x{extent.height}")
        return extent

    async def _fit(self, driver: Driver, page: Any, extent: MeasuredExtent) -> None:
        try:
            await page.set_viewport_size(
                {"width": extent.width, "height": extent.height}
            )
        except driver.error as e:
            raise RenderError(f"Failed to resize viewport: {e}") from e

    async def _capture(
        self, driver: Driver, page: Any, request: RenderRequest
    ) -> bytes:
        options = encoder.screenshot_options(request.output_type, request.quality)
        try:
            buffer = await page.screenshot(**options)
        except driver.error as e:
            raise RenderError(f"Screenshot failed: {e}") from e
        return await asyncio.to_thread(encoder.encode, buffer, request.output_type)

    async def _dump(self, directory: str, filename: str, data: bytes) -> str:
        path = os.path.join(directory, filename)
        await asyncio.to_thread(_write_file, path, data)
        logger.info(f"Saved debug artifact {path} ({len(data)} bytes)")
        return path


def _write_file(path: str, data: bytes) -> None:
    dirname = os.path.dirname(path)
    if dirname and not os.path.exists(dirname):
        logger.debug(f"Creating {dirname}")
        os.makedirs(dirname, exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


async def render(
    svg: str,
    browser_type: BrowserType = "chromium",
    debug_dir: str | None = None,
    **options: Any,
) -> RenderResult:
    """Render SVG markup with a one-off :class:`PageRenderer`.

    Keyword options are those of :meth:`PageRenderer.render`.
    """
    renderer = PageRenderer(browser_type=browser_type, debug_dir=debug_dir)
    return await renderer.render(svg, **options)


async def svg_to_png(svg: str, **options: Any) -> bytes:
    """Render SVG markup to PNG bytes."""
    result = await render(svg, **{**options, "output_type": "png"})
    return result.buffer


async def svg_to_jpeg(svg: str, **options: Any) -> bytes:
    """Render SVG markup to JPEG bytes."""
    result = await render(svg, **{**options, "output_type": "jpeg"})
    return result.buffer


async def svg_to_webp(svg: str, **options: Any) -> bytes:
    """Render SVG markup to WebP bytes."""
    result = await render(svg, **{**options, "output_type": "webp"})
    return result.buffer


def render_sync(svg: str, **options: Any) -> RenderResult:
    """Blocking variant of :func:`render`.

    Inside a running event loop (e.g., Jupyter) the render runs on a
    dedicated thread with its own loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(render(svg, **options))

    logger.debug("Running render in dedicated thread due to existing event loop")
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(asyncio.run, render(svg, **options))
        return future.result()
