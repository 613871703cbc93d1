import io
import os
from typing import Any

import pytest
from PIL import Image

from svg2raster.driver import Driver


def get_fixture(name: str) -> str:
    """Get a fixture by name."""
    return os.path.join(os.path.dirname(__file__), "fixtures", name)


def make_png(size: tuple[int, int], color: tuple[int, int, int, int] = (255, 0, 0, 255)) -> bytes:
    """Encode a solid RGBA image as PNG bytes."""
    with io.BytesIO() as output:
        Image.new("RGBA", size, color).save(output, format="PNG")
        return output.getvalue()


# Check if playwright is available
def has_playwright() -> bool:
    """Check if playwright is installed."""
    try:
        import playwright  # noqa: F401, PLC0415

        return True
    except ImportError:
        return False


requires_playwright = pytest.mark.skipif(
    not has_playwright(),
    reason="Playwright not installed",
)


class FakeError(Exception):
    pass


class FakeTimeoutError(FakeError):
    pass


class FakePage:
    """Stand-in for a Playwright page that records every call."""

    def __init__(self, browser: "FakeBrowser") -> None:
        self.browser = browser
        self.calls: list[str] = []
        self.content: str | None = None
        self.load_timeout: float | None = None
        self.viewport: dict[str, int] | None = None
        self.screenshot_options: dict[str, Any] | None = None

    async def set_content(self, html: str, wait_until: str, timeout: float) -> None:
        self.calls.append("set_content")
        self.content = html
        self.load_timeout = timeout
        if self.browser.fail_on == "load":
            raise FakeTimeoutError("Timeout exceeded")
        if self.browser.fail_on == "load-error":
            raise FakeError("net::ERR_ABORTED")

    async def evaluate(self, script: str) -> Any:
        self.calls.append("evaluate")
        if self.browser.fail_on == "measure":
            raise FakeError("Execution context was destroyed")
        return self.browser.box

    async def set_viewport_size(self, viewport: dict[str, int]) -> None:
        self.calls.append("set_viewport_size")
        self.viewport = viewport

    async def screenshot(self, **options: Any) -> bytes:
        self.calls.append("screenshot")
        self.screenshot_options = options
        if self.browser.fail_on == "capture":
            raise FakeError("Target closed")
        assert self.viewport is not None
        scale = self.browser.context_options["device_scale_factor"]
        size = (
            round(self.viewport["width"] * scale),
            round(self.viewport["height"] * scale),
        )
        if options.get("type") == "jpeg":
            with io.BytesIO() as output:
                Image.new("RGB", size, (255, 0, 0)).save(output, format="JPEG")
                return output.getvalue()
        return make_png(size)


class FakeContext:
    def __init__(self, browser: "FakeBrowser") -> None:
        self.browser = browser
        self.closed = False

    async def new_page(self) -> FakePage:
        if self.browser.fail_on == "page":
            raise FakeError("Target page, context or browser has been closed")
        self.browser.page = FakePage(self.browser)
        return self.browser.page

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, box: dict[str, float] | None, fail_on: str | None) -> None:
        self.box = box
        self.fail_on = fail_on
        self.closed = False
        self.context: FakeContext | None = None
        self.context_options: dict[str, Any] = {}
        self.page: FakePage | None = None

    async def new_context(self, **options: Any) -> FakeContext:
        self.context_options = options
        if self.fail_on == "context":
            raise FakeError("Browser has been closed")
        self.context = FakeContext(self)
        return self.context

    async def close(self) -> None:
        self.closed = True


class FakeLauncher:
    def __init__(self, engine: "FakeEngine") -> None:
        self.engine = engine

    async def launch(self, **options: Any) -> FakeBrowser:
        self.engine.launch_options = options
        if self.engine.fail_on == "launch":
            raise FakeError("Executable doesn't exist at /ms-playwright/chromium")
        browser = FakeBrowser(self.engine.box, self.engine.fail_on)
        self.engine.browsers.append(browser)
        return browser


class FakeEngine:
    """Fake Playwright driver.

    Args:
        box: Bounding box reported by the measure script, or None when the
            document has no <svg> element.
        fail_on: Step that raises ("connect", "launch", "context", "page",
            "load", "load-error", "measure", "capture").
    """

    def __init__(
        self,
        box: dict[str, float] | None = None,
        fail_on: str | None = None,
    ) -> None:
        self.box = box
        self.fail_on = fail_on
        self.browsers: list[FakeBrowser] = []
        self.launch_options: dict[str, Any] = {}
        self.sessions = 0
        self.stopped = 0
        self.chromium = FakeLauncher(self)

    async def __aenter__(self) -> "FakeEngine":
        if self.fail_on == "connect":
            raise FakeError("Driver executable not found")
        self.sessions += 1
        return self

    async def __aexit__(self, *args: object) -> None:
        self.stopped += 1

    @property
    def browser(self) -> FakeBrowser:
        return self.browsers[-1]

    def driver(self) -> Driver:
        return Driver(
            connect=lambda: self, error=FakeError, timeout_error=FakeTimeoutError
        )


@pytest.fixture
def simple_svg() -> str:
    """Simple SVG for basic testing."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100" viewBox="0 0 100 100">
    <rect x="10" y="10" width="80" height="80" fill="red"/>
</svg>"""
