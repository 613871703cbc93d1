"""Tests for PageRenderer with a fake browser driver."""

import asyncio
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import FakeEngine
from svg2raster import renderer as renderer_module
from svg2raster.driver import get_driver
from svg2raster.encoder import decode_image
from svg2raster.errors import (
    ConfigurationError,
    DimensionError,
    RenderError,
    RenderTimeoutError,
    ValidationError,
)
from svg2raster.renderer import (
    LAUNCH_ARGS,
    PageRenderer,
    build_html,
    render_sync,
    svg_to_jpeg,
    svg_to_png,
    svg_to_webp,
)

SVG = '<svg xmlns="http://www.w3.org/2000/svg" width="300" height="150"></svg>'


@pytest.fixture
def engine(monkeypatch: pytest.MonkeyPatch) -> FakeEngine:
    engine = FakeEngine(box={"width": 300, "height": 150})
    monkeypatch.setattr(renderer_module, "get_driver", engine.driver)
    return engine


def _use_engine(monkeypatch: pytest.MonkeyPatch, engine: FakeEngine) -> FakeEngine:
    monkeypatch.setattr(renderer_module, "get_driver", engine.driver)
    return engine


def _assert_released(engine: FakeEngine) -> None:
    """Assert every browser, context and driver session was closed."""
    assert engine.browsers
    for browser in engine.browsers:
        assert browser.closed
        assert browser.context is None or browser.context.closed
    assert engine.stopped == engine.sessions


def test_build_html() -> None:
    html = build_html(SVG)
    assert SVG in html
    assert "background: transparent" in html
    assert "margin: 0" in html


class TestPageRenderer:
    """Tests for PageRenderer.render()."""

    def test_render_png(self, engine: FakeEngine) -> None:
        result = asyncio.run(PageRenderer().render(SVG))

        assert (result.width, result.height) == (300, 150)
        assert result.format == "png"
        assert result.device_scale_factor == 2.0
        assert result.physical_size == (600, 300)
        assert decode_image(result.buffer).size == (600, 300)

        assert engine.launch_options == {"headless": True, "args": list(LAUNCH_ARGS)}
        assert engine.browser.context_options == {
            "viewport": {"width": 800, "height": 600},
            "device_scale_factor": 2.0,
        }
        page = engine.browser.page
        assert page is not None
        assert page.calls == ["set_content", "evaluate", "set_viewport_size", "screenshot"]
        assert SVG in page.content
        assert page.load_timeout == 30000.0
        assert page.screenshot_options == {
            "type": "png",
            "full_page": True,
            "omit_background": True,
        }
        _assert_released(engine)

    def test_measured_size_replaces_guess(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the output follows the rendered size, not the markup guess."""
        engine = _use_engine(monkeypatch, FakeEngine(box={"width": 40.2, "height": 20.7}))
        result = asyncio.run(
            PageRenderer().render(
                '<svg width="100" height="100"></svg>', device_scale_factor=3
            )
        )
        assert (result.width, result.height) == (41, 21)
        assert decode_image(result.buffer).size == (123, 63)
        assert engine.browser.context_options["viewport"] == {"width": 800, "height": 600}
        assert engine.browser.page.viewport == {"width": 41, "height": 21}

    def test_render_jpeg(self, engine: FakeEngine) -> None:
        result = asyncio.run(PageRenderer().render(SVG, output_type="jpeg", quality=0.5))
        assert result.buffer[:3] == b"\xff\xd8\xff"
        assert result.content_type == "image/jpeg"
        assert engine.browser.page.screenshot_options == {
            "type": "jpeg",
            "full_page": True,
            "quality": 50,
        }

    def test_render_webp(self, engine: FakeEngine) -> None:
        """Test WebP output is transcoded from a PNG capture."""
        result = asyncio.run(PageRenderer().render(SVG, output_type="webp"))
        assert result.buffer[8:12] == b"WEBP"
        assert engine.browser.page.screenshot_options["type"] == "png"
        assert decode_image(result.buffer).size == (600, 300)

    def test_timeout_is_forwarded(self, engine: FakeEngine) -> None:
        asyncio.run(PageRenderer().render(SVG, timeout_ms=1234))
        assert engine.browser.page.load_timeout == 1234

    def test_each_call_gets_its_own_browser(self, engine: FakeEngine) -> None:
        renderer = PageRenderer()

        async def main() -> None:
            await asyncio.gather(renderer.render(SVG), renderer.render(SVG))

        asyncio.run(main())
        assert len(engine.browsers) == 2
        assert engine.sessions == 2
        _assert_released(engine)

    def test_missing_svg_element(self, monkeypatch: pytest.MonkeyPatch) -> None:
        engine = _use_engine(monkeypatch, FakeEngine(box=None))
        with pytest.raises(DimensionError):
            asyncio.run(PageRenderer().render("<div>no vector here</div>"))
        assert engine.browser.page.calls == ["set_content", "evaluate"]
        _assert_released(engine)

    def test_load_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        engine = _use_engine(monkeypatch, FakeEngine(fail_on="load"))
        with pytest.raises(RenderTimeoutError) as excinfo:
            asyncio.run(PageRenderer().render(SVG, timeout_ms=10))
        assert isinstance(excinfo.value, TimeoutError)
        assert excinfo.value.to_dict()["type"] == "TimeoutError"
        _assert_released(engine)

    @pytest.mark.parametrize(
        "fail_on", ["context", "page", "load-error", "measure", "capture"]
    )
    def test_engine_failure(
        self, monkeypatch: pytest.MonkeyPatch, fail_on: str
    ) -> None:
        engine = _use_engine(
            monkeypatch, FakeEngine(box={"width": 10, "height": 10}, fail_on=fail_on)
        )
        with pytest.raises(RenderError):
            asyncio.run(PageRenderer().render(SVG))
        _assert_released(engine)

    def test_connect_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        engine = _use_engine(monkeypatch, FakeEngine(fail_on="connect"))
        with pytest.raises(ConfigurationError, match="browser driver"):
            asyncio.run(PageRenderer().render(SVG))
        assert engine.browsers == []

    def test_initial_viewport_ignores_child_sizes(self, engine: FakeEngine) -> None:
        """Test a child element's size does not shrink the page before measuring."""
        svg = '<svg viewBox="0 0 800 400"><rect width="10" height="10"/></svg>'
        asyncio.run(PageRenderer().render(svg))
        assert engine.browser.context_options["viewport"] == {"width": 800, "height": 600}

    def test_initial_viewport_grows_to_markup_size(self, engine: FakeEngine) -> None:
        asyncio.run(PageRenderer().render('<svg width="2000" height="1000.5"></svg>'))
        assert engine.browser.context_options["viewport"] == {"width": 2000, "height": 1001}

    def test_launch_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        engine = _use_engine(monkeypatch, FakeEngine(fail_on="launch"))
        with pytest.raises(ConfigurationError, match="playwright install chromium"):
            asyncio.run(PageRenderer().render(SVG))
        assert engine.browsers == []
        assert engine.stopped == 1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"svg": ""},
            {"svg": SVG, "output_type": "gif"},
            {"svg": SVG, "timeout_ms": 0},
            {"svg": SVG, "device_scale_factor": 0},
            {"svg": SVG, "device_scale_factor": -1},
            {"svg": SVG, "quality": 7},
        ],
    )
    def test_validation_before_launch(
        self, monkeypatch: pytest.MonkeyPatch, kwargs: dict
    ) -> None:
        """Test invalid input is rejected without touching the engine."""

        def fail() -> None:
            raise AssertionError("driver must not be resolved")

        monkeypatch.setattr(renderer_module, "get_driver", fail)
        with pytest.raises(ValidationError):
            asyncio.run(PageRenderer().render(**kwargs))

    def test_output_path(self, engine: FakeEngine, tmp_path: Path) -> None:
        output_path = os.path.join(tmp_path, "nested", "out.png")
        result = asyncio.run(PageRenderer().render(SVG, output_path=output_path))
        assert result.saved_path == output_path
        with open(output_path, "rb") as f:
            assert f.read() == result.buffer

    def test_debug_dir(self, engine: FakeEngine, tmp_path: Path) -> None:
        debug_dir = os.path.join(tmp_path, "debug")
        result = asyncio.run(PageRenderer(debug_dir=debug_dir).render(SVG))

        names = sorted(os.listdir(debug_dir))
        assert len(names) == 2
        assert names[0].startswith("capture-") and names[0].endswith(".png")
        assert names[1].startswith("html-") and names[1].endswith(".html")
        assert result.debug_path == os.path.join(debug_dir, names[0])
        with open(os.path.join(debug_dir, names[1]), encoding="utf-8") as f:
            assert SVG in f.read()


def test_svg_to_bytes_helpers(engine: FakeEngine) -> None:
    assert asyncio.run(svg_to_png(SVG))[:4] == b"\x89PNG"
    assert asyncio.run(svg_to_jpeg(SVG, quality=0.9))[:3] == b"\xff\xd8\xff"
    assert asyncio.run(svg_to_webp(SVG, device_scale_factor=1))[8:12] == b"WEBP"


def test_render_sync(engine: FakeEngine) -> None:
    result = render_sync(SVG, output_type="png", device_scale_factor=1)
    assert (result.width, result.height) == (300, 150)
    assert decode_image(result.buffer).size == (300, 150)


def test_render_sync_inside_event_loop(engine: FakeEngine) -> None:
    """Test the blocking call works from within a running loop."""

    async def main() -> tuple[int, int]:
        result = render_sync(SVG)
        return result.width, result.height

    assert asyncio.run(main()) == (300, 150)


def test_get_driver_without_playwright() -> None:
    get_driver.cache_clear()
    try:
        with patch.dict(sys.modules, {"playwright.async_api": None}):
            with pytest.raises(ConfigurationError, match="pip install playwright"):
                get_driver()
    finally:
        get_driver.cache_clear()
