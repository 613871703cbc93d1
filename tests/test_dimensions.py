"""Tests for the markup size heuristic."""

import pytest

from svg2raster.dimensions import DEFAULT_HEIGHT, DEFAULT_WIDTH, guess_dimensions


@pytest.mark.parametrize(
    "svg, expected",
    [
        ('<svg width="400" height="200"></svg>', (400.0, 200.0)),
        ("<svg width='12.5' height='7.25'></svg>", (12.5, 7.25)),
        ("<svg width=64 height=32></svg>", (64.0, 32.0)),
        ('<svg width = "10" height = "20"></svg>', (10.0, 20.0)),
        ('<svg width="50%" height="20px"></svg>', (50.0, 20.0)),
    ],
)
def test_guess_dimensions(svg: str, expected: tuple[float, float]) -> None:
    """Test numeric width/height attributes are picked up."""
    dimensions = guess_dimensions(svg)
    assert (dimensions.width, dimensions.height) == expected


def test_guess_dimensions_defaults() -> None:
    """Test 300x150 is assumed without attributes."""
    dimensions = guess_dimensions('<svg viewBox="0 0 10 10"></svg>')
    assert dimensions.width == DEFAULT_WIDTH == 300
    assert dimensions.height == DEFAULT_HEIGHT == 150


def test_guess_dimensions_defaults_independently() -> None:
    """Test a missing attribute defaults without discarding the other one."""
    assert guess_dimensions('<svg width="80"></svg>').height == 150
    assert guess_dimensions('<svg width="80"></svg>').width == 80
    assert guess_dimensions('<svg height="40"></svg>').width == 300


def test_guess_dimensions_first_match_wins() -> None:
    """Test only the first occurrence is used."""
    svg = '<svg width="100" height="50"><rect width="999" height="999"/></svg>'
    dimensions = guess_dimensions(svg)
    assert (dimensions.width, dimensions.height) == (100, 50)


def test_guess_dimensions_ignores_compound_attributes() -> None:
    """Test stroke-width and data-height do not count as width/height."""
    svg = (
        '<svg stroke-width="3" data-height="9">'
        '<rect width="20" height="10"/></svg>'
    )
    dimensions = guess_dimensions(svg)
    assert (dimensions.width, dimensions.height) == (20, 10)


def test_guess_dimensions_non_numeric() -> None:
    """Test non-numeric values fall back to defaults."""
    dimensions = guess_dimensions('<svg width="auto" height="none"></svg>')
    assert (dimensions.width, dimensions.height) == (300, 150)
