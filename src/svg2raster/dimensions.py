import logging
import re
from re import Pattern

from svg2raster.models import Dimensions

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 300.0
DEFAULT_HEIGHT = 150.0

# Attribute boundary keeps "stroke-width" and "data-height" from matching.
WIDTH_RE: Pattern[str] = re.compile(
    r"""(?<![\w:-])width\s*=\s*["']?(\d+(?:\.\d+)?)"""
)
HEIGHT_RE: Pattern[str] = re.compile(
    r"""(?<![\w:-])height\s*=\s*["']?(\d+(?:\.\d+)?)"""
)


def _first_number(pattern: Pattern[str], text: str) -> float | None:
    match = pattern.search(text)
    if match is None:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def guess_dimensions(svg: str) -> Dimensions:
    """Guess the width and height of an SVG document from its markup.

    Only the first ``width``/``height`` attributes are looked at, and 300x150
    is assumed when either is missing. The guess is a placeholder until the
    rendered size is measured and must not be used as the output size.
    """
    width = _first_number(WIDTH_RE, svg)
    height = _first_number(HEIGHT_RE, svg)
    if width is None or height is None:
        logger.debug("No numeric width/height attribute, assuming defaults")
    return Dimensions(
        width=width if width is not None else DEFAULT_WIDTH,
        height=height if height is not None else DEFAULT_HEIGHT,
    )
