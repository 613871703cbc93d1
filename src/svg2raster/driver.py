"""Resolution of the browser automation library.

Playwright is imported on first use only, so that the rest of the package
(transport, capability checks, the local path) works without it.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable

from svg2raster.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Driver:
    """Entry point and exception types of the browser automation library."""

    connect: Callable[[], Any]
    error: type[Exception]
    timeout_error: type[Exception]


@functools.lru_cache(maxsize=None)
def get_driver() -> Driver:
    """Resolve the Playwright async API once.

    Raises:
        ConfigurationError: If Playwright is not installed.
    """
    try:
        from playwright.async_api import Error, TimeoutError, async_playwright
    except ImportError as e:
        raise ConfigurationError(
            "Playwright is required for server-side rendering. "
            "Install with: pip install playwright && playwright install chromium"
        ) from e
    logger.debug("Resolved Playwright async driver")
    return Driver(connect=async_playwright, error=Error, timeout_error=TimeoutError)
