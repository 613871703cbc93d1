"""Service configuration.

Settings come from constructor arguments or, through
:meth:`ServiceConfig.default`, from environment variables:

    SVG2RASTER_HOST: Interface to bind (default: 127.0.0.1)
    SVG2RASTER_PORT: Port to listen on (default: 4000)
    SVG2RASTER_BROWSER: Browser engine, chromium, firefox or webkit
        (default: chromium)
    SVG2RASTER_DEBUG_DIR: Directory for debug artifacts (default: unset, off)
    SVG2RASTER_MAX_BODY_SIZE: Maximum request body in bytes
        (default: 524288000 = 500MB, 0 disables the check)
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SERVICE_NAME = "SVG Fullpage Renderer"

DEFAULT_MAX_BODY_SIZE = 500 * 1024 * 1024

BROWSER_TYPES = ("chromium", "firefox", "webkit")


def _parse_env_int(key: str, default: int) -> int:
    """Parse integer from environment variable with validation.

    Raises:
        ValueError: If value is not a valid integer.
    """
    value_str = os.environ.get(key)
    if value_str is None:
        return default

    try:
        value = int(value_str)
    except ValueError as e:
        raise ValueError(
            f"Environment variable {key}={value_str!r} is not a valid integer"
        ) from e

    if value < 0:
        logger.warning(
            f"Environment variable {key}={value} is negative, treating as 0."
        )
        return 0

    return value


@dataclass
class ServiceConfig:
    """Settings of the fallback render service.

    Example:
        >>> config = ServiceConfig.default()
        >>> config = ServiceConfig(port=8080, debug_dir="/tmp/svg2raster")
    """

    host: str = "127.0.0.1"
    port: int = 4000
    browser_type: str = "chromium"
    debug_dir: str | None = None
    max_body_size: int = DEFAULT_MAX_BODY_SIZE

    def __post_init__(self) -> None:
        if self.browser_type not in BROWSER_TYPES:
            raise ValueError(
                f"Unsupported browser type {self.browser_type!r}, "
                f"expected one of {', '.join(BROWSER_TYPES)}"
            )

    @classmethod
    def default(cls) -> "ServiceConfig":
        """Create ServiceConfig from environment variables.

        Raises:
            ValueError: If an environment variable holds an invalid value.
        """
        return cls(
            host=os.environ.get("SVG2RASTER_HOST", "127.0.0.1"),
            port=_parse_env_int("SVG2RASTER_PORT", 4000),
            browser_type=os.environ.get("SVG2RASTER_BROWSER", "chromium"),
            debug_dir=os.environ.get("SVG2RASTER_DEBUG_DIR") or None,
            max_body_size=_parse_env_int(
                "SVG2RASTER_MAX_BODY_SIZE", DEFAULT_MAX_BODY_SIZE
            ),
        )

    def is_body_size_limited(self) -> bool:
        """Check if the request body limit is enabled."""
        return self.max_body_size > 0
