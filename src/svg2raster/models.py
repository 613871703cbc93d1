"""Data model of a render call: the request, the measured extent and the result."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping

from svg2raster.errors import ValidationError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS: tuple[str, ...] = ("png", "jpeg", "webp")

DEFAULT_OUTPUT_TYPE = "png"
DEFAULT_QUALITY = 1.0
DEFAULT_DEVICE_SCALE_FACTOR = 2.0
DEFAULT_TIMEOUT_MS = 30000.0


def validate_output_type(output_type: str) -> str:
    """Normalize an output type and reject anything outside SUPPORTED_FORMATS."""
    normalized = str(output_type).strip().lower()
    if normalized not in SUPPORTED_FORMATS:
        raise ValidationError(
            f"outputType must be one of {', '.join(SUPPORTED_FORMATS)} "
            f"(got {output_type!r})"
        )
    return normalized


def _coerce_number(
    value: Any,
    default: float,
    minimum: float | None = None,
    maximum: float | None = None,
    exclusive_minimum: bool = False,
) -> float:
    """Coerce a loosely typed field to a finite number within range.

    Missing, unparsable, non-finite and out-of-range values fall back to
    ``default`` instead of failing the request.
    """
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring non-numeric value {value!r}, using {default}")
        return default
    if not math.isfinite(number):
        return default
    if minimum is not None:
        if number < minimum or (exclusive_minimum and number == minimum):
            return default
    if maximum is not None and number > maximum:
        return default
    return number


def _check_number(name: str, value: Any) -> float:
    """Convert ``value`` to a finite float or raise ValidationError."""
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number (got {value!r})") from e
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be finite (got {value!r})")
    return number


@dataclass
class Dimensions:
    """Best-effort size guess read from the raw markup."""

    width: float
    height: float


@dataclass(frozen=True)
class MeasuredExtent:
    """Rendered size of the <svg> element in whole logical pixels."""

    width: int
    height: int

    @classmethod
    def from_box(cls, width: float, height: float) -> "MeasuredExtent":
        """Round a bounding box up to whole pixels, never below 1x1."""
        return cls(
            width=max(math.ceil(width), 1),
            height=max(math.ceil(height), 1),
        )


@dataclass
class RenderRequest:
    """A single render submission.

    Example:
        >>> request = RenderRequest.from_fields({"svg": "<svg/>", "quality": "0.8"})
        >>> request.output_type, request.quality
        ('png', 0.8)
    """

    svg: str
    output_type: str = DEFAULT_OUTPUT_TYPE
    quality: float = DEFAULT_QUALITY
    device_scale_factor: float = DEFAULT_DEVICE_SCALE_FACTOR
    timeout_ms: float = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if not isinstance(self.svg, str) or not self.svg.strip():
            raise ValidationError("SVG markup is required (svg field)")
        self.output_type = validate_output_type(self.output_type)
        self.quality = _check_number("quality", self.quality)
        if not 0.0 <= self.quality <= 1.0:
            raise ValidationError(
                f"quality must be within [0, 1] (got {self.quality})"
            )
        self.device_scale_factor = _check_number(
            "device_scale_factor", self.device_scale_factor
        )
        if self.device_scale_factor <= 0:
            raise ValidationError(
                f"device_scale_factor must be positive (got {self.device_scale_factor})"
            )
        self.timeout_ms = _check_number("timeout_ms", self.timeout_ms)
        if self.timeout_ms <= 0:
            raise ValidationError(
                f"timeout_ms must be positive (got {self.timeout_ms})"
            )

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> "RenderRequest":
        """Build a request from wire fields (JSON body or form data).

        Args:
            fields: Mapping with camelCase keys ``svg``, ``outputType``,
                ``quality``, ``deviceScaleFactor`` and ``timeoutMs`` (the
                older ``timeout`` key is accepted as well).

        Returns:
            Validated RenderRequest.

        Raises:
            ValidationError: If ``svg`` is missing or empty, or ``outputType``
                is not supported.
        """
        svg = fields.get("svg")
        if isinstance(svg, bytes):
            svg = svg.decode("utf-8")
        if svg is None or not isinstance(svg, str):
            raise ValidationError("SVG markup is required (svg field)")

        output_type = fields.get("outputType") or DEFAULT_OUTPUT_TYPE

        timeout = fields.get("timeoutMs")
        if timeout is None:
            timeout = fields.get("timeout")

        return cls(
            svg=svg,
            output_type=output_type,
            quality=_coerce_number(
                fields.get("quality"), DEFAULT_QUALITY, minimum=0.0, maximum=1.0
            ),
            device_scale_factor=_coerce_number(
                fields.get("deviceScaleFactor"),
                DEFAULT_DEVICE_SCALE_FACTOR,
                minimum=0.0,
                exclusive_minimum=True,
            ),
            timeout_ms=_coerce_number(
                timeout, DEFAULT_TIMEOUT_MS, minimum=0.0, exclusive_minimum=True
            ),
        )


@dataclass
class RenderResult:
    """Outcome of a successful render.

    ``width`` and ``height`` are the logical viewport size; the encoded image
    is ``device_scale_factor`` times larger in each dimension.
    """

    buffer: bytes
    width: int
    height: int
    format: str
    device_scale_factor: float = 1.0
    saved_path: str | None = None
    debug_path: str | None = None

    @property
    def physical_size(self) -> tuple[int, int]:
        """Pixel size of the encoded image."""
        return (
            round(self.width * self.device_scale_factor),
            round(self.height * self.device_scale_factor),
        )

    @property
    def content_type(self) -> str:
        return f"image/{self.format}"
