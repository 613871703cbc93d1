"""Error taxonomy shared by the renderer, the transport and the service.

Every error carries a ``kind`` tag (reported as ``type`` by the HTTP layer)
and the HTTP status the service answers with.
"""

import builtins


class Svg2RasterError(Exception):
    """Base class for all rendering pipeline errors."""

    kind = "Svg2RasterError"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Return the JSON body reported for this error."""
        return {"error": self.message, "type": self.kind}


class ConfigurationError(Svg2RasterError):
    """The rendering engine is unavailable (library or browser missing)."""

    kind = "ConfigurationError"


class ValidationError(Svg2RasterError):
    """The render request is malformed. Always the caller's fault."""

    kind = "ValidationError"
    status_code = 400


class DimensionError(Svg2RasterError):
    """The rendered document has no discoverable <svg> element."""

    kind = "DimensionError"


class RenderTimeoutError(Svg2RasterError, builtins.TimeoutError):
    """The document did not settle within the content-load bound."""

    kind = "TimeoutError"


class TransportError(Svg2RasterError):
    """The fallback service could not be reached or answered with a failure."""

    kind = "TransportError"


class RenderError(Svg2RasterError):
    """Uncategorized capture failure."""

    kind = "RenderError"
