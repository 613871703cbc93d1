"""Decide whether a client should take the server-rendered path.

The decision is made from the user-agent string, which is an approximation:
browsers change their identifying strings over time. Callers depend on the
:class:`CapabilityDetector` interface so the check can be forced in tests or
replaced by a more precise one.
"""

import logging
import re
from abc import ABC, abstractmethod
from re import Pattern

logger = logging.getLogger(__name__)

# Engine whose canvas-based capture is lower fidelity.
SINGLE_ENGINE_RE: Pattern[str] = re.compile(r"Safari")

# Browsers that also advertise "Safari" in their user agent.
MULTI_ENGINE_RE: Pattern[str] = re.compile(
    r"Chrome|Chromium|CriOS|Firefox|FxiOS|Edg|OPR"
)


class CapabilityDetector(ABC):
    """Interface of the rendering-path check."""

    @abstractmethod
    def prefers_server_rendering(self) -> bool:
        """Return True if the server-rendered path should be preferred."""
        raise NotImplementedError


class UserAgentCapability(CapabilityDetector):
    """User-agent sniffing check.

    Positive when the user agent carries the Safari signature and none of
    the signatures of the other browsers that embed it.

    Example:
        >>> UserAgentCapability(
        ...     "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/605.1.15 "
        ...     "(KHTML, like Gecko) Version/17.4 Safari/605.1.15"
        ... ).prefers_server_rendering()
        True
    """

    def __init__(self, user_agent: str | None) -> None:
        self.user_agent = user_agent or ""

    def prefers_server_rendering(self) -> bool:
        result = bool(SINGLE_ENGINE_RE.search(self.user_agent)) and not bool(
            MULTI_ENGINE_RE.search(self.user_agent)
        )
        logger.debug(f"Server rendering preferred={result} for {self.user_agent!r}")
        return result


class StaticCapability(CapabilityDetector):
    """Fixed answer, for tests or externally made decisions."""

    def __init__(self, value: bool) -> None:
        self.value = value

    def prefers_server_rendering(self) -> bool:
        return self.value
