"""Passive counters reported by the /stats endpoint."""

import logging
import threading
import time
from typing import Any

import psutil

logger = logging.getLogger(__name__)


class RequestCounter:
    """Thread-safe monotonically increasing counter."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class ServiceStats:
    """Process-wide observability state, created once per application."""

    def __init__(self) -> None:
        self.requests = RequestCounter()
        self._process = psutil.Process()

    def uptime(self) -> float:
        """Seconds since the process started."""
        return max(time.time() - self._process.create_time(), 0.0)

    def memory(self) -> dict[str, int]:
        """Resident and virtual memory of the process in bytes."""
        memory_info = self._process.memory_info()
        return {"rss": memory_info.rss, "vms": memory_info.vms}

    def snapshot(self) -> dict[str, Any]:
        return {
            "totalRequests": self.requests.value,
            "uptime": round(self.uptime(), 3),
            "memory": self.memory(),
        }
