"""Fixed-window request rate limiting for the HTTP boundary.

Each client key gets ``max_requests`` per ``window_seconds``. State is
in-process; behind several workers each worker limits independently.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate-limit check."""
    allowed: bool
    retry_after_seconds: int = 0


class FixedWindowRateLimiter:
    """Per-client fixed-window counter."""

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize limiter.

        Args:
            max_requests: Requests allowed per window per client
            window_seconds: Window length
            clock: Monotonic time source (injected for testing)
        """
        if max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_prune_at = self._clock() + window_seconds

    def check(self, key: str) -> RateLimitDecision:
        """Count a request for ``key`` and decide whether it may proceed."""
        now = self._clock()

        with self._lock:
            if now >= self._next_prune_at:
                self._prune(now)

            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return RateLimitDecision(allowed=True)

            window.count += 1
            if window.count > self.max_requests:
                retry_after = max(1, math.ceil(window.reset_at - now))
                logger.warning(
                    "RATE_LIMIT_EXCEEDED",
                    extra={
                        "request_count": window.count,
                        "max_requests": self.max_requests,
                        "retry_after_seconds": retry_after,
                    }
                )
                return RateLimitDecision(allowed=False, retry_after_seconds=retry_after)

            return RateLimitDecision(allowed=True)

    def _prune(self, now: float) -> None:
        """Drop expired windows. Caller holds the lock."""
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        self._next_prune_at = now + self.window_seconds

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._windows)
