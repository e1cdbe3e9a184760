import math
import threading
import time
from typing import Callable, Optional

from loguru import logger

from clip_core.completion.models import RateLimitState
from clip_core.errors import RateLimitExceeded


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class RateLimiter:
    """
    Fixed-window request governor.

    A window opens at construction and, once expired, is re-opened lazily by the
    next check starting from that moment (windows are not wall-clock aligned).
    Up to ``2 * max_requests`` calls can land close together across a window boundary.
    """

    def __init__(
        self,
        max_requests: int = 20,
        window_ms: int = 60_000,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")

        self.max_requests = max_requests
        self.window_ms = window_ms
        self._clock = clock or _monotonic_ms
        self._lock = threading.Lock()
        self._requests = 0
        self._reset_at = self._clock() + window_ms

    def check_and_consume(self) -> None:
        """Consumes one request slot or raises RateLimitExceeded."""
        with self._lock:
            now = self._clock()
            if now >= self._reset_at:
                self._requests = 0
                self._reset_at = now + self.window_ms

            if self._requests >= self.max_requests:
                retry_after = math.ceil((self._reset_at - now) / 1000)
                logger.warning(
                    f"Rate limit reached ({self._requests}/{self.max_requests}). Retry in {retry_after}s."
                )
                raise RateLimitExceeded(retry_after)

            self._requests += 1

    def status(self) -> RateLimitState:
        with self._lock:
            return RateLimitState(
                requests_in_window=self._requests,
                window_reset_at=self._reset_at,
                max_requests=self.max_requests,
                window_ms=self.window_ms,
            )

    def reset(self) -> None:
        with self._lock:
            self._requests = 0
            self._reset_at = self._clock() + self.window_ms
