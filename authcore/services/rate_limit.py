"""Rate limit policy injected into throttled endpoints."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)


class RateLimitPolicy(ABC):
    """Decides whether a request identified by ``key`` may proceed."""

    @abstractmethod
    def hit(self, key: str) -> bool:
        """
        Record a request.

        Args:
            key: Caller and action identifier

        Returns:
            True if the request is allowed
        """
        pass


class AllowAllPolicy(RateLimitPolicy):
    """Policy used when no limiter is configured."""

    def hit(self, key: str) -> bool:
        return True


class FixedWindowPolicy(RateLimitPolicy):
    """
    Allow ``limit`` hits per key in each ``window_seconds`` window.

    State is kept in process memory, so each worker process counts
    separately.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        with self._lock:
            now = self._clock()
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            if count >= self.limit:
                logger.warning(f"Rate limit reached for {key}")
                return False
            self._windows[key] = (started, count + 1)
            self._prune(now)
            return True

    def _prune(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for k in expired:
            del self._windows[k]
