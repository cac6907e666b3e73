from __future__ import annotations

import collections
import time
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional

from .logger import get_logger, log_event


@dataclass
class ClientLimit:
    """Request budget per client within a rolling window."""

    max_requests: int = 100
    window_seconds: float = 15 * 60


class RateLimiter:
    """In-memory sliding-window rate limiter keyed by client id.

    Counters live in process memory only; they are not shared between
    workers.
    """

    def __init__(
        self,
        limit: Optional[ClientLimit] = None,
        clock: Callable[[], float] = time.monotonic,
        alert_threshold: float = 0.8,
        sweep_interval: Optional[float] = None,
    ) -> None:
        self.limit = limit or ClientLimit()
        self.clock = clock
        self.alert_threshold = alert_threshold
        self.sweep_interval = sweep_interval if sweep_interval is not None else self.limit.window_seconds
        self.logger = get_logger("sms_verify.rate_limiter")
        self._requests: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    @property
    def tracked_clients(self) -> int:
        return len(self._requests)

    def _sweep(self, now: float) -> None:
        """Forget clients with no request left in the window."""
        window_start = now - self.limit.window_seconds
        idle = [client for client, bucket in self._requests.items() if not bucket or bucket[-1] <= window_start]
        for client in idle:
            del self._requests[client]
        self._last_sweep = now

    def _evict(self, client_id: str, now: float) -> Deque[float]:
        bucket = self._requests.setdefault(client_id, collections.deque())
        window_start = now - self.limit.window_seconds
        while bucket and bucket[0] <= window_start:
            bucket.popleft()
        return bucket

    def get_usage(self, client_id: str) -> int:
        """Return requests counted for a client in the current window."""

        bucket = self._evict(client_id, self.clock())
        if not bucket:
            del self._requests[client_id]
            return 0
        return len(bucket)

    def get_remaining(self, client_id: str) -> int:
        return max(self.limit.max_requests - self.get_usage(client_id), 0)

    def check_limit(self, client_id: str) -> bool:
        """Record a request and tell whether it is allowed.

        Returns:
            bool: True if the request fits in the window, False otherwise.
        """

        now = self.clock()
        if now - self._last_sweep >= self.sweep_interval:
            self._sweep(now)
        bucket = self._evict(client_id, now)
        used = len(bucket)

        if used >= self.limit.max_requests:
            log_event(
                self.logger,
                level=30,
                message="Rate limit exceeded",
                extra={"client": client_id, "used": used, "limit": self.limit.max_requests},
            )
            return False

        if (used + 1) / max(self.limit.max_requests, 1) >= self.alert_threshold:
            log_event(
                self.logger,
                level=20,
                message="Rate limit warning threshold reached",
                extra={"client": client_id, "used": used + 1, "limit": self.limit.max_requests},
            )

        bucket.append(now)
        return True
