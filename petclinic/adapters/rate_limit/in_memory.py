"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe without a global lock: every counter carries its own lock and
  counters are inserted with an atomic ``dict.setdefault``.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field

from petclinic.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision, RateLimitKey


@dataclass
class _WindowCounter:
    window_start: float | None = None
    count: int = 0
    retired: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per (caller, route) key.

    A window opens with the first request seen for a key and lasts
    ``window_size_minutes``. The first request after it elapses opens a new
    window. Only ``protected_route`` is limited.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        max_requests: int = 5,
        window_size_minutes: int = 1,
        protected_route: str = "/owners/find",
        enabled: bool = True,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            max_requests: Maximum number of allowed requests per window.
            window_size_minutes: Size of the fixed window in minutes.
            protected_route: The only route subject to limiting.
            enabled: When False every request is allowed and nothing is counted.

        Raises:
            ValueError: If max_requests or window_size_minutes are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_size_minutes < 1:
            raise ValueError("window_size_minutes must be >= 1")

        self._max_requests = max_requests
        self._window_size_minutes = window_size_minutes
        self._window_seconds = window_size_minutes * 60
        self._protected_route = protected_route
        self._enabled = enabled
        self._counters: dict[RateLimitKey, _WindowCounter] = {}

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_size_minutes(self) -> int:
        return self._window_size_minutes

    def __len__(self) -> int:
        return len(self._counters)

    def _counter_for(self, key: RateLimitKey) -> _WindowCounter:
        counter = self._counters.get(key)
        if counter is None:
            counter = self._counters.setdefault(key, _WindowCounter())
        return counter

    def _decision(self, allowed: bool, retry_after: int = 0) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=allowed,
            limit=self._max_requests,
            window_minutes=self._window_size_minutes,
            retry_after_seconds=retry_after,
        )

    def should_allow(self, caller_key: str, route_id: str, now: float) -> RateLimitDecision:
        """Count the request against its window and decide.

        Expiry check, reset and increment happen under the counter's lock, so
        concurrent requests for one key never both reset the window and never
        let more than ``max_requests`` through per window.

        Args:
            caller_key: Client identity (derived client address).
            route_id: Path of the requested route.
            now: Current UNIX time in seconds.

        Returns:
            RateLimitDecision with allowance and limit metadata.

        Raises:
            ValueError: If caller_key is empty.
        """
        if not self._enabled or route_id != self._protected_route:
            return self._decision(True)
        if not caller_key:
            raise ValueError("caller_key must be a non-empty string")

        key = RateLimitKey(caller_key=caller_key, route_id=route_id)
        while True:
            counter = self._counter_for(key)
            with counter.lock:
                if counter.retired:
                    # Purged between lookup and lock; use the replacement.
                    continue

                if counter.window_start is None or now - counter.window_start >= self._window_seconds:
                    counter.window_start = now
                    counter.count = 1
                    return self._decision(True)

                counter.count += 1
                if counter.count <= self._max_requests:
                    return self._decision(True)

                retry_after = max(0, int(math.ceil(counter.window_start + self._window_seconds - now)))
                return self._decision(False, retry_after)

    def purge_expired(self, now: float) -> int:
        """Drop counters whose window has elapsed at ``now``.

        A dropped key simply starts a fresh window on its next request, which
        is what an expired counter would have done anyway.

        Args:
            now: Current UNIX time in seconds.

        Returns:
            Number of counters removed.
        """
        removed = 0
        for key, counter in list(self._counters.items()):
            with counter.lock:
                if counter.window_start is not None and now - counter.window_start < self._window_seconds:
                    continue
                counter.retired = True
                if self._counters.get(key) is counter:
                    del self._counters[key]
                    removed += 1
        return removed
