"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the in-process counter store can be replaced without touching routes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitKey:
    """Partition of the counter store: one caller on one route."""

    caller_key: str
    route_id: str


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        window_minutes: Window size in minutes.
        retry_after_seconds: Seconds until the current window ends (0 when allowed).
    """

    allowed: bool
    limit: int
    window_minutes: int
    retry_after_seconds: int = 0


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def should_allow(self, caller_key: str, route_id: str, now: float) -> RateLimitDecision:
        """Record a request and decide whether it may proceed.

        Args:
            caller_key: Client identity (derived client address).
            route_id: Path of the requested route.
            now: Current UNIX time in seconds.

        Returns:
            RateLimitDecision describing whether it was allowed.
        """
        raise NotImplementedError
