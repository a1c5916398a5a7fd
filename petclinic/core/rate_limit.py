"""Owner search throttling as a FastAPI dependency.

The dependency resolves the client address, asks the process-wide limiter
for a decision and raises RateLimitExceededError on denial. Only the
configured protected route is ever limited.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from typing import Mapping

from fastapi import Request

from petclinic.adapters.rate_limit.base import AbstractRateLimiter
from petclinic.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from petclinic.core.config import settings
from petclinic.core.errors import RateLimitExceededError

logger = logging.getLogger(__name__)


FORWARDED_FOR_HEADER = "X-Forwarded-For"
REAL_IP_HEADER = "X-Real-IP"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, str, bool] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the shared limiter, rebuilding it when the rate limit settings change."""

    global _limiter, _limiter_config

    cfg = settings.rate_limit
    config = (cfg.max_requests, cfg.window_size_minutes, cfg.protected_route, cfg.enabled)

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(
            max_requests=cfg.max_requests,
            window_size_minutes=cfg.window_size_minutes,
            protected_route=cfg.protected_route,
            enabled=cfg.enabled,
        )
        _limiter_config = config

    return _limiter


def resolve_caller_key(headers: Mapping[str, str], remote_addr: str | None) -> str:
    """Derive the client address used to partition rate limit state.

    Precedence: first entry of X-Forwarded-For, then X-Real-IP, then the
    connection address. Empty header values are ignored.

    Args:
        headers: Request headers (case-insensitive mapping in practice).
        remote_addr: Address of the peer socket, if known.

    Returns:
        str: Client address, or "unknown" when nothing is available.
    """

    forwarded_for = headers.get(FORWARDED_FOR_HEADER)
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = (headers.get(REAL_IP_HEADER) or "").strip()
    if real_ip:
        return real_ip

    return remote_addr or "unknown"


def _hash_caller_key(key: str) -> str:
    """Hash the caller key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _now() -> float:
    return time.time()


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing the protected route's rate limit.

    Args:
        request: FastAPI request.

    Raises:
        RateLimitExceededError: When the caller exhausted the current window.
    """

    if not settings.rate_limit.enabled:
        return

    route_id = request.url.path
    remote_addr = request.client.host if request.client else None
    caller_key = resolve_caller_key(request.headers, remote_addr)

    decision = get_rate_limiter().should_allow(caller_key, route_id, _now())
    if decision.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": _hash_caller_key(caller_key),
                "route": route_id,
                "limit": decision.limit,
                "window_min": decision.window_minutes,
            },
        )
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": _hash_caller_key(caller_key),
            "route": route_id,
            "limit": decision.limit,
            "window_min": decision.window_minutes,
            "retry_after_s": decision.retry_after_seconds,
        },
    )

    raise RateLimitExceededError(
        max_requests=decision.limit,
        window_size_minutes=decision.window_minutes,
        retry_after_seconds=decision.retry_after_seconds,
    )


async def purge_expired_counters_forever(interval_seconds: float) -> None:
    """Periodically drop counters whose window has elapsed.

    Runs until cancelled. A failed sweep is logged and retried on the next
    tick.
    """

    while True:
        await asyncio.sleep(interval_seconds)
        limiter = get_rate_limiter()
        if not isinstance(limiter, InMemoryFixedWindowRateLimiter):
            continue
        try:
            removed = limiter.purge_expired(_now())
        except Exception as exc:
            logger.error(
                "rate_limit.purge_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            continue
        if removed:
            logger.info("rate_limit.purged", extra={"removed": removed, "remaining": len(limiter)})
