"""Errors raised by the clinic services and translated to HTTP by the handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Optional payload attached to an AppError and echoed under `details`."""

    code: str
    message: str
    hint: str
    owner_id: int
    pet_id: int
    total_pets: int
    failed_pets: list[str]
    timeout_seconds: float
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """An expected failure with a stable `code` clients can branch on."""

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


class NotFoundAppError(AppError):
    """Raised when an owner or pet identifier does not resolve."""


class AggregationAppError(AppError):
    """Raised when the analytics batch cannot be completed as a whole."""


class RateLimitExceededError(Exception):
    """Signals a throttled request on the protected route.

    Not an AppError: it is rendered by its own 429 handler and never
    reaches the generic error path.
    """

    def __init__(self, *, max_requests: int, window_size_minutes: int, retry_after_seconds: int) -> None:
        super().__init__("Rate limit exceeded. Try again later.")
        self.max_requests = max_requests
        self.window_size_minutes = window_size_minutes
        self.retry_after_seconds = retry_after_seconds
