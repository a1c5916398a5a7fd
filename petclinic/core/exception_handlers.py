"""Exception handlers mapping clinic errors onto HTTP responses.

Owner/pet lookups that miss become 404, a failed analytics batch becomes 500,
throttled owner searches become 429 and anything unforeseen becomes a bare
500 whose body never echoes the underlying exception. Every envelope carries
the request id of the call that produced it.
"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse

from petclinic.core.config import settings
from petclinic.core.errors import AggregationAppError, AppError, NotFoundAppError, RateLimitExceededError
from petclinic.core.logging import get_request_id

logger = logging.getLogger(__name__)


RATE_LIMIT_ERROR_MESSAGE = "Rate limit exceeded. Try again later."


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Translate an AppError into the `{"error": {...}}` envelope.

    Missing owners or pets answer 404 and an aborted analytics batch answers
    500. Other AppError subclasses are caller mistakes and answer 400.
    `details` is only present when the error carried some.
    """
    status_code = 400
    if isinstance(exc, NotFoundAppError):
        status_code = 404
    elif isinstance(exc, AggregationAppError):
        status_code = 500

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error.handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        }
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    """Render a throttled request as HTTP 429.

    The body carries the configured limit and window so clients can back off:
    ``{"error": ..., "maxRequests": n, "windowSizeMinutes": m}``.

    Args:
        request: FastAPI request object.
        exc: Decision metadata raised by the rate limit dependency.

    Returns:
        JSONResponse with status 429.
    """
    headers: dict[str, str] = {}
    if settings.rate_limit.include_headers:
        headers["Retry-After"] = str(exc.retry_after_seconds)
        headers["X-RateLimit-Limit"] = str(exc.max_requests)
        headers["X-RateLimit-Remaining"] = "0"

    return JSONResponse(
        status_code=429,
        content={
            "error": RATE_LIMIT_ERROR_MESSAGE,
            "maxRequests": exc.max_requests,
            "windowSizeMinutes": exc.window_size_minutes,
        },
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer 500 for anything no other handler claimed.

    The exception type and text go to the log only.
    """
    logger.error(
        "request.unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Attach the three handlers above to `app`."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RateLimitExceededError)(rate_limit_exceeded_handler)
    app.exception_handler(Exception)(general_exception_handler)
