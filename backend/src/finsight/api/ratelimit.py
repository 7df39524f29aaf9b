"""Rate limiting configuration for API endpoints.

Uses slowapi with in-memory storage; each worker keeps its own window.
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from finsight.shared.logging import get_logger

logger = get_logger(__name__)


def _get_rate_limit_key(request: Request) -> str:
    """Get rate limit key based on user or IP.

    For authenticated requests, use user_id.
    For unauthenticated requests, use IP address.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.id}"
    return get_remote_address(request)


def _create_limiter(storage_uri: str = "memory://") -> Limiter:
    return Limiter(
        key_func=_get_rate_limit_key,
        storage_uri=storage_uri,
        strategy="fixed-window",
    )


limiter = _create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    """Custom handler for rate limit exceeded errors."""
    detail = str(exc.detail) if isinstance(exc, RateLimitExceeded) else str(exc)
    retry_after = getattr(exc, "retry_after", 60)
    logger.warning(
        "rate_limit_exceeded",
        path=request.url.path,
        method=request.method,
        key=_get_rate_limit_key(request),
        limit=detail,
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "too_many_requests",
            "message": "Too many requests. Please wait a moment.",
            "detail": detail,
            "retry_after": retry_after,
        },
        headers={
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": detail.split("/")[0] if "/" in detail else "unknown",
        },
    )


# ----- Rate Limit Decorators -----
# Usage: @limiter.limit(RATE_LIMIT_AI)

RATE_LIMIT_DEFAULT = "100/minute"        # General API calls
RATE_LIMIT_AI = "20/minute"              # Chat turns (expensive)
RATE_LIMIT_KEYS = "10/minute"            # Key validation hits vendors
RATE_LIMIT_HEALTH = "60/minute"          # Health checks
