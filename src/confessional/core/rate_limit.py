# src/confessional/core/rate_limit.py
"""Per-client rate limiting for the public API."""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from confessional.core.settings import settings

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

# Every /api route draws from the same per-client allowance.
API_RATE_LIMIT_SCOPE = "api"

# Initialize limiter
limiter = Limiter(key_func=get_remote_address)


def api_rate_limit() -> str:
    """Return the configured allowance, e.g. ``"100/900 seconds"``."""
    return f"{settings.rate_limit_requests}/{settings.rate_limit_window_seconds} seconds"


api_limit = limiter.shared_limit(api_rate_limit, scope=API_RATE_LIMIT_SCOPE)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Answer a client that used up its allowance with 429."""
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": RATE_LIMIT_MESSAGE},
    )
