"""Rate limiting middleware for the HTTP layer.

This module wires the rate limiting adapter in front of every route.

Design goals:
- Explicit state: the limiter instance is built by the app factory and kept
  on ``app.state``; nothing is cached at module level, so each app (and each
  test) owns an independent limiter.
- Swap-friendly: the middleware only sees ``AbstractRateLimiter``.
- Rejection is a normal outcome: it is rendered as a 429 response before any
  route logic runs, never raised through the stack.

Rate limiting strategy:
- Sliding window per client source address.
- Clients without a resolvable address share the ``unknown`` bucket.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from fastapi import Request, Response

from characters_api.adapters.rate_limit.base import AbstractRateLimiter
from characters_api.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from characters_api.core.config import AppSettings
from characters_api.core.errors import RateLimitAppError
from characters_api.core.exception_handlers import render_app_error

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

CallNext = Callable[[Request], Awaitable[Response]]


def build_rate_limiter(app_settings: AppSettings) -> AbstractRateLimiter:
    """Build the limiter configured by ``APP_RATE_LIMIT_*`` settings."""

    return InMemorySlidingWindowRateLimiter(
        max_requests=app_settings.rate_limit_requests,
        window_seconds=app_settings.rate_limit_window_seconds,
    )


def client_key(request: Request) -> str:
    """Derive the limiter key from the connection's source address."""

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit_middleware(
    limiter: AbstractRateLimiter,
    *,
    include_headers: bool = True,
) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Create an HTTP middleware enforcing ``limiter`` on every request.

    Args:
        limiter: Limiter instance owned by the application.
        include_headers: Whether to add X-RateLimit-* headers to 429 responses.

    Returns:
        Middleware coroutine suitable for ``app.middleware("http")``.
    """

    async def enforce_rate_limit(request: Request, call_next: CallNext) -> Response:
        key = client_key(request)
        result = limiter.consume(key)

        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "key_hash": _hash_limiter_key(key),
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return await call_next(request)

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": _hash_limiter_key(key),
                "limit": result.limit,
                "request_path": request.url.path,
                "request_method": request.method,
            },
        )

        headers: dict[str, str] | None = None
        if include_headers:
            headers = {
                "X-RateLimit-Limit": str(result.limit),
                "X-RateLimit-Remaining": str(result.remaining),
            }

        return render_app_error(
            RateLimitAppError(
                code="rate_limit_exceeded",
                message="Too many requests, please try again later.",
            ),
            headers=headers,
        )

    return enforce_rate_limit
