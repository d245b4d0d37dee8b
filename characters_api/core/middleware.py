"""HTTP middleware for request ID propagation and correlation.

The middleware:
- Accepts the incoming request id header or generates a UUID
- Stores request_id in contextvars so every log line of the request carries it
- Echoes request_id and the total request duration in the response headers
- Clears context after request completion to prevent context leaks

It is registered last in the app factory so it wraps every other middleware,
including the rate limiter, and throttled responses are correlated too.

Usage:
    app.middleware("http")(request_id_middleware(cfg.log))
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response

from characters_api.core.config import LogSettings
from characters_api.core.logging import clear_request_id, set_request_id

CallNext = Callable[[Request], Awaitable[Response]]


def request_id_middleware(
    log_settings: LogSettings,
) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Create the request ID middleware for the configured header name.

    Args:
        log_settings: Logging settings of the app being built; the header
            name is read from ``request_id_header``.

    Returns:
        Middleware coroutine suitable for ``app.middleware("http")``.

    Example:
        >>> # Request arrives with custom ID
        >>> # Headers: {"X-Request-ID": "req-abc-123"}
        >>> # Response includes:
        >>> # {"X-Request-ID": "req-abc-123", "X-Request-Duration-ms": "1.27"}
    """

    header_name = log_settings.request_id_header

    async def propagate_request_id(request: Request, call_next: CallNext) -> Response:
        request_id = request.headers.get(header_name) or str(uuid.uuid4())
        set_request_id(request_id)
        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        finally:
            clear_request_id()

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[header_name] = request_id
        response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
        return response

    return propagate_request_id
