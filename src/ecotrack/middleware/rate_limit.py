"""Redis fixed-window rate limiting, keyed by client IP."""

import time
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ecotrack.redis_client import get_optional_redis

logger = structlog.get_logger()

_EXEMPT_PATHS = frozenset({"/health", "/ready"})
_KEY = "ratelimit:{client}:{window}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Return 429 once a client exceeds requests_per_window in the current window.

    Requests pass unthrottled when Redis is not configured or unreachable.
    """

    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    async def _count(self, client: str) -> int | None:
        redis = get_optional_redis()
        if redis is None:
            return None
        key = _KEY.format(client=client, window=int(time.time()) // self.window_seconds)
        try:
            pipe = redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except Exception:
            logger.warning("rate_limit_unavailable", exc_info=True)
            return None
        return int(results[0])

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        count = await self._count(client)
        if count is None:
            return await call_next(request)

        if count > self.requests_per_window:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(self.requests_per_window),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.requests_per_window - count))
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_window)
        return response
