"""
Request Logging Middleware
==========================

Logs every request and response, tagging each with a request ID and, for
routes behind the read-through cache, the cache outcome recorded in
``request.state.cache_status``.

Request Flow:
    Client → RequestLoggingMiddleware → Router → (cache interceptor) → Handler

Because this middleware wraps the router, the cache status it logs was set by
the interceptor further down the chain on the same ASGI scope.

``call_next`` returns once the response has started. Routes bound with
``cached_route`` record ``ttl`` before their handler returns, so it is in the
completion log. The app-wide ReadThroughCacheMiddleware records ``ttl`` only
after the final body chunk, so under that binding the completion log carries
``hit`` and ``key`` but usually not ``ttl``.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from redis_response_cache.core.config.constants import HEADER_REQUEST_ID
from redis_response_cache.core.logging.logger import clear_request_id, get_logger, set_request_id

logger = get_logger(__name__)

# Headers that contain sensitive information and should not be logged
SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "x-api-key",
    "x-auth-token",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests, responses and cache outcomes."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        logger.info(
            f"Incoming request: {method} {path}",
            method=method,
            path=path,
            query_params=str(request.query_params) if request.query_params else None,
            headers=self._sanitize_headers(dict(request.headers)),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {method} {path}",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(time.perf_counter() - start_time, 4),
                exc_info=True,
            )
            raise
        finally:
            clear_request_id()

        cache_status = getattr(request.state, "cache_status", None)

        logger.info(
            f"Request completed: {method} {path}",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_seconds=round(time.perf_counter() - start_time, 4),
            request_id=request_id,
            cache=cache_status.to_dict() if cache_status is not None else None,
        )

        response.headers[HEADER_REQUEST_ID] = request_id
        return response

    def _sanitize_headers(self, headers: dict) -> dict:
        """Replace sensitive header values with "[REDACTED]"."""
        return {
            key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }


def add_request_logging_middleware(app) -> None:
    """Register RequestLoggingMiddleware on a FastAPI application."""
    app.add_middleware(RequestLoggingMiddleware)
    logger.info("Request logging middleware registered")
