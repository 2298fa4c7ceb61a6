"""
Middleware Package
==================

AVAILABLE MIDDLEWARE:
---------------------
1. cache_middleware: Read-through Redis cache for GET responses
2. invalidate_middleware: Cache invalidation for mutating requests
3. request_logging: Request/response logging with cache outcome
4. routing: APIRoute factories attaching the cache middleware per route

MIDDLEWARE ORDERING:
--------------------
Request logging wraps the whole application so it can report the cache status
the per-route interceptors record on the request scope:

Request flow:  Client → RequestLogging → Router → Cache/Invalidation → Handler
"""

from .cache_middleware import ReadThroughCache, ReadThroughCacheMiddleware, ResponseCapture
from .invalidate_middleware import CacheInvalidator, InvalidationMiddleware
from .request_logging import RequestLoggingMiddleware, add_request_logging_middleware
from .routing import cached_route, invalidating_route

__all__ = [
    "ReadThroughCache",
    "ReadThroughCacheMiddleware",
    "ResponseCapture",
    "CacheInvalidator",
    "InvalidationMiddleware",
    "RequestLoggingMiddleware",
    "add_request_logging_middleware",
    "cached_route",
    "invalidating_route",
]
