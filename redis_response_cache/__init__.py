"""
Redis Response Cache

Read-through response caching and cache invalidation for FastAPI / Starlette
routes, backed by a shared async Redis handle.

Usage:
    from redis_response_cache import CacheOptions, InvalidateOptions, cached_route

    router.add_api_route(
        "/users", list_users, methods=["GET"],
        route_class_override=cached_route(CacheOptions(ttl=60)),
    )
"""

from redis_response_cache.application.api.middleware.cache_middleware import (
    ReadThroughCacheMiddleware,
)
from redis_response_cache.application.api.middleware.invalidate_middleware import (
    InvalidationMiddleware,
)
from redis_response_cache.application.api.middleware.routing import (
    cached_route,
    invalidating_route,
)
from redis_response_cache.caching import (
    CacheOptions,
    CacheStatus,
    InvalidateOptions,
    derive_key,
    invalidate_by_key,
    invalidate_by_pattern,
)
from redis_response_cache.core.exceptions import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheTimeoutError,
    CacheUnavailableError,
    ConfigurationError,
)
from redis_response_cache.infrastructure.cache import (
    RedisClient,
    close_redis_client,
    create_redis_client,
    get_redis_client,
    health_check,
    is_redis_connected,
)

__version__ = "1.0.0"

__all__ = [
    "CacheOptions",
    "CacheStatus",
    "InvalidateOptions",
    "ReadThroughCacheMiddleware",
    "InvalidationMiddleware",
    "cached_route",
    "invalidating_route",
    "derive_key",
    "invalidate_by_key",
    "invalidate_by_pattern",
    "RedisClient",
    "create_redis_client",
    "get_redis_client",
    "close_redis_client",
    "is_redis_connected",
    "health_check",
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheTimeoutError",
    "CacheUnavailableError",
    "ConfigurationError",
]
