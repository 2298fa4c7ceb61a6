"""
Cache-Related Exceptions

All exceptions raised by the Redis handle and the programmatic invalidation
helpers. The interceptors catch every one of them and fail open.
"""

from redis_response_cache.core.exceptions.base import ResponseCacheError


class CacheError(ResponseCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to Redis.

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect URL/host/port configuration
    - Authentication failure
    """
    pass


class CacheKeyError(CacheError):
    """
    Raised when a Redis command (GET, SETEX, DEL, SCAN) fails.
    """
    pass


class CacheTimeoutError(CacheError):
    """Raised when a cache lookup exceeds its configured deadline."""

    def __init__(self, message: str = "Cache operation timed out", details=None):
        super().__init__(message, details=details)


class CacheUnavailableError(CacheError):
    """
    Raised by programmatic invalidation when no ready Redis handle exists.

    Middleware never raises this; it logs a warning and continues instead.
    """

    def __init__(self, message: str = "Redis not available", details=None):
        super().__init__(message, details=details)
