"""
Cache Module

Provides the shared async Redis handle used by the cache interceptors.
"""

from .redis_client import (
    RedisClient,
    close_redis_client,
    create_redis_client,
    ensure_redis_client,
    get_redis_client,
    health_check,
    is_redis_connected,
)

__all__ = [
    "RedisClient",
    "create_redis_client",
    "ensure_redis_client",
    "get_redis_client",
    "close_redis_client",
    "is_redis_connected",
    "health_check",
]
