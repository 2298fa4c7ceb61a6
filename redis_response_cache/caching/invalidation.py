"""
Programmatic Cache Invalidation

Helpers for deleting cached responses from application code (e.g. from a
background job or an admin endpoint). Unlike the invalidation middleware,
these raise CacheUnavailableError when no ready Redis handle exists: a caller
invoking them explicitly expects a definite outcome.
"""

from redis_response_cache.core.exceptions import CacheUnavailableError
from redis_response_cache.core.logging.logger import get_logger
from redis_response_cache.infrastructure.cache.redis_client import RedisClient, get_redis_client

logger = get_logger(__name__)


def require_ready_client(client: RedisClient | None = None) -> RedisClient:
    """
    Return ``client`` (or the process-wide handle) if it is READY.

    Raises:
        CacheUnavailableError: If there is no handle or it is not READY
    """
    client = client or get_redis_client()
    if client is None or not client.is_ready:
        raise CacheUnavailableError(
            details={"status": client.status.value if client is not None else None}
        )
    return client


async def delete_matching(client: RedisClient, pattern: str) -> int:
    """
    Delete every key matching a glob pattern in one DEL.

    Returns:
        Number of keys deleted
    """
    keys = await client.keys(pattern)
    if not keys:
        return 0
    return await client.delete(*keys)


async def invalidate_by_key(key: str, client: RedisClient | None = None) -> int:
    """
    Delete a single cache key. The key is used verbatim (no prefix applied).

    Deleting a key that does not exist is not an error.

    Returns:
        Number of keys deleted (0 or 1)

    Raises:
        CacheUnavailableError: If Redis is not ready
    """
    ready = require_ready_client(client)
    deleted = await ready.delete(key)
    logger.info("Invalidated cache for key", cache_key=key, deleted=deleted)
    return deleted


async def invalidate_by_pattern(pattern: str, client: RedisClient | None = None) -> int:
    """
    Delete every key matching a glob pattern (``*``, ``?``, ``[abc]``).

    Returns:
        Number of keys deleted

    Raises:
        CacheUnavailableError: If Redis is not ready
    """
    ready = require_ready_client(client)
    deleted = await delete_matching(ready, pattern)
    logger.info("Invalidated keys matching pattern", pattern=pattern, count=deleted)
    return deleted
