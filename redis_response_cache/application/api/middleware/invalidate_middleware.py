"""
Cache Invalidation Middleware
=============================

Deletes cached responses when a mutating request reaches a route, then always
hands the request to the route handler.

STRATEGIES:
-----------
1. Pattern: every key matching a glob (``cache:GET:/users*``) is deleted in
   one DEL. Takes precedence over ``key`` when both are configured.
2. Key: a literal key body, a list of bodies, or a function of the request,
   prefixed exactly like the read-through cache derives its keys. With no key
   configured the request's own ``METHOD:path`` is used.

Invalidation is advisory. If Redis is unavailable or a command fails, the
error is logged and the request proceeds; stale entries then live until their
TTL runs out.

CacheInvalidator does the work; it is driven per route by
``invalidating_route(...)`` (routing.py) or app-wide by InvalidationMiddleware.
"""

from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from redis_response_cache.caching.invalidation import delete_matching
from redis_response_cache.caching.keys import compile_key_spec
from redis_response_cache.caching.models import InvalidateOptions
from redis_response_cache.core.logging.logger import get_logger
from redis_response_cache.infrastructure.cache.redis_client import (
    RedisClient,
    ensure_redis_client,
    get_redis_client,
)

logger = get_logger(__name__)


class CacheInvalidator:
    """Delete the cache entries an InvalidateOptions names for a request."""

    def __init__(self, options: InvalidateOptions, client: RedisClient | None = None):
        self.options = options
        self._client = client
        self._resolve_keys = compile_key_spec(options.key, options.prefix)

    @property
    def client(self) -> RedisClient | None:
        return self._client or get_redis_client()

    def triggers(self, method: str) -> bool:
        return self.options.methods is None or method in self.options.methods

    async def invalidate(self, request: Request) -> None:
        """Never raises: every failure is logged."""
        if self._client is None:
            ensure_redis_client()

        client = self.client
        if client is None or not client.is_ready:
            logger.warning("Redis not available, skipping invalidation", path=request.url.path)
            return

        try:
            if self.options.pattern:
                count = await delete_matching(client, self.options.pattern)
                if count:
                    logger.info(
                        "Invalidated keys matching pattern",
                        pattern=self.options.pattern,
                        count=count,
                    )
            else:
                keys = self._resolve_keys(request)
                await client.delete(*keys)
                logger.info("Invalidated cache", cache_keys=list(keys))
        except Exception as e:
            logger.error("Invalidation error", path=request.url.path, error=str(e))


class InvalidationMiddleware:
    """
    Delete cache entries before the downstream app runs.

    The downstream app is called exactly once per request whatever happens
    during invalidation.
    """

    def __init__(self, app: ASGIApp, options: InvalidateOptions, client: RedisClient | None = None):
        self.app = app
        self.invalidator = CacheInvalidator(options, client)

    @property
    def options(self) -> InvalidateOptions:
        return self.invalidator.options

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and self.invalidator.triggers(scope["method"]):
            await self.invalidator.invalidate(Request(scope, receive))

        await self.app(scope, receive, send)
