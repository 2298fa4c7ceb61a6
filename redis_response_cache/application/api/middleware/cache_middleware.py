"""
Read-Through Cache Middleware - Educational Documentation
=========================================================

WHAT IS A READ-THROUGH CACHE?
-----------------------------
On a GET, the cache first looks the response up in Redis:

    HIT:  the stored JSON is returned immediately and the route handler
          never runs.
    MISS: the request continues to the handler. A 2xx JSON response is then
          written back to Redis with SETEX so the next identical request is
          a HIT.

FAIL-OPEN:
----------
Caching is best-effort. An unavailable, slow or failing Redis never fails a
request: the cache logs and lets the request through as if it were not
installed. The only visible behavior change is a HIT skipping the handler.

TWO BINDINGS, ONE ENGINE:
-------------------------
ReadThroughCache holds the per-route state (options, compiled key, pending
writes) and the lookup/store steps. It is driven from two places:

    cached_route(...)           APIRoute.get_route_handler() wrapper
                                (see routing.py), per route
    ReadThroughCacheMiddleware  pure ASGI middleware, whole application

The ASGI binding captures the body by handing the downstream app a wrapping
``send`` (ResponseCapture); every message is forwarded first and the write is
scheduled after the final body chunk. Either way the SETEX runs as a detached
task and the client never waits for Redis on a MISS.

USAGE:
------
    # Per route
    router.add_api_route(
        "/users", list_users, methods=["GET"],
        route_class_override=cached_route(CacheOptions(ttl=60)),
    )

    # Whole application
    app.add_middleware(ReadThroughCacheMiddleware, options=CacheOptions(ttl=30))
"""

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import orjson
from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from redis_response_cache.caching.keys import compile_key_spec
from redis_response_cache.caching.models import CacheOptions, CacheStatus
from redis_response_cache.core.config.constants import CACHEABLE_METHODS, JSON_CONTENT_TYPE
from redis_response_cache.core.exceptions import CacheTimeoutError
from redis_response_cache.core.logging.logger import get_logger
from redis_response_cache.infrastructure.cache.redis_client import (
    RedisClient,
    ensure_redis_client,
    get_redis_client,
)

logger = get_logger(__name__)


def is_cacheable_response(status_code: int | None, content_type: str) -> bool:
    """Only successful JSON responses are stored."""
    return status_code is not None and 200 <= status_code < 300 and JSON_CONTENT_TYPE in content_type


@dataclass
class CacheLookup:
    """Outcome of a lookup that went to Redis: a HIT carries the payload."""

    status: CacheStatus
    client: RedisClient
    payload: Any = None

    @property
    def hit(self) -> bool:
        return self.status.hit


class ReadThroughCache:
    """
    Lookup and store steps shared by the route and ASGI bindings.

    The Redis handle is injected through ``client``; when omitted the
    process-wide handle is used, looked up per request, and created in the
    background if none exists yet.
    """

    def __init__(self, options: CacheOptions | None = None, client: RedisClient | None = None):
        self.options = options or CacheOptions()
        self._client = client
        self._resolve_key = compile_key_spec(self.options.key, self.options.prefix)
        self._pending_writes: set[asyncio.Task] = set()

    @property
    def client(self) -> RedisClient | None:
        return self._client or get_redis_client()

    @property
    def pending_writes(self) -> int:
        """Number of cache writes still in flight."""
        return len(self._pending_writes)

    async def flush(self) -> None:
        """Wait for every in-flight cache write to finish."""
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)

    def _ready_client(self) -> RedisClient | None:
        if self._client is None:
            ensure_redis_client()
        client = self.client
        return client if client is not None and client.is_ready else None

    async def lookup(self, request: Request) -> CacheLookup | None:
        """
        Record the cache status on the request and consult Redis.

        Returns:
            CacheLookup for a HIT or a MISS, None when the request must pass
            through uncached (predicate, key, availability or read failure)
        """
        cache_status = CacheStatus()
        request.state.cache_status = cache_status

        if not await self._is_cacheable(request):
            return None

        try:
            cache_key = self._resolve_key(request)[0]
        except Exception as e:
            logger.error("Cache key derivation failed", path=request.url.path, error=str(e))
            return None

        cache_status.key = cache_key

        client = self._ready_client()
        if client is None:
            logger.warning("Redis not available, skipping cache", cache_key=cache_key)
            return None

        try:
            cached = await self._get(client, cache_key)
            payload = orjson.loads(cached) if cached is not None else None
        except CacheTimeoutError as e:
            logger.warning("Cache operation failed", cache_key=cache_key, error=e.message)
            return None
        except Exception as e:
            logger.error("Unexpected cache error", cache_key=cache_key, error=str(e))
            return None

        if cached is None:
            logger.info("Cache MISS", cache_key=cache_key)
            return CacheLookup(cache_status, client)

        logger.info("Cache HIT", cache_key=cache_key)
        cache_status.hit = True
        return CacheLookup(cache_status, client, payload)

    def hit_response(self, lookup: CacheLookup) -> Response:
        return Response(content=orjson.dumps(lookup.payload), media_type=JSON_CONTENT_TYPE)

    async def _is_cacheable(self, request: Request) -> bool:
        predicate = self.options.is_cacheable
        if predicate is None:
            return True

        try:
            result = predicate(request)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning("Error in is_cacheable predicate", path=request.url.path, error=str(e))
            return False

        return bool(result)

    async def _get(self, client: RedisClient, cache_key: str) -> str | None:
        try:
            return await asyncio.wait_for(client.get(cache_key), timeout=self.options.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise CacheTimeoutError(
                "Redis operation timeout",
                details={"cache_key": cache_key, "timeout_ms": self.options.timeout},
            ) from e

    def store(self, lookup: CacheLookup, body: bytes) -> None:
        """Validate a response body and schedule the SETEX without awaiting it."""
        cache_key = lookup.status.key
        try:
            orjson.loads(body)
            value = body.decode("utf-8")
        except (orjson.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Response body is not valid JSON, not caching", cache_key=cache_key)
            return

        if len(self._pending_writes) >= self.options.max_pending_writes:
            logger.warning(
                "Too many pending cache writes, skipping",
                cache_key=cache_key,
                pending=len(self._pending_writes),
            )
            return

        lookup.status.ttl = self.options.ttl
        task = asyncio.create_task(self._write(lookup.client, cache_key, value))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write(self, client: RedisClient, cache_key: str, value: str) -> None:
        try:
            await client.setex(cache_key, self.options.ttl, value)
        except Exception as e:
            logger.error("Error caching response", cache_key=cache_key, error=str(e))
            return
        logger.debug("Cached response", cache_key=cache_key, ttl=self.options.ttl)


class ResponseCapture:
    """
    Wrapping ASGI ``send`` that records a response while forwarding it.

    Only the first complete response is reported. Capture stops as soon as
    the status or content type rules the response out, so non-cacheable
    bodies are never buffered.
    """

    def __init__(self, send: Send, on_complete: Callable[[int, bytes], None]):
        self._send = send
        self._on_complete = on_complete
        self._chunks: list[bytes] = []
        self._capturing = True
        self.status_code: int | None = None

    async def __call__(self, message: Message) -> None:
        # Deliver first: caching never delays the client
        await self._send(message)

        if not self._capturing:
            return

        if message["type"] == "http.response.start":
            self.status_code = message["status"]
            content_type = Headers(raw=message.get("headers", [])).get("content-type", "")
            if not is_cacheable_response(self.status_code, content_type):
                self._capturing = False

        elif message["type"] == "http.response.body":
            body = message.get("body", b"")
            if body:
                self._chunks.append(body)
            if not message.get("more_body", False):
                self._capturing = False
                self._on_complete(self.status_code, b"".join(self._chunks))


class ReadThroughCacheMiddleware:
    """
    Serve GET responses from Redis and populate Redis on a miss, for every
    route of the wrapped application.

    The cache TTL lands on ``request.state.cache_status`` only once the last
    body chunk has gone out, after outer middleware has seen the response
    start.
    """

    def __init__(
        self,
        app: ASGIApp,
        options: CacheOptions | None = None,
        client: RedisClient | None = None,
    ):
        self.app = app
        self.cache = ReadThroughCache(options, client)

    @property
    def options(self) -> CacheOptions:
        return self.cache.options

    @property
    def pending_writes(self) -> int:
        return self.cache.pending_writes

    async def flush(self) -> None:
        await self.cache.flush()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in CACHEABLE_METHODS:
            await self.app(scope, receive, send)
            return

        lookup = await self.cache.lookup(Request(scope, receive))

        if lookup is None:
            await self.app(scope, receive, send)
            return

        if lookup.hit:
            await self.cache.hit_response(lookup)(scope, receive, send)
            return

        def on_complete(status_code: int, body: bytes) -> None:
            self.cache.store(lookup, body)

        await self.app(scope, receive, ResponseCapture(send, on_complete))
