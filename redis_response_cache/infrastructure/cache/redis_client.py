"""
Redis Client with Connection Lifecycle Tracking

Architecture:
    RedisClient (Public API)
        ├── Connection lifecycle (status state machine, reconnect probe)
        ├── Command execution (GET, SETEX, DEL, SCAN, PING with error wrapping)
        └── Health check (PING round-trip latency)

    Module-level handle:
        create_redis_client() / get_redis_client() / close_redis_client()
        is_redis_connected() / health_check()

Connection states:
    disconnected -> connecting -> ready
    ready -> reconnecting -> ready      (transient network loss)
    ready | connecting -> disconnected  (fatal error or explicit close)

The interceptors only issue commands against a READY handle. Every other
state makes them fail open without touching Redis.
"""

import asyncio
import time
from typing import Any

import redis.asyncio as redis
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from redis_response_cache.core.config.constants import (
    LIVE_STATUSES,
    ConnectionStatus,
    HealthStatus,
)
from redis_response_cache.core.config.settings import get_settings
from redis_response_cache.core.exceptions import CacheConnectionError, CacheKeyError
from redis_response_cache.core.logging.logger import get_logger

logger = get_logger(__name__)

# Delay between reconnect probes grows by this step per attempt, up to the cap
RECONNECT_STEP_SECONDS = 0.05
RECONNECT_MAX_DELAY_SECONDS = 2.0

# Page size hint for SCAN-based pattern lookup
SCAN_COUNT = 500

RedisTarget = str | dict[str, Any] | redis.Redis | None


class RedisClient:
    """
    Async Redis handle shared by the read-through and invalidation interceptors.

    The handle can be built three ways:
        RedisClient("redis://localhost:6379/0")           # URL
        RedisClient({"host": "cache", "port": 6380})       # redis.Redis kwargs
        RedisClient(redis.Redis(...))                      # existing client
    With no argument the connection is built from settings.

    Usage:
        client = RedisClient()
        await client.connect()

        await client.setex("cache:GET:/users", 60, '{"users": []}')
        value = await client.get("cache:GET:/users")

        await client.disconnect()
    """

    def __init__(self, target: RedisTarget = None):
        self._settings = get_settings()
        self._target = target
        self._redis: redis.Redis | None = (
            None if target is None or isinstance(target, (str, dict)) else target
        )
        self._status = ConnectionStatus.DISCONNECTED
        self._reconnect_task: asyncio.Task | None = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def status(self) -> ConnectionStatus:
        """Current lifecycle state."""
        return self._status

    @property
    def is_ready(self) -> bool:
        """True only when commands can be issued."""
        return self._status == ConnectionStatus.READY

    def _build(self) -> redis.Redis:
        """Build the underlying redis.asyncio client from the configured target."""
        redis_settings = self._settings.redis
        defaults: dict[str, Any] = {
            "max_connections": redis_settings.REDIS_MAX_CONNECTIONS,
            "socket_timeout": redis_settings.REDIS_SOCKET_TIMEOUT,
            "socket_connect_timeout": redis_settings.REDIS_SOCKET_CONNECT_TIMEOUT,
            "health_check_interval": redis_settings.REDIS_HEALTH_CHECK_INTERVAL,
            "decode_responses": True,  # Return strings instead of bytes
        }

        if isinstance(self._target, str):
            return redis.Redis.from_url(self._target, **defaults)

        if isinstance(self._target, dict):
            return redis.Redis(**{**defaults, **self._target})

        if redis_settings.REDIS_URL:
            return redis.Redis.from_url(redis_settings.REDIS_URL, **defaults)

        return redis.Redis(
            host=redis_settings.REDIS_HOST,
            port=redis_settings.REDIS_PORT,
            db=redis_settings.REDIS_DB,
            password=redis_settings.REDIS_PASSWORD,
            **defaults,
        )

    async def connect(self) -> "RedisClient":
        """
        Establish the connection and verify it with PING.

        Returns:
            Self, once READY

        Raises:
            CacheConnectionError: If the connection cannot be established
        """
        if self._status == ConnectionStatus.READY:
            return self

        self._status = ConnectionStatus.CONNECTING
        logger.info("Redis client connecting")

        try:
            if self._redis is None:
                self._redis = self._build()
            await self._redis.ping()
        except RedisError as e:
            self._status = ConnectionStatus.DISCONNECTED
            logger.error("Failed to connect to Redis", error=str(e))
            raise CacheConnectionError.from_exception(e, message=f"Redis connection failed: {e}")

        self._status = ConnectionStatus.READY
        logger.info("Redis client ready")
        return self

    async def disconnect(self) -> None:
        """Close the connection pool and mark the handle DISCONNECTED."""
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            self._reconnect_task = None

        self._status = ConnectionStatus.DISCONNECTED

        if self._redis is not None:
            try:
                await self._redis.aclose()
            except RedisError as e:
                logger.warning("Error while closing Redis connection", error=str(e))
            self._redis = None

        logger.warning("Redis client connection ended")

    def _mark_connection_lost(self, error: Exception) -> None:
        """Move a READY handle to RECONNECTING and start probing."""
        if self._status != ConnectionStatus.READY:
            return

        self._status = ConnectionStatus.RECONNECTING
        logger.warning("Redis client reconnecting", error=str(error))

        if self._reconnect_task is None or self._reconnect_task.done():
            self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        """Ping with a growing delay until Redis answers again."""
        attempt = 0
        while self._status == ConnectionStatus.RECONNECTING and self._redis is not None:
            attempt += 1
            await asyncio.sleep(min(attempt * RECONNECT_STEP_SECONDS, RECONNECT_MAX_DELAY_SECONDS))
            try:
                await self._redis.ping()
            except RedisError as e:
                logger.debug("Redis reconnect attempt failed", attempt=attempt, error=str(e))
                continue

            if self._status == ConnectionStatus.RECONNECTING:
                self._status = ConnectionStatus.READY
                logger.info("Redis client ready", reconnect_attempts=attempt)

    async def _execute(self, command: str, awaitable, **context) -> Any:
        """
        Await a Redis command, translating redis-py errors.

        Connection-level failures are reported as CacheConnectionError and
        start the reconnect probe; anything else is a CacheKeyError.
        """
        try:
            result = await awaitable
        except (ConnectionError, TimeoutError) as e:
            self._mark_connection_lost(e)
            raise CacheConnectionError(
                message=f"Redis {command} failed: {e}", details={"command": command, **context}
            )
        except RedisError as e:
            logger.error(f"Redis {command} failed", error=str(e), **context)
            raise CacheKeyError(
                message=f"Redis {command} failed: {e}", details={"command": command, **context}
            )
        return result

    def _require_client(self) -> redis.Redis:
        if self._redis is None:
            raise CacheConnectionError("Redis client is not connected")
        return self._redis

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """GET key. Missing keys return None."""
        return await self._execute("GET", self._require_client().get(key), key=key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        """SETEX key ttl value."""
        return bool(
            await self._execute("SETEX", self._require_client().setex(key, ttl, value), key=key)
        )

    async def delete(self, *keys: str) -> int:
        """
        DEL keys in a single command.

        Returns:
            Number of keys removed (0 when none existed or none were given)
        """
        if not keys:
            return 0
        return await self._execute("DEL", self._require_client().delete(*keys), keys=list(keys))

    async def keys(self, pattern: str) -> list[str]:
        """
        Return every key matching a glob-style pattern.

        Uses incremental SCAN instead of KEYS so large keyspaces do not block
        the server. SCAN can report a key more than once; results are
        de-duplicated preserving first-seen order.
        """
        client = self._require_client()

        async def collect() -> list[str]:
            found: dict[str, None] = {}
            async for key in client.scan_iter(match=pattern, count=SCAN_COUNT):
                found[key] = None
            return list(found)

        return await self._execute("SCAN", collect(), pattern=pattern)

    async def ping(self) -> bool:
        """PING. Returns False instead of raising."""
        if self._redis is None:
            return False
        try:
            await self._execute("PING", self._redis.ping())
            return True
        except (CacheConnectionError, CacheKeyError):
            return False

    async def health_check(self) -> dict[str, Any]:
        """
        Measure PING round-trip latency.

        Returns:
            {"status": "connected", "latency_ms": float} when READY and PING succeeds,
            {"status": "disconnected"} when the handle is not READY,
            {"status": "error"} when PING fails.
        """
        if not self.is_ready:
            return {"status": HealthStatus.DISCONNECTED.value}

        start = time.perf_counter()
        try:
            await self._execute("PING", self._require_client().ping())
        except (CacheConnectionError, CacheKeyError) as e:
            logger.warning("Redis health check failed", error=e.message)
            return {"status": HealthStatus.ERROR.value}

        latency = (time.perf_counter() - start) * 1000
        return {"status": HealthStatus.CONNECTED.value, "latency_ms": round(latency, 2)}


# =============================================================================
# GLOBAL HANDLE
# =============================================================================

_redis_client: RedisClient | None = None
_pending_connect: asyncio.Future | None = None

# Target of the last create, reused by background connects
_last_target: RedisTarget = None
_background_connect: asyncio.Task | None = None
_last_background_failure: float | None = None


async def create_redis_client(target: RedisTarget = None) -> RedisClient:
    """
    Get or create the process-wide Redis handle.

    Idempotent: while a handle is READY or CONNECTING it is returned as-is.
    Concurrent callers that arrive during connection share one in-flight
    connect and all receive the same handle (or the same error). Any other
    handle (RECONNECTING or DISCONNECTED) is disconnected and replaced, so at
    most one handle is ever live.

    Args:
        target: URL, redis.Redis kwargs, an existing redis.Redis, or None to
                use settings

    Raises:
        CacheConnectionError: If the connection cannot be established
    """
    global _redis_client, _pending_connect, _last_target

    if _pending_connect is not None and not _pending_connect.done():
        return await asyncio.shield(_pending_connect)

    if _redis_client is not None and _redis_client.status in LIVE_STATUSES:
        return _redis_client

    stale = _redis_client
    client = RedisClient(target)
    _redis_client = client
    _last_target = target
    _pending_connect = asyncio.ensure_future(_replace(stale, client))

    try:
        return await asyncio.shield(_pending_connect)
    except CacheConnectionError:
        if _redis_client is client:
            _redis_client = None
        raise


async def _replace(stale: RedisClient | None, client: RedisClient) -> RedisClient:
    if stale is not None:
        logger.info("Replacing Redis client", previous_status=stale.status.value)
        await stale.disconnect()
    return await client.connect()


def ensure_redis_client() -> None:
    """
    Start creating the process-wide handle in the background if there is none.

    Called by the interceptors on every request that has no injected client,
    so a Redis that was down at startup is picked up once it comes back. The
    current request never waits for the connection. After a failed attempt
    the next one starts no sooner than RECONNECT_MAX_DELAY_SECONDS later.
    """
    global _background_connect

    if _redis_client is not None and _redis_client.status != ConnectionStatus.DISCONNECTED:
        return
    if _pending_connect is not None and not _pending_connect.done():
        return
    if _background_connect is not None and not _background_connect.done():
        return
    if (
        _last_background_failure is not None
        and time.monotonic() - _last_background_failure < RECONNECT_MAX_DELAY_SECONDS
    ):
        return

    _background_connect = asyncio.create_task(_connect_in_background())


async def _connect_in_background() -> None:
    global _last_background_failure

    try:
        await create_redis_client(_last_target)
    except CacheConnectionError as e:
        _last_background_failure = time.monotonic()
        logger.warning("Background Redis connection failed", error=e.message)
        return
    _last_background_failure = None


def get_redis_client() -> RedisClient | None:
    """Return the process-wide handle, or None if none was created."""
    return _redis_client


async def close_redis_client() -> None:
    """Gracefully close and clear the process-wide handle."""
    global _redis_client, _pending_connect, _background_connect

    if _background_connect is not None:
        _background_connect.cancel()
        _background_connect = None

    client = _redis_client
    _redis_client = None
    _pending_connect = None

    if client is not None:
        await client.disconnect()


def is_redis_connected() -> bool:
    """True when the process-wide handle is READY or CONNECTING."""
    return _redis_client is not None and _redis_client.status in LIVE_STATUSES


async def health_check(client: RedisClient | None = None) -> dict[str, Any]:
    """
    Ping-based health check of the given handle (default: process-wide).

    Returns:
        {"status": "connected", "latency_ms": ...} | {"status": "disconnected"}
        | {"status": "error"}
    """
    client = client or _redis_client
    if client is None:
        return {"status": HealthStatus.DISCONNECTED.value}
    return await client.health_check()
