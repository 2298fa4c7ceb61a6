"""
Pytest Configuration and Shared Test Fixtures

Provides an in-memory stand-in for ``redis.asyncio.Redis`` and helpers to
build small FastAPI apps behind the cache interceptors.
"""

import asyncio
import contextlib
import fnmatch
import time

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from redis_response_cache.infrastructure.cache import redis_client as redis_client_module
from redis_response_cache.infrastructure.cache.redis_client import RedisClient


# ============================================================================
# In-Memory Redis
# ============================================================================


class InMemoryRedis:
    """
    Minimal async Redis stand-in covering the commands the cache uses.

    Failure injection:
        fail_with: exception raised by every data command (GET/SETEX/DEL/SCAN)
        fail_ping: exception raised by PING
        get_delay: seconds GET sleeps before answering (None: answer at once)
        hang_get: GET never answers
    """

    def __init__(self):
        self.data: dict[str, str] = {}
        self.expires_at: dict[str, float] = {}
        self.calls: list[tuple] = []
        self.fail_with: Exception | None = None
        self.fail_ping: Exception | None = None
        self.get_delay: float | None = None
        self.hang_get = False
        self.closed = False

    def _expire(self, key: str) -> None:
        deadline = self.expires_at.get(key)
        if deadline is not None and time.monotonic() >= deadline:
            self.data.pop(key, None)
            self.expires_at.pop(key, None)

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def ping(self):
        self.calls.append(("ping",))
        if self.fail_ping is not None:
            raise self.fail_ping
        return True

    async def get(self, key):
        self.calls.append(("get", key))
        self._check()
        if self.hang_get:
            await asyncio.Event().wait()
        if self.get_delay:
            await asyncio.sleep(self.get_delay)
        self._expire(key)
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.calls.append(("setex", key, ttl, value))
        self._check()
        self.data[key] = value
        self.expires_at[key] = time.monotonic() + ttl
        return True

    async def delete(self, *keys):
        self.calls.append(("delete", *keys))
        self._check()
        removed = 0
        for key in keys:
            self._expire(key)
            if key in self.data:
                del self.data[key]
                self.expires_at.pop(key, None)
                removed += 1
        return removed

    async def scan_iter(self, match=None, count=None):
        self.calls.append(("scan", match))
        self._check()
        for key in list(self.data):
            self._expire(key)
            if key in self.data and (match is None or fnmatch.fnmatchcase(key, match)):
                yield key

    async def aclose(self):
        self.closed = True

    def commands(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_redis():
    """Fresh in-memory Redis for each test."""
    return InMemoryRedis()


@pytest.fixture
def fake_redis_factory():
    """Build additional in-memory Redis instances within one test."""
    return InMemoryRedis


@pytest.fixture
async def redis_client(fake_redis):
    """RedisClient over the in-memory Redis, connected (READY)."""
    client = RedisClient(fake_redis)
    await client.connect()
    yield client
    await client.disconnect()


@pytest.fixture
def disconnected_client(fake_redis):
    """RedisClient that was never connected (DISCONNECTED)."""
    return RedisClient(fake_redis)


@pytest.fixture(autouse=True)
async def reset_global_redis_handle():
    """
    Isolate tests from the process-wide Redis handle.

    Background connects default to an unreachable in-memory Redis so no test
    touches a real server.
    """
    offline = InMemoryRedis()
    offline.fail_ping = RedisConnectionError("Connection refused")

    def reset(target):
        redis_client_module._redis_client = None
        redis_client_module._pending_connect = None
        redis_client_module._last_target = target
        redis_client_module._background_connect = None
        redis_client_module._last_background_failure = None

    reset(offline)
    yield

    task = redis_client_module._background_connect
    if task is not None and not task.done():
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    reset(None)


@pytest.fixture
def connection_error():
    return RedisConnectionError("Connection refused")


@pytest.fixture
def http_client_for():
    """
    Factory returning an httpx.AsyncClient bound to an ASGI app.

    Usage:
        async with http_client_for(app) as client:
            response = await client.get("/users")
    """

    def _make(app) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")

    return _make
