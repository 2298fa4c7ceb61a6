"""
Unit Tests for the Invalidation Middleware and Per-Route Wiring
"""

import pytest
from fastapi import APIRouter, FastAPI
from redis.exceptions import ResponseError

from redis_response_cache.application.api.middleware.invalidate_middleware import (
    InvalidationMiddleware,
)
from redis_response_cache.application.api.middleware.routing import (
    cached_route,
    invalidating_route,
)
from redis_response_cache.caching.models import CacheOptions, InvalidateOptions


@pytest.fixture
def calls():
    return []


@pytest.fixture
def seeded(fake_redis):
    fake_redis.data.update(
        {
            "cache:GET:/users": "[]",
            "cache:GET:/users/1": "{}",
            "cache:GET:/orders": "[]",
        }
    )
    return fake_redis


@pytest.fixture
def build(calls):
    """FastAPI app whose POST /users route invalidates with the given options."""

    def _build(client, options: InvalidateOptions) -> FastAPI:
        router = APIRouter()

        async def create_user():
            calls.append("create_user")
            return {"success": True}

        router.add_api_route(
            "/users",
            create_user,
            methods=["POST", "PUT"],
            route_class_override=invalidating_route(options, client=client),
        )
        app = FastAPI()
        app.include_router(router)
        return app

    return _build


@pytest.mark.unit
class TestInvalidationStrategies:

    async def test_literal_key(self, build, calls, redis_client, seeded, http_client_for):
        app = build(redis_client, InvalidateOptions(key="GET:/users"))

        async with http_client_for(app) as client:
            response = await client.post("/users")

        assert response.status_code == 200
        assert calls == ["create_user"]
        assert set(seeded.data) == {"cache:GET:/users/1", "cache:GET:/orders"}

    async def test_key_list_single_del(self, build, redis_client, seeded, http_client_for):
        app = build(redis_client, InvalidateOptions(key=["GET:/users", "GET:/users/1"]))

        async with http_client_for(app) as client:
            await client.post("/users")

        assert set(seeded.data) == {"cache:GET:/orders"}
        assert seeded.commands("delete") == [("delete", "cache:GET:/users", "cache:GET:/users/1")]

    async def test_callable_key(self, build, redis_client, seeded, http_client_for):
        options = InvalidateOptions(key=lambda request: f"GET:/users/{request.query_params['id']}")
        app = build(redis_client, options)

        async with http_client_for(app) as client:
            await client.post("/users?id=1")

        assert "cache:GET:/users/1" not in seeded.data
        assert "cache:GET:/users" in seeded.data

    async def test_pattern_wins_over_key(self, build, redis_client, seeded, http_client_for):
        app = build(redis_client, InvalidateOptions(key="GET:/orders", pattern="cache:GET:/users*"))

        async with http_client_for(app) as client:
            await client.post("/users")

        assert set(seeded.data) == {"cache:GET:/orders"}

    async def test_pattern_without_matches(self, build, calls, redis_client, seeded, http_client_for):
        app = build(redis_client, InvalidateOptions(pattern="cache:GET:/nothing*"))

        async with http_client_for(app) as client:
            await client.post("/users")

        assert len(seeded.data) == 3
        assert seeded.commands("delete") == []
        assert calls == ["create_user"]

    async def test_default_key_is_request_key(self, build, redis_client, fake_redis, http_client_for):
        fake_redis.data["cache:POST:/users"] = "{}"
        app = build(redis_client, InvalidateOptions())

        async with http_client_for(app) as client:
            await client.post("/users")

        assert fake_redis.data == {}

    async def test_methods_filter(self, build, calls, redis_client, seeded, http_client_for):
        app = build(redis_client, InvalidateOptions(key="GET:/users", methods={"PUT"}))

        async with http_client_for(app) as client:
            await client.post("/users")
            assert "cache:GET:/users" in seeded.data
            await client.put("/users")

        assert "cache:GET:/users" not in seeded.data
        assert calls == ["create_user", "create_user"]


@pytest.mark.unit
class TestInvalidationFailOpen:

    async def test_unavailable_redis(self, build, calls, disconnected_client, seeded, http_client_for):
        app = build(disconnected_client, InvalidateOptions(key="GET:/users"))

        async with http_client_for(app) as client:
            response = await client.post("/users")

        assert response.status_code == 200
        assert calls == ["create_user"]
        assert seeded.commands("delete") == []

    async def test_delete_error(self, build, calls, redis_client, seeded, http_client_for):
        seeded.fail_with = ResponseError("READONLY")
        app = build(redis_client, InvalidateOptions(pattern="cache:*"))

        async with http_client_for(app) as client:
            response = await client.post("/users")

        assert response.status_code == 200
        assert calls == ["create_user"]

    async def test_key_function_error(self, build, calls, redis_client, http_client_for):
        def broken(request):
            raise RuntimeError("no tenant")

        app = build(redis_client, InvalidateOptions(key=broken))

        async with http_client_for(app) as client:
            response = await client.post("/users")

        assert response.status_code == 200
        assert calls == ["create_user"]

    async def test_downstream_error_propagates_once(self, redis_client):
        calls = []

        async def app(scope, receive, send):
            calls.append(scope["method"])
            raise RuntimeError("handler failed")

        middleware = InvalidationMiddleware(app, InvalidateOptions(key="k"), client=redis_client)
        scope = {"type": "http", "method": "POST", "path": "/users", "query_string": b"", "headers": []}

        with pytest.raises(RuntimeError):
            await middleware(scope, None, None)

        assert calls == ["POST"]


@pytest.mark.unit
class TestRouteClasses:

    async def test_router_wide_route_class(self, redis_client, fake_redis, http_client_for):
        router = APIRouter(route_class=cached_route(CacheOptions(prefix="api"), client=redis_client))

        @router.get("/orders")
        async def list_orders():
            return {"orders": []}

        app = FastAPI()
        app.include_router(router)

        async with http_client_for(app) as client:
            await client.get("/orders")

        assert fake_redis.commands("get") == [("get", "api:GET:/orders")]

    def test_route_classes_are_independent(self):
        first = cached_route(CacheOptions(ttl=10))
        second = cached_route(CacheOptions(ttl=20))
        assert first is not second
