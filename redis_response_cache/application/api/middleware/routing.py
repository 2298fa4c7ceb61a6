"""
Per-Route Cache Wiring

FastAPI has no per-route middleware. The extension point it does offer is
``APIRoute.get_route_handler()``, the ``Request -> Response`` coroutine the
route runs for every matched request. These factories return APIRoute
subclasses whose handler is wrapped with a cache step configured for the route.

    router.add_api_route(
        "/users", list_users, methods=["GET"],
        route_class_override=cached_route(CacheOptions(ttl=60)),
    )

    router.add_api_route(
        "/users", create_user, methods=["POST"],
        route_class_override=invalidating_route(InvalidateOptions(key="GET:/users")),
    )

A whole router can opt in with ``APIRouter(route_class=cached_route(...))``;
every route of that class then shares one ReadThroughCache (and its cap on
pending writes), reachable as ``RouteClass.cache``.
"""

from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Request, Response
from fastapi.routing import APIRoute

from redis_response_cache.application.api.middleware.cache_middleware import (
    ReadThroughCache,
    is_cacheable_response,
)
from redis_response_cache.application.api.middleware.invalidate_middleware import (
    CacheInvalidator,
)
from redis_response_cache.caching.models import CacheOptions, InvalidateOptions
from redis_response_cache.core.config.constants import CACHEABLE_METHODS
from redis_response_cache.infrastructure.cache.redis_client import RedisClient

RouteHandler = Callable[[Request], Coroutine[Any, Any, Response]]


def cached_route(
    options: CacheOptions | None = None, client: RedisClient | None = None
) -> type[APIRoute]:
    """Route class whose endpoint sits behind a read-through cache."""
    route_cache = ReadThroughCache(options, client)

    class CachedRoute(APIRoute):
        cache = route_cache

        def get_route_handler(self) -> RouteHandler:
            handler = super().get_route_handler()

            async def cached_handler(request: Request) -> Response:
                if request.method not in CACHEABLE_METHODS:
                    return await handler(request)

                lookup = await route_cache.lookup(request)
                if lookup is None:
                    return await handler(request)
                if lookup.hit:
                    return route_cache.hit_response(lookup)

                response = await handler(request)
                # Streaming responses carry no body attribute and are not cached
                body = getattr(response, "body", None)
                if isinstance(body, bytes) and is_cacheable_response(
                    response.status_code, response.headers.get("content-type", "")
                ):
                    route_cache.store(lookup, body)
                return response

            return cached_handler

    return CachedRoute


def invalidating_route(
    options: InvalidateOptions, client: RedisClient | None = None
) -> type[APIRoute]:
    """Route class that invalidates cache entries before its endpoint runs."""
    invalidator = CacheInvalidator(options, client)

    class InvalidatingRoute(APIRoute):
        cache_invalidator = invalidator

        def get_route_handler(self) -> RouteHandler:
            handler = super().get_route_handler()

            async def invalidating_handler(request: Request) -> Response:
                if invalidator.triggers(request.method):
                    await invalidator.invalidate(request)
                return await handler(request)

            return invalidating_handler

    return InvalidatingRoute
