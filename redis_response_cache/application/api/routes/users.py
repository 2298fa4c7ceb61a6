"""
User Routes (demo)

A cached collection endpoint and a mutation that invalidates it:

    GET  /users  -> cached for 60s under "cache:GET:/users"
    POST /users  -> deletes "cache:GET:/users" before adding the user
"""

import time

from fastapi import APIRouter
from pydantic import BaseModel, Field

from redis_response_cache.application.api.middleware.routing import (
    cached_route,
    invalidating_route,
)
from redis_response_cache.caching.models import CacheOptions, InvalidateOptions

router = APIRouter(tags=["Users"])

_users: list[str] = ["Alice", "Bob"]


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


async def list_users() -> dict:
    return {"users": list(_users), "timestamp": int(time.time() * 1000)}


async def create_user(user: UserCreate | None = None) -> dict:
    if user is not None:
        _users.append(user.name)
    return {"success": True, "message": "Cache invalidated"}


CachedUsersRoute = cached_route(CacheOptions(ttl=60))
InvalidatingUsersRoute = invalidating_route(InvalidateOptions(key="GET:/users"))

router.add_api_route("/users", list_users, methods=["GET"], route_class_override=CachedUsersRoute)
router.add_api_route(
    "/users", create_user, methods=["POST"], route_class_override=InvalidatingUsersRoute
)
