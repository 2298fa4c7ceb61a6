"""
Unit Tests for Programmatic Cache Invalidation
"""

import pytest

from redis_response_cache.caching.invalidation import (
    delete_matching,
    invalidate_by_key,
    invalidate_by_pattern,
    require_ready_client,
)
from redis_response_cache.core.exceptions import CacheKeyError, CacheUnavailableError
from redis_response_cache.infrastructure.cache import redis_client as redis_client_module
from redis_response_cache.infrastructure.cache.redis_client import create_redis_client


@pytest.fixture
def seeded(fake_redis):
    fake_redis.data.update({"user:1": "{}", "user:2": "{}", "order:1": "{}"})
    return fake_redis


@pytest.mark.unit
class TestInvalidateByPattern:

    async def test_removes_matching_keys_only(self, redis_client, seeded):
        deleted = await invalidate_by_pattern("user:*", client=redis_client)

        assert deleted == 2
        assert set(seeded.data) == {"order:1"}

    async def test_single_del_for_all_matches(self, redis_client, seeded):
        await invalidate_by_pattern("user:*", client=redis_client)
        assert len(seeded.commands("delete")) == 1

    async def test_no_match_issues_no_del(self, redis_client, seeded):
        assert await invalidate_by_pattern("session:*", client=redis_client) == 0
        assert seeded.commands("delete") == []

    async def test_uses_global_handle(self, seeded):
        await create_redis_client(seeded)
        assert await invalidate_by_pattern("order:*") == 1


@pytest.mark.unit
class TestInvalidateByKey:

    async def test_deletes_key_verbatim(self, redis_client, seeded):
        assert await invalidate_by_key("user:1", client=redis_client) == 1
        assert "user:1" not in seeded.data

    async def test_nonexistent_key_is_not_an_error(self, redis_client, seeded):
        assert await invalidate_by_key("user:99", client=redis_client) == 0
        assert len(seeded.data) == 3

    async def test_command_failure_propagates(self, redis_client, seeded):
        from redis.exceptions import ResponseError

        seeded.fail_with = ResponseError("WRONGTYPE")
        with pytest.raises(CacheKeyError):
            await invalidate_by_key("user:1", client=redis_client)


@pytest.mark.unit
class TestUnavailable:

    async def test_no_handle_raises(self):
        assert redis_client_module.get_redis_client() is None
        with pytest.raises(CacheUnavailableError):
            await invalidate_by_key("user:1")

    async def test_not_ready_raises(self, disconnected_client):
        with pytest.raises(CacheUnavailableError) as exc_info:
            await invalidate_by_pattern("user:*", client=disconnected_client)
        assert exc_info.value.details["status"] == "disconnected"

    def test_require_ready_client_returns_client(self, redis_client):
        assert require_ready_client(redis_client) is redis_client

    async def test_delete_matching_empty(self, redis_client):
        assert await delete_matching(redis_client, "*") == 0
