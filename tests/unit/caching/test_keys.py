"""
Unit Tests for Cache Key Derivation
"""

import pytest
from starlette.requests import Request

from redis_response_cache.caching.keys import (
    DefaultKey,
    DerivedKey,
    KeyList,
    LiteralKey,
    compile_key_spec,
    derive_key,
    derive_keys,
    original_url,
    parse_key_spec,
)
from redis_response_cache.caching.models import CacheOptions, InvalidateOptions


def make_request(method="GET", path="/api/users", query=b"", raw_path=None) -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "root_path": "",
        "query_string": query,
        "headers": [],
    }
    if raw_path is not None:
        scope["raw_path"] = raw_path
    return Request(scope)


@pytest.mark.unit
class TestParseKeySpec:

    def test_callable(self):
        assert isinstance(parse_key_spec(lambda request: "x"), DerivedKey)

    def test_literal(self):
        assert parse_key_spec("users") == LiteralKey("users")

    def test_list(self):
        assert parse_key_spec(["a", "b"]) == KeyList(("a", "b"))

    @pytest.mark.parametrize("key", [None, ""])
    def test_default(self, key):
        assert parse_key_spec(key) == DefaultKey()


@pytest.mark.unit
class TestOriginalUrl:

    def test_path_and_query(self):
        assert original_url(make_request(query=b"x=1")) == "/api/users?x=1"

    def test_no_query(self):
        assert original_url(make_request()) == "/api/users"

    def test_raw_path_keeps_encoding(self):
        request = make_request(path="/api/a b", raw_path=b"/api/a%20b")
        assert original_url(request) == "/api/a%20b"

    def test_raw_path_is_not_normalized(self):
        encoded = make_request(path="/api/ab", raw_path=b"/api/%61b")
        plain = make_request(path="/api/ab", raw_path=b"/api/ab")
        assert original_url(encoded) != original_url(plain)


@pytest.mark.unit
class TestDeriveKey:

    def test_default_key(self):
        request = make_request(query=b"x=1")
        assert derive_key(request, CacheOptions()) == "cache:GET:/api/users?x=1"

    def test_default_key_is_deterministic(self):
        options = CacheOptions()
        first = derive_key(make_request(query=b"page=2"), options)
        second = derive_key(make_request(query=b"page=2"), options)
        assert first == second

    def test_query_order_matters(self):
        options = CacheOptions()
        assert derive_key(make_request(query=b"a=1&b=2"), options) != derive_key(
            make_request(query=b"b=2&a=1"), options
        )

    def test_literal_key(self):
        assert derive_key(make_request(), CacheOptions(key="all-users")) == "cache:all-users"

    def test_callable_key(self):
        options = CacheOptions(key=lambda request: f"user:{request.query_params['id']}")
        assert derive_key(make_request(query=b"id=42"), options) == "cache:user:42"

    def test_custom_prefix(self):
        assert derive_key(make_request(), CacheOptions(prefix="api")) == "api:GET:/api/users"

    def test_empty_prefix(self):
        assert derive_key(make_request(), CacheOptions(prefix="", key="k")) == ":k"

    def test_method_is_part_of_default_key(self):
        request = make_request(method="POST")
        assert derive_key(request, InvalidateOptions()) == "cache:POST:/api/users"


@pytest.mark.unit
class TestDeriveKeys:

    def test_list_keys_are_prefixed(self):
        options = InvalidateOptions(key=["GET:/users", "GET:/users/1"])
        assert derive_keys(make_request(), options) == ("cache:GET:/users", "cache:GET:/users/1")

    def test_derive_key_returns_first_of_list(self):
        options = InvalidateOptions(key=["a", "b"])
        assert derive_key(make_request(), options) == "cache:a"

    def test_compiled_literal_is_reused(self):
        resolve = compile_key_spec("users", "cache")
        assert resolve(make_request()) is resolve(make_request(path="/other"))

    def test_callable_errors_propagate(self):
        def broken(request):
            raise RuntimeError("bad key")

        resolve = compile_key_spec(broken, "cache")
        with pytest.raises(RuntimeError):
            resolve(make_request())
