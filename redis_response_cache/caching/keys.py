"""
Cache Key Derivation

Derives Redis keys from a request and a route's key configuration.

Key layout:
    "<prefix>:<body>"

Body resolution:
    callable key   -> key(request)
    literal key    -> key, verbatim
    list of keys   -> each literal, verbatim (invalidation only)
    no key         -> "<METHOD>:<path>[?query]"

The path is the raw request target as received by the server, so two
requests that differ only in percent-encoding never share a key. Nothing is
truncated, hashed or normalized.
"""

from collections.abc import Callable
from dataclasses import dataclass

from starlette.requests import Request

from redis_response_cache.caching.models import CacheOptions, InvalidateOptions, KeyFunction
from redis_response_cache.core.config.constants import KEY_SEPARATOR


@dataclass(frozen=True)
class LiteralKey:
    body: str


@dataclass(frozen=True)
class DerivedKey:
    derive: KeyFunction


@dataclass(frozen=True)
class KeyList:
    bodies: tuple[str, ...]


@dataclass(frozen=True)
class DefaultKey:
    pass


KeySpec = LiteralKey | DerivedKey | KeyList | DefaultKey

KeyResolver = Callable[[Request], tuple[str, ...]]


def parse_key_spec(key) -> KeySpec:
    """Tag a raw ``key`` option as one of the KeySpec variants."""
    if callable(key):
        return DerivedKey(key)
    if isinstance(key, str) and key:
        return LiteralKey(key)
    if isinstance(key, (list, tuple)):
        return KeyList(tuple(key))
    return DefaultKey()


def original_url(request: Request) -> str:
    """Path plus query string exactly as the client sent them."""
    scope = request.scope
    raw_path = scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = scope.get("root_path", "") + scope["path"]
    query = scope.get("query_string", b"").decode("latin-1")
    return f"{path}?{query}" if query else path


def default_key_body(request: Request) -> str:
    return f"{request.method}{KEY_SEPARATOR}{original_url(request)}"


def build_key(prefix: str, body: str) -> str:
    return f"{prefix}{KEY_SEPARATOR}{body}"


def compile_key_spec(key, prefix: str) -> KeyResolver:
    """
    Resolve a key option once into a function from request to full keys.

    Called when an interceptor is constructed so per-request work is a single
    call with no type dispatch.
    """
    spec = parse_key_spec(key)

    if isinstance(spec, DerivedKey):
        derive = spec.derive
        return lambda request: (build_key(prefix, derive(request)),)

    if isinstance(spec, LiteralKey):
        literal = (build_key(prefix, spec.body),)
        return lambda request: literal

    if isinstance(spec, KeyList):
        keys = tuple(build_key(prefix, body) for body in spec.bodies)
        return lambda request: keys

    return lambda request: (build_key(prefix, default_key_body(request)),)


def derive_key(request: Request, options: CacheOptions | InvalidateOptions) -> str:
    """
    Compute the single store key for a request.

    For a key list, the first entry is returned; use ``derive_keys`` to get
    all of them.
    """
    return derive_keys(request, options)[0]


def derive_keys(request: Request, options: CacheOptions | InvalidateOptions) -> tuple[str, ...]:
    """Compute every store key the options name for a request."""
    return compile_key_spec(options.key, options.prefix)(request)
