"""
Cache Configuration and Status Models

CacheOptions and InvalidateOptions are immutable, per-route configuration
objects. They are validated on construction and resolved once when the
interceptor is built. CacheStatus is the per-request observability record the
read-through interceptor attaches to ``request.state.cache_status``.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from starlette.requests import Request

from redis_response_cache.core.config.constants import (
    DEFAULT_KEY_PREFIX,
    DEFAULT_MAX_PENDING_WRITES,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_TTL_SECONDS,
)
from redis_response_cache.core.config.settings import Settings, get_settings
from redis_response_cache.core.exceptions import ConfigurationError

KeyFunction = Callable[[Request], str]
CachePredicate = Callable[[Request], bool | Awaitable[bool]]


def _validate_key(key: Any, allow_list: bool) -> None:
    if key is None or isinstance(key, str) or callable(key):
        return
    if allow_list and isinstance(key, (list, tuple)):
        if not key:
            raise ConfigurationError("A key list must name at least one key")
        if not all(isinstance(item, str) for item in key):
            raise ConfigurationError("Every key in a key list must be a string", details={"key": key})
        return
    expected = "str, list[str] or callable" if allow_list else "str or callable"
    raise ConfigurationError(
        f"key must be {expected}", details={"key_type": type(key).__name__}
    )


def _validate_prefix(prefix: Any) -> None:
    if not isinstance(prefix, str):
        raise ConfigurationError("prefix must be a string", details={"prefix": prefix})


@dataclass(frozen=True)
class CacheOptions:
    """
    Read-through cache configuration for one route.

    Attributes:
        ttl: Expiry of cached responses in seconds
        key: Literal key body, or a function of the request returning one.
             Defaults to ``"<METHOD>:<path>[?query]"``
        prefix: Namespace prepended to the key body
        is_cacheable: Optional predicate (sync or async) deciding per request
        timeout: Deadline for the cache GET in milliseconds
        max_pending_writes: Cap on detached cache-write tasks per interceptor
    """

    ttl: int = DEFAULT_TTL_SECONDS
    key: str | KeyFunction | None = None
    prefix: str = DEFAULT_KEY_PREFIX
    is_cacheable: CachePredicate | None = None
    timeout: int = DEFAULT_TIMEOUT_MS
    max_pending_writes: int = DEFAULT_MAX_PENDING_WRITES

    def __post_init__(self):
        if not isinstance(self.ttl, int) or isinstance(self.ttl, bool) or self.ttl <= 0:
            raise ConfigurationError("ttl must be a positive integer", details={"ttl": self.ttl})
        if not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigurationError("timeout must be positive", details={"timeout": self.timeout})
        if self.max_pending_writes <= 0:
            raise ConfigurationError(
                "max_pending_writes must be positive",
                details={"max_pending_writes": self.max_pending_writes},
            )
        if self.is_cacheable is not None and not callable(self.is_cacheable):
            raise ConfigurationError("is_cacheable must be callable")
        _validate_key(self.key, allow_list=False)
        _validate_prefix(self.prefix)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides) -> "CacheOptions":
        """Build options from CACHE_* settings, with explicit overrides."""
        cache_settings = (settings or get_settings()).cache
        values = {
            "ttl": cache_settings.CACHE_DEFAULT_TTL,
            "prefix": cache_settings.CACHE_KEY_PREFIX,
            "timeout": cache_settings.CACHE_TIMEOUT_MS,
            "max_pending_writes": cache_settings.CACHE_MAX_PENDING_WRITES,
        }
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class InvalidateOptions:
    """
    Invalidation configuration for one route.

    ``key`` and ``pattern`` are alternative strategies. When a pattern is
    given it wins and ``key`` is ignored. The pattern is passed to Redis as-is
    (glob syntax, no prefix applied); keys are prefixed like derived cache keys.

    Attributes:
        key: Literal key body, list of key bodies, or a function of the request
        pattern: Glob pattern, e.g. ``"cache:GET:/users*"``
        prefix: Namespace prepended to each key body
        methods: Restrict invalidation to these HTTP methods (None: every request)
    """

    key: str | Sequence[str] | KeyFunction | None = None
    pattern: str | None = None
    prefix: str = DEFAULT_KEY_PREFIX
    methods: frozenset[str] | None = None

    def __post_init__(self):
        _validate_key(self.key, allow_list=True)
        _validate_prefix(self.prefix)
        if self.pattern is not None and (not isinstance(self.pattern, str) or not self.pattern):
            raise ConfigurationError("pattern must be a non-empty string", details={"pattern": self.pattern})
        if isinstance(self.key, list):
            object.__setattr__(self, "key", tuple(self.key))
        if self.methods is not None:
            object.__setattr__(self, "methods", frozenset(m.upper() for m in self.methods))

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides) -> "InvalidateOptions":
        """Build options using CACHE_KEY_PREFIX from settings."""
        values = {"prefix": (settings or get_settings()).cache.CACHE_KEY_PREFIX}
        values.update(overrides)
        return cls(**values)


@dataclass
class CacheStatus:
    """
    Per-request cache outcome, readable downstream as
    ``request.state.cache_status``.
    """

    hit: bool = False
    key: str = ""
    ttl: int | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.ttl is None:
            del data["ttl"]
        return data
