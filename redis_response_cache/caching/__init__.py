"""
Caching Module

Key derivation, per-route options and programmatic invalidation shared by the
read-through and invalidation interceptors.
"""

from .invalidation import invalidate_by_key, invalidate_by_pattern
from .keys import compile_key_spec, derive_key, derive_keys
from .models import CacheOptions, CacheStatus, InvalidateOptions

__all__ = [
    "CacheOptions",
    "CacheStatus",
    "InvalidateOptions",
    "compile_key_spec",
    "derive_key",
    "derive_keys",
    "invalidate_by_key",
    "invalidate_by_pattern",
]
