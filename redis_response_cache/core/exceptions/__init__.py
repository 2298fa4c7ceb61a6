"""
Exception Module

Structured exception hierarchy for the response cache.

Module Structure:
-----------------
- **base.py**: ResponseCacheError base class + ConfigurationError
- **cache.py**: Redis / cache operation exceptions

Usage:
------
```python
from redis_response_cache.core.exceptions import CacheUnavailableError, CacheTimeoutError
```
"""

from redis_response_cache.core.exceptions.base import ConfigurationError, ResponseCacheError
from redis_response_cache.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheTimeoutError,
    CacheUnavailableError,
)

__all__ = [
    # Base
    "ResponseCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheTimeoutError",
    "CacheUnavailableError",
]
