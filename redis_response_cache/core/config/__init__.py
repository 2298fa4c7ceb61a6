"""
Configuration Module

Centralized, type-safe configuration for the response cache.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Defaults, enums and header names

Usage:
------
```python
from redis_response_cache.core.config import get_settings
from redis_response_cache.core.config.constants import ConnectionStatus

settings = get_settings()
redis_url = settings.redis.REDIS_URL
```

Environment Variables:
---------------------
```bash
# Redis
REDIS_URL=redis://localhost:6379/0
REDIS_HOST=localhost
REDIS_PORT=6379

# Cache defaults
CACHE_DEFAULT_TTL=60
CACHE_KEY_PREFIX=cache
CACHE_TIMEOUT_MS=5000

# Logging
LOG_LEVEL=INFO
LOG_FORMAT=json
```
"""

from redis_response_cache.core.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
