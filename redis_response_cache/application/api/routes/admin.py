"""
Cache Administration Routes

    DELETE /cache/keys/{key}     -> delete one key (used verbatim)
    DELETE /cache?pattern=<glob> -> delete every matching key

Both return 503 when Redis is not ready.
"""

from fastapi import APIRouter, HTTPException, Query

from redis_response_cache.caching.invalidation import invalidate_by_key, invalidate_by_pattern
from redis_response_cache.core.exceptions import CacheError, CacheUnavailableError
from redis_response_cache.core.logging.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/cache", tags=["Cache"])


@router.delete("/keys/{key:path}")
async def delete_key(key: str):
    try:
        deleted = await invalidate_by_key(key)
    except CacheUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.to_dict())
    except CacheError as e:
        logger.error("Cache key deletion failed", cache_key=key, error=e.message)
        raise HTTPException(status_code=502, detail=e.to_dict())
    return {"key": key, "deleted": deleted}


@router.delete("")
async def delete_pattern(pattern: str = Query(..., min_length=1)):
    try:
        deleted = await invalidate_by_pattern(pattern)
    except CacheUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.to_dict())
    except CacheError as e:
        logger.error("Cache pattern deletion failed", pattern=pattern, error=e.message)
        raise HTTPException(status_code=502, detail=e.to_dict())
    return {"pattern": pattern, "deleted": deleted}
