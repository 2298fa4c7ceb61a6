"""
Health Check Routes

    GET /health        -> liveness, always 200 while the process is serving
    GET /health/cache  -> Redis PING status and round-trip latency

The cache check reports "disconnected" or "error" instead of failing: the
service keeps serving uncached responses without Redis.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from redis_response_cache.core.config.settings import get_settings
from redis_response_cache.infrastructure.cache.redis_client import health_check

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str  # "healthy" or "degraded"
    timestamp: str  # ISO 8601 timestamp
    version: str
    components: dict | None = None


class CacheHealthResponse(BaseModel):
    status: str  # "connected", "disconnected" or "error"
    latency_ms: float | None = None


@router.get("", response_model=HealthResponse)
async def service_health():
    """
    Liveness check including the cache component.

    A disconnected cache degrades the service but does not make it unhealthy,
    since every cached route falls back to its handler.
    """
    cache = await health_check()
    return HealthResponse(
        status="healthy" if cache["status"] == "connected" else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=get_settings().app.APP_VERSION,
        components={"cache": cache},
    )


@router.get("/cache", response_model=CacheHealthResponse, response_model_exclude_none=True)
async def cache_health():
    return CacheHealthResponse(**await health_check())
