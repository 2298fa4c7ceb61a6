#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Demo service showing the read-through cache and the invalidation middleware
wired per route, with the shared Redis handle owned by the app lifespan.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from redis_response_cache.application.api.middleware.request_logging import (
    add_request_logging_middleware,
)
from redis_response_cache.application.api.routes import admin_router, health_router, users_router
from redis_response_cache.core.config.settings import get_settings
from redis_response_cache.core.exceptions import CacheConnectionError
from redis_response_cache.core.logging.logger import get_logger, setup_logging
from redis_response_cache.infrastructure.cache.redis_client import (
    close_redis_client,
    create_redis_client,
)

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the shared Redis handle on startup and close it on shutdown.

    A failed connection does not stop the service: cached routes fall back
    to their handlers until a handle becomes ready.
    """
    settings = get_settings()

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        f"Starting {settings.app.APP_NAME}",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    try:
        await create_redis_client()
    except CacheConnectionError as e:
        logger.warning("Starting without Redis, responses will not be cached", error=e.message)

    try:
        yield
    finally:
        logger.info("Shutting down application")
        await close_redis_client()
        logger.info("Application shutdown complete")


# ============================================================================
# Application Factory
# ============================================================================


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Redis-backed read-through response cache for FastAPI routes",
        lifespan=lifespan,
    )

    add_request_logging_middleware(app)

    app.include_router(users_router)
    app.include_router(health_router)
    app.include_router(admin_router)

    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "redis_response_cache.application.app:app",
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
