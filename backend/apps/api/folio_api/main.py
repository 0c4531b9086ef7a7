"""
Folio API - FastAPI application entry point.

This module initializes the FastAPI application and configures
middleware, routers, and lifecycle events.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from folio_core import get_logger, init_logging

from . import dependencies
from .config import settings
from .routers import documents

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifecycle manager.

    Handles startup and shutdown events for the application.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    # Startup: Initialize resources
    from folio_database.session import close_database, init_database

    init_logging(settings.log_level)
    logger.info("Starting Folio API", extra={"version": settings.version})
    init_database(settings.database_url)

    # Redis is only needed for single-flight translation locks
    if settings.redis_url:
        dependencies.redis_client = Redis.from_url(settings.redis_url)
        logger.info("Redis client initialized")

    yield

    # Shutdown: Cleanup resources
    if dependencies.redis_client is not None:
        await dependencies.redis_client.aclose()
        dependencies.redis_client = None
        logger.info("Redis client closed")
    await close_database()
    logger.info("Shutting down Folio API")


def create_app() -> FastAPI:
    """
    Build a configured FastAPI application.

    Returns:
        New application instance.
    """
    application = FastAPI(
        title="Folio API",
        description="Folio - Document Publishing Platform API",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register API routers
    application.include_router(documents.router, prefix="/api/documents", tags=["Documents"])

    @application.get("/api/health")
    async def health_check() -> dict[str, str]:
        """
        Health check endpoint.

        Returns:
            Dictionary containing service status and version.
        """
        return {"status": "healthy", "version": settings.version}

    return application


app = create_app()
