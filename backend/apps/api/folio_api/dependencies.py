"""
FastAPI dependencies.

Provides dependency injection for database sessions, Redis and the
translation services.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from folio_core.config import TranslationEngineConfig
from folio_core.services import (
    DocumentService,
    ProviderTranslationEngine,
    SqlTranslationCacheStore,
    TranslationEngine,
    TranslationOrchestrator,
    TranslationService,
)
from folio_database.session import get_session

from .config import settings

# Set by the application lifespan when REDIS_URL is configured
redis_client: Redis | None = None


@lru_cache
def get_translation_config() -> TranslationEngineConfig:
    """
    Get translation engine configuration.

    Returns:
        Translation engine configuration, loaded once.
    """
    return settings.translation_config()


@lru_cache
def get_translation_engine() -> TranslationEngine:
    """
    Get the translation engine.

    The provider is selected once per process from configuration.

    Returns:
        Translation engine instance.
    """
    return ProviderTranslationEngine.from_config(get_translation_config())


async def get_redis() -> Redis | None:
    """
    Get the Redis client.

    Returns:
        Redis client, or None when Redis is not configured.
    """
    return redis_client


def get_document_service(session: Annotated[AsyncSession, Depends(get_session)]) -> DocumentService:
    """Get document service instance."""
    return DocumentService(session)


def get_translation_orchestrator(
    session: Annotated[AsyncSession, Depends(get_session)],
    engine: Annotated[TranslationEngine, Depends(get_translation_engine)],
    config: Annotated[TranslationEngineConfig, Depends(get_translation_config)],
    redis: Annotated[Redis | None, Depends(get_redis)],
) -> TranslationOrchestrator:
    """Get translation orchestrator instance."""
    return TranslationOrchestrator(SqlTranslationCacheStore(session), engine, config, redis)


def get_translation_service(
    document_service: Annotated[DocumentService, Depends(get_document_service)],
    orchestrator: Annotated[TranslationOrchestrator, Depends(get_translation_orchestrator)],
    config: Annotated[TranslationEngineConfig, Depends(get_translation_config)],
) -> TranslationService:
    """Get translation service instance."""
    return TranslationService(document_service, orchestrator, config.default_source_locale)
