"""
Service layer.

Business logic services for the application.
"""

from .document_service import DocumentService
from .translation_cache import SqlTranslationCacheStore, TranslationCacheError, TranslationCacheStore
from .translation_engine import ProviderTranslationEngine, TranslationEngine, TranslationEngineError
from .translation_orchestrator import TranslationOrchestrator
from .translation_service import TranslationService

__all__ = [
    "DocumentService",
    # Translation pipeline
    "TranslationCacheStore",
    "SqlTranslationCacheStore",
    "TranslationCacheError",
    "TranslationEngine",
    "ProviderTranslationEngine",
    "TranslationEngineError",
    "TranslationOrchestrator",
    "TranslationService",
]
