"""
Pydantic schemas for API requests and responses.
"""

from .translation import (
    TranslatedDocument,
    TranslatedHtml,
    TranslationCacheEntry,
    TranslationMeta,
    TranslationResult,
)

__all__ = [
    # Translation
    "TranslationCacheEntry",
    "TranslatedHtml",
    "TranslationMeta",
    "TranslatedDocument",
    "TranslationResult",
]
