"""
Translation schemas.

Models exchanged between the translation cache store, the orchestrator
and the API layer.
"""

from pydantic import BaseModel


class TranslationCacheEntry(BaseModel):
    """
    One cached translation, keyed by (slug, target_locale).

    ``html`` is only valid for source content whose fingerprint equals
    ``content_hash``.
    """

    document_id: str
    slug: str
    target_locale: str
    source_locale: str
    html: str
    content_hash: str


class TranslatedHtml(BaseModel):
    """Orchestrator output."""

    html: str


class TranslationMeta(BaseModel):
    """Identifies what a translated document was rendered for."""

    slug: str
    locale: str


class TranslatedDocument(BaseModel):
    """Translated document payload returned to page renderers."""

    html: str
    meta: TranslationMeta


class TranslationResult(BaseModel):
    """
    Uniform result of a public translation request.

    Exactly one of ``data`` and ``error`` is set.
    """

    success: bool
    data: TranslatedDocument | None = None
    error: str | None = None
