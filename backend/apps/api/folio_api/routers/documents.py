"""
Documents router.

Provides public endpoints for reading published documents in other
locales.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from folio_core.schemas import TranslatedDocument
from folio_core.services import TranslationService
from folio_core.services.translation_service import DOCUMENT_NOT_FOUND

from ..dependencies import get_translation_service

router = APIRouter()


@router.get("/{slug}/translations/{locale}")
async def get_translated_document(
    slug: str,
    locale: str,
    translation_service: Annotated[TranslationService, Depends(get_translation_service)],
    source_locale: str | None = Query(None, min_length=2, max_length=20),
) -> TranslatedDocument:
    """
    Get a published document rendered as HTML in the requested locale.

    The HTML is escaped at render time and safe to embed verbatim.

    Args:
        slug: Document slug.
        locale: Target locale code.
        translation_service: Translation service.
        source_locale: Locale the document is written in (default "en").

    Returns:
        Translated HTML and the slug/locale it was rendered for.

    Raises:
        HTTPException: 404 if the document is not found, 503 if the
            translation is unavailable.
    """
    result = await translation_service.get_translated_html(slug, locale, source_locale)
    if result.success and result.data is not None:
        return result.data

    if result.error == DOCUMENT_NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result.error)
