"""
Translation service.

Public entry point for reading a published document in another locale.
Wraps the orchestrator and converts every failure into a uniform result.
"""

from folio_core import get_logger
from folio_core.schemas.translation import TranslatedDocument, TranslationMeta, TranslationResult

from .document_service import DocumentService
from .translation_cache import TranslationCacheError
from .translation_engine import TranslationEngineError
from .translation_orchestrator import TranslationOrchestrator

logger = get_logger(__name__)

DOCUMENT_NOT_FOUND = "Document not found"
TRANSLATION_UNAVAILABLE = "Translation unavailable"


class TranslationService:
    """Translation management service."""

    def __init__(
        self,
        document_service: DocumentService,
        orchestrator: TranslationOrchestrator,
        default_source_locale: str = "en",
    ) -> None:
        self.document_service = document_service
        self.orchestrator = orchestrator
        self.default_source_locale = default_source_locale

    async def get_translated_html(
        self,
        slug: str,
        target_locale: str,
        source_locale: str | None = None,
        *,
        timeout: float | None = None,
    ) -> TranslationResult:
        """
        Get a published document's HTML in the target locale.

        Never raises: a missing document, an engine failure and a cache
        store failure all come back as ``success=False``. Callers may embed
        ``data.html`` verbatim.

        Args:
            slug: Document slug.
            target_locale: Locale to translate into.
            source_locale: Locale the document is written in. None uses the
                service default ("en").
            timeout: Optional engine call timeout in seconds.

        Returns:
            TranslationResult with the HTML or an error message.
        """
        source_locale = source_locale or self.default_source_locale

        try:
            document = await self.document_service.get_by_slug(slug, published_only=True)
        except ValueError:
            return TranslationResult(success=False, error=DOCUMENT_NOT_FOUND)
        except Exception:
            logger.exception("Document lookup failed", extra={"slug": slug})
            return TranslationResult(success=False, error=TRANSLATION_UNAVAILABLE)

        try:
            translated = await self.orchestrator.translate(
                slug=document.slug,
                document_id=document.id,
                blocks_json=document.content,
                source_locale=source_locale,
                target_locale=target_locale,
                timeout=timeout,
            )
        except TranslationEngineError:
            logger.exception(
                "Translation engine failed",
                extra={"slug": slug, "locale": target_locale},
            )
            return TranslationResult(success=False, error=TRANSLATION_UNAVAILABLE)
        except TranslationCacheError:
            logger.exception(
                "Translation cache store failed",
                extra={"slug": slug, "locale": target_locale},
            )
            return TranslationResult(success=False, error=TRANSLATION_UNAVAILABLE)
        except Exception:
            logger.exception(
                "Failed to translate document",
                extra={"slug": slug, "locale": target_locale},
            )
            return TranslationResult(success=False, error=TRANSLATION_UNAVAILABLE)

        return TranslationResult(
            success=True,
            data=TranslatedDocument(
                html=translated.html,
                meta=TranslationMeta(slug=document.slug, locale=target_locale),
            ),
        )


__all__ = ["TranslationService", "DOCUMENT_NOT_FOUND", "TRANSLATION_UNAVAILABLE"]
