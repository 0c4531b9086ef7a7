"""
Translation cache store.

Persists rendered, translated HTML per (slug, target locale) in the
DocumentTranslation table.
"""

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from folio_core import get_logger
from folio_core.schemas.translation import TranslationCacheEntry
from folio_database.models.document_translation import DocumentTranslation

logger = get_logger(__name__)


class TranslationCacheError(Exception):
    """Raised when the cache store cannot be read or written."""


class TranslationCacheStore(Protocol):
    """Key-value store of translations keyed by (slug, target locale)."""

    async def lookup(self, slug: str, target_locale: str) -> TranslationCacheEntry | None:
        """Return the entry for the key, or None."""
        ...

    async def upsert(self, entry: TranslationCacheEntry) -> None:
        """Insert the entry, or update the existing row for its key."""
        ...


class SqlTranslationCacheStore:
    """Translation cache store backed by the document_translations table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def lookup(self, slug: str, target_locale: str) -> TranslationCacheEntry | None:
        """
        Get the cached translation for a slug and target locale.

        Args:
            slug: Document slug.
            target_locale: Target locale code.

        Returns:
            The cache entry, or None if absent.

        Raises:
            TranslationCacheError: If the database query fails.
        """
        try:
            row = await self._get_row(slug, target_locale)
            entry = self._to_entry(row) if row is not None else None
            # End the read transaction so no connection is held across the engine call
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise TranslationCacheError(f"Cache lookup failed for {slug}/{target_locale}") from e

        return entry

    async def upsert(self, entry: TranslationCacheEntry) -> None:
        """
        Store a translation, keyed strictly on (slug, target_locale).

        An existing row keeps its id and document reference; only html,
        content_hash and source_locale change. When a concurrent request
        inserts the same key first, the row it created is updated instead.

        Args:
            entry: Translation to store.

        Raises:
            TranslationCacheError: If the write fails; nothing is persisted.
        """
        try:
            try:
                await self._write(entry)
            except IntegrityError:
                await self.session.rollback()
                logger.info(
                    "Concurrent translation insert; updating existing row",
                    extra={"slug": entry.slug, "locale": entry.target_locale},
                )
                await self._write(entry)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise TranslationCacheError(
                f"Cache upsert failed for {entry.slug}/{entry.target_locale}"
            ) from e

    async def _write(self, entry: TranslationCacheEntry) -> None:
        row = await self._get_row(entry.slug, entry.target_locale)
        if row:
            row.html = entry.html
            row.content_hash = entry.content_hash
            row.source_locale = entry.source_locale
        else:
            row = DocumentTranslation(
                document_id=entry.document_id,
                slug=entry.slug,
                locale=entry.target_locale,
                source_locale=entry.source_locale,
                html=entry.html,
                content_hash=entry.content_hash,
            )
            self.session.add(row)
        await self.session.commit()

    async def _get_row(self, slug: str, target_locale: str) -> DocumentTranslation | None:
        stmt = select(DocumentTranslation).where(
            DocumentTranslation.slug == slug,
            DocumentTranslation.locale == target_locale,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _to_entry(row: DocumentTranslation) -> TranslationCacheEntry:
        return TranslationCacheEntry(
            document_id=row.document_id,
            slug=row.slug,
            target_locale=row.locale,
            source_locale=row.source_locale,
            html=row.html,
            content_hash=row.content_hash,
        )
