"""
Translation orchestrator.

Decides per request whether cached HTML for a (slug, target locale) is
still valid for the current source content, and otherwise renders the
document, translates it and stores the result.
"""

import asyncio

from redis.asyncio import Redis
from redis.asyncio.lock import Lock
from redis.exceptions import LockError, RedisError

from folio_core import get_logger
from folio_core.config import TranslationEngineConfig
from folio_core.content import compute_content_hash, render_blocks_json
from folio_core.redis_keys import RedisKeys
from folio_core.schemas.translation import TranslatedHtml, TranslationCacheEntry

from .translation_cache import TranslationCacheStore
from .translation_engine import TranslationEngine, TranslationEngineError

logger = get_logger(__name__)


class TranslationOrchestrator:
    """
    Cache-aware document translation.

    The cache is written only after rendering and translation both
    succeed, so a failed request never leaves a partial entry behind.
    Cache store reads close their transaction before returning, so the
    engine call runs outside any database transaction.
    """

    def __init__(
        self,
        cache_store: TranslationCacheStore,
        engine: TranslationEngine,
        config: TranslationEngineConfig,
        redis: Redis | None = None,
    ) -> None:
        self.cache_store = cache_store
        self.engine = engine
        self.config = config
        self.redis = redis

    async def translate(
        self,
        slug: str,
        document_id: str,
        blocks_json: str,
        source_locale: str,
        target_locale: str,
        *,
        timeout: float | None = None,
    ) -> TranslatedHtml:
        """
        Get HTML for a document in the target locale.

        Args:
            slug: Document slug (cache key part).
            document_id: Document identifier stored on new cache rows.
            blocks_json: Raw block JSON of the current document content.
            source_locale: Locale the content is written in.
            target_locale: Locale to translate into (cache key part).
            timeout: Seconds allowed for the engine call. Defaults to
                ``config.timeout_seconds``.

        Returns:
            Translated HTML.

        Raises:
            TranslationEngineError: If the engine fails or times out.
            TranslationCacheError: If the cache store is unavailable.
        """
        content_hash = compute_content_hash(blocks_json, source_locale)

        cached = await self._lookup_valid(slug, target_locale, content_hash)
        if cached is not None:
            return cached

        lock = await self._acquire_lock(slug, target_locale)
        try:
            if lock is not None:
                # Another holder may have filled the cache while we waited
                cached = await self._lookup_valid(slug, target_locale, content_hash, log=False)
                if cached is not None:
                    return cached

            if timeout is None:
                timeout = self.config.timeout_seconds

            html = render_blocks_json(blocks_json)
            localized = await self._localize(html, source_locale, target_locale, timeout)

            await self.cache_store.upsert(
                TranslationCacheEntry(
                    document_id=document_id,
                    slug=slug,
                    target_locale=target_locale,
                    source_locale=source_locale,
                    html=localized,
                    content_hash=content_hash,
                )
            )
            logger.info(
                "Translation cached",
                extra={"slug": slug, "locale": target_locale, "html_length": len(localized)},
            )
            return TranslatedHtml(html=localized)
        finally:
            if lock is not None:
                await self._release_lock(lock)

    async def _lookup_valid(
        self, slug: str, target_locale: str, content_hash: str, log: bool = True
    ) -> TranslatedHtml | None:
        entry = await self.cache_store.lookup(slug, target_locale)
        if entry is not None and entry.content_hash == content_hash:
            if log:
                logger.debug("Translation cache hit", extra={"slug": slug, "locale": target_locale})
            return TranslatedHtml(html=entry.html)

        if log:
            logger.info(
                "Translation cache stale" if entry is not None else "Translation cache miss",
                extra={"slug": slug, "locale": target_locale},
            )
        return None

    async def _localize(
        self, html: str, source_locale: str, target_locale: str, timeout: float
    ) -> str:
        try:
            return await asyncio.wait_for(
                self.engine.localize_html(
                    html, source_locale=source_locale, target_locale=target_locale
                ),
                timeout=timeout,
            )
        except TranslationEngineError:
            raise
        except asyncio.TimeoutError as e:
            raise TranslationEngineError(
                f"Translation engine timed out after {timeout} seconds"
            ) from e
        except Exception as e:
            raise TranslationEngineError(f"Translation engine failed: {e}") from e

    async def _acquire_lock(self, slug: str, target_locale: str) -> Lock | None:
        """Take the single-flight lock, or None to proceed unlocked."""
        if self.redis is None or not self.config.single_flight:
            return None

        lock = self.redis.lock(
            RedisKeys.translation_lock(slug, target_locale),
            timeout=self.config.lock_ttl_seconds,
            blocking_timeout=self.config.lock_blocking_timeout_seconds,
        )
        try:
            acquired = await lock.acquire()
        except RedisError:
            logger.warning(
                "Translation lock unavailable; continuing without it",
                extra={"slug": slug, "locale": target_locale},
            )
            return None

        if not acquired:
            logger.warning(
                "Timed out waiting for translation lock; continuing without it",
                extra={"slug": slug, "locale": target_locale},
            )
            return None
        return lock

    @staticmethod
    async def _release_lock(lock: Lock) -> None:
        try:
            await lock.release()
        except (LockError, RedisError):
            # Lock expired or Redis went away; the TTL cleans up either way
            logger.warning("Failed to release translation lock", extra={"key": lock.name})
