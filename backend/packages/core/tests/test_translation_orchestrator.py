"""Tests for the translation orchestrator."""

import asyncio
from unittest.mock import MagicMock

import pytest

from folio_core.config import TranslationEngineConfig
from folio_core.content import compute_content_hash
from folio_core.schemas import TranslationCacheEntry
from folio_core.services import (
    SqlTranslationCacheStore,
    TranslationCacheError,
    TranslationEngineError,
    TranslationOrchestrator,
)
from folio_database.models import DocumentTranslation

BLOCKS = '[{"type":"paragraph","content":"Hello"}]'


class _MemoryCacheStore:
    """In-memory cache store keyed by (slug, target_locale)."""

    def __init__(self):
        self.rows: dict[tuple[str, str], dict] = {}
        self.lookups = 0
        self.upserts: list[TranslationCacheEntry] = []
        self.lookup_error: Exception | None = None
        self._next_id = 1

    async def lookup(self, slug, target_locale):
        self.lookups += 1
        if self.lookup_error is not None:
            raise self.lookup_error
        row = self.rows.get((slug, target_locale))
        return row["entry"] if row else None

    async def upsert(self, entry):
        self.upserts.append(entry)
        key = (entry.slug, entry.target_locale)
        if key in self.rows:
            existing = self.rows[key]["entry"]
            self.rows[key]["entry"] = existing.model_copy(
                update={
                    "html": entry.html,
                    "content_hash": entry.content_hash,
                    "source_locale": entry.source_locale,
                }
            )
        else:
            self.rows[key] = {"id": self._next_id, "entry": entry}
            self._next_id += 1

    def seed(self, entry: TranslationCacheEntry) -> None:
        self.rows[(entry.slug, entry.target_locale)] = {"id": self._next_id, "entry": entry}
        self._next_id += 1


class _ScriptedEngine:
    """Engine returning a fixed response and counting calls."""

    def __init__(self, response="<p>Hola</p>", error: Exception | None = None, delay=0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str, str]] = []

    async def localize_html(self, html, *, source_locale, target_locale):
        self.calls.append((html, source_locale, target_locale))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


def _config(**overrides) -> TranslationEngineConfig:
    return TranslationEngineConfig(**{"timeout_seconds": 5.0, **overrides})


def _orchestrator(store, engine, redis=None, **config) -> TranslationOrchestrator:
    return TranslationOrchestrator(store, engine, _config(**config), redis)


class TestCacheMissAndHit:
    """End-to-end miss then hit."""

    @pytest.mark.asyncio
    async def test_miss_renders_translates_and_stores(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine("<p>Hola</p>")
        orchestrator = _orchestrator(store, engine)

        result = await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert result.html == "<p>Hola</p>"
        assert engine.calls == [("<p>Hello</p>", "en", "es")]
        assert len(store.upserts) == 1
        stored = store.upserts[0]
        assert stored.document_id == "doc-1"
        assert stored.slug == "hello"
        assert stored.target_locale == "es"
        assert stored.source_locale == "en"
        assert stored.html == "<p>Hola</p>"
        assert stored.content_hash == compute_content_hash(BLOCKS, "en")

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine("<p>Hola</p>")
        orchestrator = _orchestrator(store, engine)

        first = await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")
        second = await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert first.html == second.html == "<p>Hola</p>"
        assert len(engine.calls) == 1
        assert len(store.upserts) == 1

    @pytest.mark.asyncio
    async def test_hit_has_no_side_effects(self):
        store = _MemoryCacheStore()
        store.seed(
            TranslationCacheEntry(
                document_id="doc-1",
                slug="hello",
                target_locale="es",
                source_locale="en",
                html="<p>Hola</p>",
                content_hash=compute_content_hash(BLOCKS, "en"),
            )
        )
        engine = _ScriptedEngine()
        orchestrator = _orchestrator(store, engine)

        for _ in range(2):
            result = await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")
            assert result.html == "<p>Hola</p>"

        assert engine.calls == []
        assert store.upserts == []


class TestStaleEntries:
    """Stale cache entries are recomputed in place."""

    @pytest.mark.asyncio
    async def test_stale_entry_triggers_single_recompute(self):
        store = _MemoryCacheStore()
        store.seed(
            TranslationCacheEntry(
                document_id="doc-1",
                slug="hello",
                target_locale="es",
                source_locale="en",
                html="<p>Viejo</p>",
                content_hash="outdated",
            )
        )
        row_id = store.rows[("hello", "es")]["id"]
        engine = _ScriptedEngine("<p>Hola</p>")
        orchestrator = _orchestrator(store, engine)

        result = await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert result.html == "<p>Hola</p>"
        assert len(engine.calls) == 1
        assert len(store.upserts) == 1
        assert list(store.rows) == [("hello", "es")]
        assert store.rows[("hello", "es")]["id"] == row_id
        entry = store.rows[("hello", "es")]["entry"]
        assert entry.html == "<p>Hola</p>"
        assert entry.content_hash == compute_content_hash(BLOCKS, "en")

    @pytest.mark.asyncio
    async def test_source_locale_change_makes_entry_stale(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine("<p>Hola</p>")
        orchestrator = _orchestrator(store, engine)

        await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")
        await orchestrator.translate("hello", "doc-1", BLOCKS, "fr", "es")

        assert len(engine.calls) == 2
        assert store.rows[("hello", "es")]["entry"].source_locale == "fr"

    @pytest.mark.asyncio
    async def test_locales_are_cached_independently(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine("<p>x</p>")
        orchestrator = _orchestrator(store, engine)

        await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")
        await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "de")

        assert set(store.rows) == {("hello", "es"), ("hello", "de")}


class TestRendering:
    """Rendering behavior seen by the engine."""

    @pytest.mark.asyncio
    async def test_malformed_json_falls_back_to_paragraph(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine("<p>no es json</p>")
        orchestrator = _orchestrator(store, engine)

        result = await orchestrator.translate("broken", "doc-2", "not json", "en", "es")

        assert engine.calls[0][0] == "<p>not json</p>"
        assert result.html == "<p>no es json</p>"

    @pytest.mark.asyncio
    async def test_engine_returning_input_unchanged_is_cached(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine("<p>Hello</p>")
        orchestrator = _orchestrator(store, engine)

        result = await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "en")

        assert result.html == "<p>Hello</p>"
        assert store.upserts[0].html == "<p>Hello</p>"


class TestFailures:
    """Failures never write the cache."""

    @pytest.mark.asyncio
    async def test_engine_error_propagates_without_write(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine(error=TranslationEngineError("quota exceeded"))
        orchestrator = _orchestrator(store, engine)

        with pytest.raises(TranslationEngineError, match="quota"):
            await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert store.upserts == []

    @pytest.mark.asyncio
    async def test_unexpected_engine_exception_is_wrapped(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine(error=RuntimeError("socket closed"))
        orchestrator = _orchestrator(store, engine)

        with pytest.raises(TranslationEngineError) as exc_info:
            await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert store.upserts == []

    @pytest.mark.asyncio
    async def test_engine_timeout_is_engine_failure(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine(delay=1.0)
        orchestrator = _orchestrator(store, engine)

        with pytest.raises(TranslationEngineError, match="timed out"):
            await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es", timeout=0.01)

        assert store.upserts == []

    @pytest.mark.asyncio
    async def test_explicit_zero_timeout_is_honored(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine(delay=1.0)
        orchestrator = _orchestrator(store, engine, timeout_seconds=5.0)

        with pytest.raises(TranslationEngineError, match="after 0 seconds"):
            await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es", timeout=0)

        assert store.upserts == []

    @pytest.mark.asyncio
    async def test_config_timeout_applies_by_default(self):
        store = _MemoryCacheStore()
        engine = _ScriptedEngine(delay=1.0)
        orchestrator = _orchestrator(store, engine, timeout_seconds=0.01)

        with pytest.raises(TranslationEngineError):
            await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

    @pytest.mark.asyncio
    async def test_cache_lookup_failure_propagates_before_engine_call(self):
        store = _MemoryCacheStore()
        store.lookup_error = TranslationCacheError("database down")
        engine = _ScriptedEngine()
        orchestrator = _orchestrator(store, engine)

        with pytest.raises(TranslationCacheError):
            await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert engine.calls == []


class _FakeLock:
    def __init__(self, acquired=True, on_acquire=None):
        self.name = "translation_lock:hello:es"
        self.acquired = acquired
        self.on_acquire = on_acquire
        self.released = False

    async def acquire(self):
        if self.on_acquire is not None:
            self.on_acquire()
        return self.acquired

    async def release(self):
        self.released = True


class _FakeRedis:
    def __init__(self, lock: _FakeLock):
        self._lock = lock
        self.lock_calls: list[tuple[str, dict]] = []

    def lock(self, name, **kwargs):
        self.lock_calls.append((name, kwargs))
        return self._lock


class TestSingleFlight:
    """Redis lock coalescing of concurrent misses."""

    @pytest.mark.asyncio
    async def test_lock_holder_result_is_reused(self):
        store = _MemoryCacheStore()
        fresh = TranslationCacheEntry(
            document_id="doc-1",
            slug="hello",
            target_locale="es",
            source_locale="en",
            html="<p>Hola</p>",
            content_hash=compute_content_hash(BLOCKS, "en"),
        )
        lock = _FakeLock(on_acquire=lambda: store.seed(fresh))
        redis = _FakeRedis(lock)
        engine = _ScriptedEngine()
        orchestrator = _orchestrator(store, engine, redis=redis)

        result = await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert result.html == "<p>Hola</p>"
        assert engine.calls == []
        assert lock.released
        assert redis.lock_calls[0][0] == "translation_lock:hello:es"

    @pytest.mark.asyncio
    async def test_lock_is_released_after_translation(self):
        store = _MemoryCacheStore()
        lock = _FakeLock()
        engine = _ScriptedEngine()
        orchestrator = _orchestrator(store, engine, redis=_FakeRedis(lock))

        await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert len(engine.calls) == 1
        assert lock.released

    @pytest.mark.asyncio
    async def test_lock_released_on_failure(self):
        store = _MemoryCacheStore()
        lock = _FakeLock()
        engine = _ScriptedEngine(error=TranslationEngineError("down"))
        orchestrator = _orchestrator(store, engine, redis=_FakeRedis(lock))

        with pytest.raises(TranslationEngineError):
            await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert lock.released

    @pytest.mark.asyncio
    async def test_lock_timeout_proceeds_unlocked(self):
        store = _MemoryCacheStore()
        lock = _FakeLock(acquired=False)
        engine = _ScriptedEngine()
        orchestrator = _orchestrator(store, engine, redis=_FakeRedis(lock))

        result = await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert result.html == "<p>Hola</p>"
        assert len(engine.calls) == 1
        assert not lock.released

    @pytest.mark.asyncio
    async def test_single_flight_disabled_skips_lock(self):
        store = _MemoryCacheStore()
        redis = _FakeRedis(_FakeLock())
        engine = _ScriptedEngine()
        orchestrator = _orchestrator(store, engine, redis=redis, single_flight=False)

        await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert redis.lock_calls == []


class _TransactionTrackingSession:
    """AsyncSession double that tracks whether a transaction is open."""

    def __init__(self, row: DocumentTranslation | None = None):
        self.row = row
        self.added: list[DocumentTranslation] = []
        self._in_transaction = False

    def in_transaction(self) -> bool:
        return self._in_transaction

    async def execute(self, stmt):
        # Like SQLAlchemy, the first statement begins a transaction
        self._in_transaction = True
        result = MagicMock()
        result.scalar_one_or_none.return_value = self.row
        return result

    def add(self, obj) -> None:
        self._in_transaction = True
        self.added.append(obj)

    async def commit(self) -> None:
        self._in_transaction = False

    async def rollback(self) -> None:
        self._in_transaction = False


class _TransactionCheckingEngine:
    """Engine recording whether the session was mid-transaction when called."""

    def __init__(self, session: _TransactionTrackingSession):
        self.session = session
        self.in_transaction_during_call: list[bool] = []

    async def localize_html(self, html, *, source_locale, target_locale):
        self.in_transaction_during_call.append(self.session.in_transaction())
        return "<p>Hola</p>"


class TestTransactionBoundaries:
    """The engine is never called while a database transaction is open."""

    @pytest.mark.asyncio
    async def test_miss_calls_engine_outside_transaction(self):
        session = _TransactionTrackingSession()
        engine = _TransactionCheckingEngine(session)
        orchestrator = _orchestrator(SqlTranslationCacheStore(session), engine)

        await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert engine.in_transaction_during_call == [False]
        assert len(session.added) == 1
        assert session.in_transaction() is False

    @pytest.mark.asyncio
    async def test_stale_entry_calls_engine_outside_transaction(self):
        row = DocumentTranslation(
            id="row-1",
            document_id="doc-1",
            slug="hello",
            locale="es",
            source_locale="en",
            html="<p>Viejo</p>",
            content_hash="outdated",
        )
        session = _TransactionTrackingSession(row)
        engine = _TransactionCheckingEngine(session)
        orchestrator = _orchestrator(SqlTranslationCacheStore(session), engine)

        await orchestrator.translate("hello", "doc-1", BLOCKS, "en", "es")

        assert engine.in_transaction_during_call == [False]
        assert row.html == "<p>Hola</p>"
