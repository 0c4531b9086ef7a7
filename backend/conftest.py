"""Global pytest fixtures for testing."""

import contextlib
import os
from collections.abc import AsyncGenerator

import dotenv
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from folio_api.dependencies import get_redis, get_translation_engine
from folio_api.main import app
from folio_database import Base
from folio_database.session import get_session

with contextlib.suppress(OSError):
    dotenv.load_dotenv()


class FakeTranslationEngine:
    """Translation engine double that records calls."""

    def __init__(self, replacements: dict[str, str] | None = None):
        self.replacements = replacements or {"Hello": "Hola", "World": "Mundo"}
        self.calls: list[tuple[str, str, str]] = []
        self.error: Exception | None = None

    async def localize_html(self, html: str, *, source_locale: str, target_locale: str) -> str:
        self.calls.append((html, source_locale, target_locale))
        if self.error is not None:
            raise self.error
        for original, translated in self.replacements.items():
            html = html.replace(original, translated)
        return html

    def reset(self) -> None:
        """Forget recorded calls and any injected error."""
        self.calls.clear()
        self.error = None


# Database tests only run against an explicitly configured test database
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "")

# Safety check: ensure tests only run on a test database
if TEST_DATABASE_URL and "_test" not in TEST_DATABASE_URL and "/test" not in TEST_DATABASE_URL:
    raise RuntimeError(
        f"Safety check failed: TEST_DATABASE_URL must point to a test database "
        f"(name should contain 'test'). Current: {TEST_DATABASE_URL}"
    )


@pytest.fixture
def fake_engine() -> FakeTranslationEngine:
    """Provide a fresh fake translation engine."""
    return FakeTranslationEngine()


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with a fresh schema."""
    if not TEST_DATABASE_URL:
        pytest.skip("TEST_DATABASE_URL not set")

    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=NullPool,  # Disable connection pooling for tests
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with test_engine.connect() as connection:
        # Start outer transaction
        transaction = await connection.begin()

        # Create session bound to the connection
        async_session = async_sessionmaker(
            bind=connection,
            class_=AsyncSession,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )

        async with async_session() as session:
            yield session

            # Rollback the outer transaction
            await transaction.rollback()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, fake_engine: FakeTranslationEngine
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with database, redis and engine overrides."""

    async def override_get_session():
        yield db_session

    async def override_get_redis():
        return None

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_translation_engine] = lambda: fake_engine

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession):
    """Create a test user."""
    from folio_database.models import User

    user = User(name="Test User", email="test@example.com")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def published_document(db_session: AsyncSession, test_user):
    """Create a published document with a single paragraph."""
    from folio_database.models import Document, DocumentVisibility

    document = Document(
        user_id=test_user.id,
        slug="hello",
        title="Hello",
        content='[{"type":"paragraph","content":"Hello"}]',
        visibility=DocumentVisibility.PUBLISHED.value,
    )
    db_session.add(document)
    await db_session.commit()
    await db_session.refresh(document)
    return document
