"""
Test infrastructure for the Article API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI.  The article array columns fall back to JSON on SQLite.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app is built with an injected ``AppContext`` holding the test
  session factory and a ``FakeVerifier``, so no credentials file or
  identity provider is needed.
- All tables are created fresh before each test and dropped after.
"""
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from article_api.config import Settings
from article_api.context import AppContext
from article_api.database import Base
from article_api.identity import Identity, InvalidTokenError
from article_api.main import create_app
from article_api.models import Article

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

ALICE = Identity(subject="uid-alice", email="alice@example.com")
BOB = Identity(subject="uid-bob", email="bob@example.com")
NO_EMAIL = Identity(subject="uid-phone")


class FakeVerifier:
    """Maps known test tokens to identities and records every call."""

    def __init__(self, tokens: dict[str, Identity]) -> None:
        self.tokens = tokens
        self.calls: list[str] = []

    def verify(self, token: str) -> Identity:
        self.calls.append(token)
        try:
            return self.tokens[token]
        except KeyError:
            raise InvalidTokenError(f"unknown token {token!r}")


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier({"alice-token": ALICE, "bob-token": BOB, "no-email-token": NO_EMAIL})


@pytest.fixture
def app_context(verifier: FakeVerifier, tmp_path) -> AppContext:
    settings = Settings(DATABASE_URL=TEST_DATABASE_URL, STATIC_DIR=str(tmp_path / "dist"))
    return AppContext(
        settings=settings,
        engine=engine_test,
        sessionmaker=async_session_test,
        verifier=verifier,
    )


@pytest.fixture
def app(app_context: AppContext):
    return create_app(app_context)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(app) -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def article() -> Article:
    """Seed one article (id 1) with an existing comment and no votes."""
    async with async_session_test() as session:
        row = Article(id=1, upvote=0, upvote_ids=[], comment=[" first! - carol@example.com"])
        session.add(row)
        await session.commit()
    return row


async def read_article(article_id: int) -> Article | None:
    """Load the stored row in a fresh session, bypassing any identity map."""
    async with async_session_test() as session:
        return await session.get(Article, article_id)


@pytest.fixture
def service_account_file():
    """A complete service-account bundle for ``demo-project`` (throwaway test key)."""
    return Path(__file__).parent / "data" / "service_account.json"
