"""
Process-wide resources, built once at startup and passed to handlers
through ``app.state.context``.

There is no runtime refresh: rotating the identity credentials or the
database parameters needs a restart.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from article_api.config import Settings
from article_api.database import create_engine, create_sessionmaker
from article_api.identity import FirebaseTokenVerifier, IdentityVerifier
from article_api.models import Article

logger = logging.getLogger(__name__)


class ArticleLocks:
    """
    One ``asyncio.Lock`` per article id, serialising in-process mutations.

    A lock only exists while some request holds or waits on it; the last
    one out removes the entry, so the map never outgrows the set of ids
    currently being mutated.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, article_id: int):
        lock = self._locks.get(article_id)
        if lock is None:
            lock = self._locks[article_id] = asyncio.Lock()
        self._users[article_id] = self._users.get(article_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[article_id] -= 1
            if not self._users[article_id]:
                del self._users[article_id]
                del self._locks[article_id]


@dataclass
class AppContext:
    settings: Settings
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]
    verifier: IdentityVerifier
    locks: ArticleLocks = field(default_factory=ArticleLocks)

    async def close(self) -> None:
        await self.engine.dispose()


def build_context(settings: Settings) -> AppContext:
    """Load credentials and open the connection pool.

    Raises ``CredentialsError`` when the credential bundle is unusable.
    """
    verifier = FirebaseTokenVerifier.from_credentials_file(settings.CREDENTIALS_PATH)
    engine = create_engine(settings)
    return AppContext(
        settings=settings,
        engine=engine,
        sessionmaker=create_sessionmaker(engine),
        verifier=verifier,
    )


async def check_database(context: AppContext) -> int:
    """Count the article rows, failing loudly if the store is unreachable."""
    async with context.sessionmaker() as session:
        total = (await session.execute(select(func.count()).select_from(Article))).scalar_one()
    if total == 0:
        logger.warning("Connected to the database, but the articles table is empty")
    else:
        logger.info("Connected to the database: %d articles", total)
    return total
