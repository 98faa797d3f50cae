"""Create the articles table and seed sample rows for local development."""
import asyncio
import argparse
import time

from article_api.config import settings
from article_api.database import Base, create_engine, create_sessionmaker
from article_api.models import Article


async def seed(count: int, reset: bool = False):
    engine = create_engine(settings)
    sessionmaker = create_sessionmaker(engine)

    print(f"Seeding: {count} articles into {settings.DB_DATABASE}")
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with sessionmaker() as session:
        for i in range(1, count + 1):
            session.add(Article(id=i, upvote=0, upvote_ids=[], comment=[]))
        await session.commit()

    await engine.dispose()
    print(f"Done in {time.perf_counter() - start:.2f}s")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the articles table")
    parser.add_argument("--count", type=int, default=3, help="Number of articles to create")
    parser.add_argument("--reset", action="store_true", help="Drop the table first")
    args = parser.parse_args()
    asyncio.run(seed(args.count, args.reset))
