"""
Article service — reads and upvotes for the Article aggregate.

Design notes
------------
- Reads never mutate; ``canUpvote`` is computed per caller and never
  stored.
- An upvote is a check-then-act on the ``upvoteIds`` array.  It runs
  under the per-article lock from ``ArticleLocks`` and a
  ``SELECT ... FOR UPDATE`` row lock, and commits before the lock is
  released, so a subject can never be recorded twice and ``upvote``
  stays equal to the number of recorded subjects.
- Mutating functions commit their own transaction; read functions leave
  the transaction boundary to the ``get_db`` dependency.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from article_api.context import ArticleLocks
from article_api.exceptions import ArticleNotFound, DuplicateUpvote
from article_api.identity import Identity
from article_api.models import Article

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def article_to_dict(article: Article) -> dict:
    """Serialise an Article ORM instance to its wire representation."""
    return {
        "id": article.id,
        "upvote": article.upvote,
        "upvoteIds": list(article.upvote_ids or []),
        "comment": list(article.comment or []),
    }


def can_upvote(article: Article, identity: Optional[Identity]) -> bool:
    if identity is None:
        return False
    return identity.subject not in (article.upvote_ids or [])


async def load_article(db: AsyncSession, article_id: int, for_update: bool = False) -> Article:
    """
    Return the Article row for *article_id*.

    With *for_update* the row is locked until the current transaction
    ends (a no-op on SQLite).  Raises ``ArticleNotFound`` when there is
    no such row.
    """
    q = select(Article).where(Article.id == article_id)
    if for_update:
        q = q.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(q)
    article = result.scalar_one_or_none()
    if article is None:
        logger.info("Article %s not found", article_id)
        raise ArticleNotFound()
    return article


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_article(
    db: AsyncSession, article_id: int, identity: Optional[Identity] = None
) -> dict:
    """Return *article_id* with ``canUpvote`` computed for *identity*."""
    article = await load_article(db, article_id)
    data = article_to_dict(article)
    data["canUpvote"] = can_upvote(article, identity)
    return data


async def upvote_article(
    db: AsyncSession, locks: ArticleLocks, article_id: int, subject: str
) -> dict:
    """
    Record one upvote by *subject* on *article_id* and return the updated
    article.

    Raises ``ArticleNotFound`` for an unknown id and ``DuplicateUpvote``
    when *subject* has already voted; neither changes stored state.
    """
    async with locks.hold(article_id):
        article = await load_article(db, article_id, for_update=True)
        upvote_ids = list(article.upvote_ids or [])
        if subject in upvote_ids:
            logger.info("Duplicate upvote on article %s by %s", article_id, subject)
            await db.rollback()
            raise DuplicateUpvote()

        article.upvote = article.upvote + 1
        # Reassign rather than append: in-place list mutation is not tracked.
        article.upvote_ids = upvote_ids + [subject]
        await db.flush()
        await db.commit()

    logger.debug("Article %s upvoted by %s (now %d)", article_id, subject, article.upvote)
    return article_to_dict(article)
