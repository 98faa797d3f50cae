"""
Comment service — append-only comments for the Article aggregate.

Comments are plain display strings stored in the article's ``comment``
array.  They carry no id of their own and cannot be edited or deleted.
The text is stored verbatim; no length or content checks are applied.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from article_api.context import ArticleLocks
from article_api.services.article_service import article_to_dict, load_article

logger = logging.getLogger(__name__)


def format_comment(text: str, email: str) -> str:
    return f" {text} - {email}"


async def add_comment(
    db: AsyncSession,
    locks: ArticleLocks,
    article_id: int,
    text: str,
    email: str,
) -> dict:
    """
    Append a comment by *email* to *article_id* and return the updated
    article.

    Raises ``ArticleNotFound`` when the article does not exist.
    """
    async with locks.hold(article_id):
        article = await load_article(db, article_id, for_update=True)
        article.comment = list(article.comment or []) + [format_comment(text, email)]
        await db.flush()
        await db.commit()

    logger.debug("Comment appended to article %s by %s", article_id, email)
    return article_to_dict(article)
