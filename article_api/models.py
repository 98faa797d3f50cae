from __future__ import annotations

from typing import List

from sqlalchemy import JSON, Integer, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from article_api.database import Base

# Native text[] on PostgreSQL; JSON lists elsewhere (the SQLite test database).
TextArray = JSON().with_variant(ARRAY(Text), "postgresql")


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------
class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    upvote: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # The production column was created unquoted, so PostgreSQL stores it
    # lower-cased.
    upvote_ids: Mapped[List[str] | None] = mapped_column("upvoteids", TextArray, nullable=True)
    comment: Mapped[List[str] | None] = mapped_column("comment", TextArray, nullable=True)
