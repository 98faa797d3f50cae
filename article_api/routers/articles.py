from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from article_api.context import AppContext
from article_api.dependencies import (
    current_identity,
    get_context,
    get_db,
    require_email_identity,
    require_identity,
)
from article_api.identity import Identity
from article_api.schemas import ArticleDetail, ArticleResponse, CommentCreate, ErrorResponse, MessageResponse
from article_api.services import article_service, comment_service

router = APIRouter(prefix="/api/articles", tags=["articles"])

_NOT_FOUND = {404: {"model": MessageResponse}}
_FORBIDDEN = {403: {"model": ErrorResponse}}

@router.get("/{article_id}", response_model=ArticleDetail, responses={**_NOT_FOUND, **_FORBIDDEN})
async def get_article(
    article_id: int,
    identity: Optional[Identity] = Depends(current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.get_article(db, article_id, identity)

@router.put("/{article_id}/upvote", response_model=ArticleResponse, responses={**_NOT_FOUND, **_FORBIDDEN})
async def upvote_article(
    article_id: int,
    identity: Identity = Depends(require_identity),
    context: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    return await article_service.upvote_article(db, context.locks, article_id, identity.subject)

@router.post("/{article_id}/comment", response_model=ArticleResponse, responses={**_NOT_FOUND, **_FORBIDDEN})
async def add_comment(
    article_id: int,
    data: CommentCreate,
    identity: Identity = Depends(require_email_identity),
    context: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.add_comment(
        db, context.locks, article_id, data.text, identity.email
    )
