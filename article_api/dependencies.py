import logging
from typing import AsyncIterator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from article_api.context import AppContext
from article_api.exceptions import NotAuthenticated, Unauthorized
from article_api.identity import Identity, InvalidTokenError, parse_bearer

logger = logging.getLogger(__name__)


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_db(context: AppContext = Depends(get_context)) -> AsyncIterator[AsyncSession]:
    async with context.sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def current_identity(
    authorization: Optional[str] = Header(None),
    context: AppContext = Depends(get_context),
) -> Optional[Identity]:
    """
    Resolve the caller's identity from the ``Authorization`` header.

    No bearer header means an anonymous caller (``None``).  A bearer token
    that fails verification rejects the request outright; the verifier's
    reason is logged but never sent to the client.
    """
    token = parse_bearer(authorization)
    if token is None:
        return None
    try:
        # google-auth verifies synchronously (blocking cert fetches).
        return await run_in_threadpool(context.verifier.verify, token)
    except InvalidTokenError as ex:
        logger.warning("Error verifying auth token: %s", ex)
        raise Unauthorized() from ex


async def require_identity(
    identity: Optional[Identity] = Depends(current_identity),
) -> Identity:
    if identity is None:
        logger.info("Rejected anonymous request to a protected route")
        raise Unauthorized()
    return identity


async def require_email_identity(
    identity: Optional[Identity] = Depends(current_identity),
) -> Identity:
    if identity is None or not identity.email:
        logger.info("Rejected comment from a caller without an email identity")
        raise NotAuthenticated()
    return identity
