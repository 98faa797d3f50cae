"""
Error taxonomy for the article API.

Every expected failure is an ``ArticleAPIError`` carrying the HTTP status
and JSON body the client sees.  Storage and other unexpected failures are
answered with a generic 500 and logged with their traceback; their detail
never reaches the client.  Storage errors are handled here; anything else
is caught by ``middleware.InternalErrorMiddleware`` so the 500 still
passes through the CORS layers.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_BODY = {"message": "Internal Server Error"}


class ArticleAPIError(Exception):
    status_code: int = 500
    body: dict = INTERNAL_ERROR_BODY

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or next(iter(self.body.values())))


class ArticleNotFound(ArticleAPIError):
    status_code = 404
    body = {"message": "Article not found"}


class DuplicateUpvote(ArticleAPIError):
    """The caller has already upvoted the article."""

    status_code = 403
    body = {"error": "You have already upvoted this article"}


class Unauthorized(ArticleAPIError):
    """The bearer token is invalid, or a protected route was called anonymously."""

    status_code = 403
    body = {"error": "Unauthorized"}


class NotAuthenticated(ArticleAPIError):
    """Commenting needs an identity that carries an email address."""

    status_code = 403
    body = {"error": "User not authenticated"}


async def _api_error_handler(request: Request, exc: ArticleAPIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.body)


async def _storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ArticleAPIError, _api_error_handler)
    app.add_exception_handler(SQLAlchemyError, _storage_error_handler)
