import logging
import time

from starlette.datastructures import Headers, MutableHeaders
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from article_api.exceptions import INTERNAL_ERROR_BODY

logger = logging.getLogger(__name__)

DEFAULT_CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET, POST, PUT, DELETE, OPTIONS",
    "access-control-allow-headers": "Content-Type, Accept, Accept-Language, Accept-Encoding, authtoken",
}


# ---------------------------------------------------------------------------
# Middleware (pure ASGI)
# ---------------------------------------------------------------------------

class DefaultCorsHeadersMiddleware:
    """
    Pure ASGI middleware that stamps the permissive CORS headers onto
    every HTTP response, leaving any value the route already set.

    Install it inside Starlette's ``CORSMiddleware``: for browser
    requests from an allowed origin the outer layer then replaces these
    defaults with its own, more restrictive values.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in DEFAULT_CORS_HEADERS.items():
                    headers.setdefault(name, value)
            await send(message)

        await self.app(scope, receive, send_wrapper)


class InternalErrorMiddleware:
    """
    Pure ASGI middleware that turns an unhandled exception into the
    generic JSON 500.

    Install it inside ``DefaultCorsHeadersMiddleware`` so the error
    response carries the same CORS headers as any other.  If the
    response has already started there is nothing left to replace, and
    the exception propagates.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            logger.exception("Unhandled error on %s %s", scope["method"], scope["path"])
            if started:
                raise
            response = JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)
            await response(scope, receive, send)


class LenientCORSMiddleware(CORSMiddleware):
    """
    ``CORSMiddleware`` whose preflights never fail.

    A preflight from a disallowed origin, or asking for a header outside
    the allow-list, is answered 200 with the configured methods and
    headers but never echoes a disallowed origin, so the browser still
    refuses the cross-origin call.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code == 200:
            return response
        headers = {
            name: value
            for name, value in response.headers.items()
            if name not in ("content-length", "content-type")
        }
        return PlainTextResponse("OK", status_code=200, headers=headers)


class AccessLogMiddleware:
    """Log method, path, status and wall-clock time of each HTTP request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.info("%s %s -> %d (%.2f ms)", scope["method"], scope["path"], status, duration_ms)
