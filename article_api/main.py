import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles

from article_api.config import Settings, settings as default_settings
from article_api.context import AppContext, build_context, check_database
from article_api.exceptions import register_exception_handlers
from article_api.middleware import (
    AccessLogMiddleware,
    DefaultCorsHeadersMiddleware,
    InternalErrorMiddleware,
    LenientCORSMiddleware,
    DEFAULT_CORS_HEADERS,
)
from article_api.routers import articles

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(context: AppContext | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    When *context* is None the lifespan builds one from *settings* at
    startup (loading credentials and checking the database) and disposes
    of it at shutdown; any failure there aborts startup.  An injected
    context is used as-is and left open.
    """
    settings = settings or (context.settings if context else default_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        if context is not None:
            yield
            return
        owned = build_context(settings)
        try:
            await check_database(owned)
        except Exception:
            logger.exception("Error connecting to the database")
            await owned.close()
            raise
        app.state.context = owned
        yield
        # Shutdown
        await owned.close()

    app = FastAPI(
        title="Article API",
        description="Read, upvote and comment on articles",
        version="1.0.0",
        lifespan=lifespan,
    )
    if context is not None:
        app.state.context = context

    # Middleware: the last one added is the outermost.
    app.add_middleware(InternalErrorMiddleware)
    app.add_middleware(DefaultCorsHeadersMiddleware)
    app.add_middleware(
        LenientCORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "authtoken"],
    )
    app.add_middleware(AccessLogMiddleware)

    register_exception_handlers(app)

    @app.options("/api/{path:path}", include_in_schema=False)
    async def preflight(path: str):
        return Response(status_code=200, headers={
            "Access-Control-Allow-Methods": DEFAULT_CORS_HEADERS["access-control-allow-methods"],
            "Access-Control-Allow-Headers": "Content-Type, Accept, Accept-Language, Accept-Encoding",
        })

    app.include_router(articles.router)

    static_dir = Path(settings.STATIC_DIR)

    @app.get("/", include_in_schema=False)
    async def index():
        entry = static_dir / "index.html"
        if not entry.is_file():
            return JSONResponse(status_code=404, content={"message": "Not Found"})
        return FileResponse(entry)

    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


app = create_app()
