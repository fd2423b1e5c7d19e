"""FastAPI application factory for the library catalog"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from catalog import __version__
from catalog.core.config import Settings, load_settings
from catalog.core.exceptions import CatalogError
from catalog.core.logger import get_logger
from catalog.pipeline.executor import error_response
from catalog.services import build_services
from catalog.stores import Database, create_db_engine, init_database

from .auth_middleware import to_response
from .auth_routes import login_router, signup_router
from .book_routes import router as book_router
from .user_routes import router as user_router

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> FastAPI:
    """
    Build the app around one settings object and one database handle.

    Tables are created up front so the app is usable without running the
    lifespan (handy for tests that skip the TestClient context manager).
    """
    settings = settings or load_settings()
    if db is None:
        db = Database(create_db_engine(settings.database.url, echo=settings.database.echo))
    init_database(db.engine)

    if not settings.auth.secret:
        logger.warning("No token secret configured; login and protected routes will fail")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Catalog API starting", environment=settings.app.environment)
        try:
            yield
        finally:
            db.dispose()

    app = FastAPI(title=settings.app.name, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.services = build_services(settings, db)

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
        return to_response(error_response(exc))

    @app.get("/health")
    async def health():
        await run_in_threadpool(db.ping)
        return {"message": "Server is running"}

    app.include_router(signup_router)
    app.include_router(login_router)
    app.include_router(user_router)
    app.include_router(book_router)
    return app
