"""Winx API entry point: ``uvicorn winx.main:app``."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from winx.auth.router import router as auth_router
from winx.common.exceptions import register_exception_handlers
from winx.common.rate_limit import limiter
from winx.companies.router import router as companies_router
from winx.config import settings
from winx.database import async_session_factory, engine
from winx.employees.router import router as employees_router
from winx.imports.dispatcher import ImportDispatcher
from winx.imports.files import UploadStore
from winx.logging_config import configure_logging
from winx.users.router import router as users_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
API_VERSION = "1.0.0"

ROUTERS = (
    (auth_router, "auth"),
    (companies_router, "companies"),
    (users_router, "users"),
    (employees_router, "employees"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the import workers for as long as the app serves requests."""
    configure_logging(settings.LOG_LEVEL)
    dispatcher = ImportDispatcher(
        async_session_factory,
        UploadStore(settings.UPLOAD_DIR),
        workers=settings.IMPORT_WORKERS,
        batch_size=settings.IMPORT_BATCH_SIZE,
    )
    if settings.IMPORT_RECOVER_ON_START:
        await dispatcher.recover()
    dispatcher.start()
    app.state.import_dispatcher = dispatcher
    logger.info(
        "Winx API up (environment=%s, import workers=%d)",
        settings.ENVIRONMENT,
        settings.IMPORT_WORKERS,
    )
    try:
        yield
    finally:
        await dispatcher.stop()
        app.state.import_dispatcher = None
        await engine.dispose()


def create_app() -> FastAPI:
    show_docs = settings.ENVIRONMENT != "production"
    app = FastAPI(
        title="Winx",
        description="Multi-tenant HR API: companies, users, employees and CSV employee imports",
        version=API_VERSION,
        docs_url="/api/docs" if show_docs else None,
        redoc_url="/api/redoc" if show_docs else None,
        lifespan=lifespan,
    )
    # Filled in by the lifespan; tests assign their own
    app.state.import_dispatcher = None
    app.state.limiter = limiter

    register_exception_handlers(app)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get(f"{API_PREFIX}/health", tags=["system"])
    async def health_check():
        return {"status": "healthy", "version": API_VERSION, "environment": settings.ENVIRONMENT}

    for router, name in ROUTERS:
        app.include_router(router, prefix=f"{API_PREFIX}/{name}", tags=[name])

    return app


app = create_app()
