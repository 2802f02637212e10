import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .db.dal import Database
from .db.migrate import apply_migrations
from .routers import conversion, health, ui
from .services.controller import ConversionController
from .services.rates.base import RateSource
from .services.rates.providers import make_rate_source
from .services.storage import (
    InMemoryKeyValueStore,
    KeyValueStore,
    SqliteKeyValueStore,
)

logger = logging.getLogger("fxconvert")


def _build_store(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "memory":
        return InMemoryKeyValueStore()
    # Ensure database schema (idempotent) so test-injected fresh DBs have tables
    try:
        apply_migrations(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        logger.exception("failed to apply migrations on startup")
        raise
    return SqliteKeyValueStore(Database(settings.db_path))  # type: ignore[arg-type]


def create_app(
    settings_override: Settings | None = None,
    *,
    rate_source: Optional[RateSource] = None,
    store: Optional[KeyValueStore] = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    rate_source / store: inject collaborators instead of building them from settings.
    """
    settings = settings_override or get_settings()
    if settings_override is not None:
        settings.init_post_load()
    init_logging(debug=settings.debug, service=settings.app_name)

    controller = ConversionController(
        rate_source or make_rate_source(settings.exchange_rate_provider, settings),
        store or _build_store(settings),
        default_base=settings.default_base_currency,
        result_key=settings.last_result_key,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await controller.initialize()
        try:
            yield
        finally:
            await controller.aclose()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.controller = controller

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.ConverterError, errors.converter_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.not_found_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(conversion.router)
    app.include_router(ui.router)

    return app


app = create_app()
