"""RouteMap API — FastAPI application factory.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map failures outside a callstack to {"Error": ...}
    - app.state.transaction_provider is set iff a database_url is configured
    - app.state.api_keys holds the API key registry seeded from settings

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_app() factory: tests build isolated apps with their own settings
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routemap.api.auth import ApiKeyRegistry
from routemap.api.error_handlers import register_error_handlers
from routemap.api.routes import health, users
from routemap.config import Settings, get_settings
from routemap.infrastructure.database import init_db
from routemap.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    if settings.database_url and app.state.transaction_provider is None:
        app.state.transaction_provider = init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    logger.info("RouteMap API started")
    yield
    if app.state.transaction_provider is not None:
        await app.state.transaction_provider.dispose()
    logger.info("RouteMap API shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="RouteMap API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.transaction_provider = None
    app.state.api_keys = ApiKeyRegistry(settings.api_keys)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(users.router)

    register_error_handlers(app)
    return app
