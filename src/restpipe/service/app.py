"""
Service app factory for restpipe services.

Creates a pre-configured FastAPI application with:
- The composed resource routes
- Error boundary (status codes for pipeline failures)
- CORS middleware
- Health check endpoint
- Lifecycle hooks for database
- Logging filter to suppress noisy healthcheck logs
"""

from __future__ import annotations


import inspect
import logging
from contextlib import asynccontextmanager
from typing import Callable, Iterable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..api.errors import install_error_handlers
from ..api.router import RouteSource, compose
from ..settings import get_settings
from .database import close_db, init_db

logger = logging.getLogger(__name__)


class HealthcheckLogFilter(logging.Filter):
    """Filter out noisy healthcheck logs."""

    FILTERED_PATHS = ("/health",)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        for path in self.FILTERED_PATHS:
            if f'"{path}' in message or f" {path} " in message:
                return False
        return True


def _setup_logging(level: str):
    """Set the package log level and quiet uvicorn's access log for healthchecks."""
    logging.getLogger("restpipe").setLevel(level.upper())
    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.addFilter(HealthcheckLogFilter())


async def _call_hook(hook: Optional[Callable]):
    if hook is None:
        return
    result = hook()
    if inspect.isawaitable(result):
        await result


def create_app(
    routes: Iterable[RouteSource],
    *,
    service_name: Optional[str] = None,
    on_startup: Callable | None = None,
    on_shutdown: Callable | None = None,
    init_database: bool = True,
    metadata=None,
    prefix: str = "",
) -> FastAPI:
    """
    Create a FastAPI app serving the given route tables.

    Args:
        routes: Route tables, composed in order (first registration wins)
        service_name: Name of the service (used in title and health check)
        on_startup: Additional startup hook
        on_shutdown: Additional shutdown hook
        init_database: Whether to create tables on startup and dispose the engine on shutdown
        metadata: SQLAlchemy metadata to create (defaults to restpipe's Base)
        prefix: URL prefix for all resource routes

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    service_name = service_name or settings.SERVICE_NAME
    route_set = compose(routes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        _setup_logging(settings.LOG_LEVEL)
        if init_database:
            await init_db(metadata)
        await _call_hook(on_startup)
        logger.info(f"{service_name} started with {len(route_set)} routes")

        yield

        # Shutdown
        await _call_hook(on_shutdown)
        if init_database:
            await close_db()

    app = FastAPI(
        title=f"{service_name.replace('_', ' ').title()} Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": service_name}

    app.include_router(route_set.to_router(prefix))
    app.state.routes = route_set
    return app
