"""
Error boundary - maps pipeline failures to HTTP responses.

The pipeline never sets status codes. Failures propagate out of the route
handler and are rendered here:

    {"error": {"name": "AuthorizationError", "message": "Access denied"}}
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from ..core.errors import ConfigurationError, StageError

logger = logging.getLogger(__name__)


def error_payload(name: str, message: str) -> dict:
    return {"error": {"name": name, "message": message}}


async def stage_error_handler(request: Request, exc: StageError) -> JSONResponse:
    """Render an aborted pipeline."""
    if exc.status_code >= 500:
        # Server-side detail (e.g. SQL text) stays in the log
        logger.error(f"{exc.name} on {request.method} {request.url.path}: {exc.message}", exc_info=exc)
        message = "Internal Server Error"
    else:
        logger.info(f"{exc.name} on {request.method} {request.url.path}: {exc.message}")
        message = exc.message
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc.name, message))


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error(f"Misconfigured route {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=error_payload("ConfigurationError", "Internal Server Error"))


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Never return stack traces to clients
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled error on {request.method} {request.url.path}: {e!r}", exc_info=True)
            return JSONResponse(status_code=500, content=error_payload("InternalError", "Internal Server Error"))


def install_error_handlers(app: FastAPI) -> FastAPI:
    """Install the error boundary on an app."""
    app.add_exception_handler(StageError, stage_error_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_middleware(SafeErrorMiddleware)
    return app
