"""
API module - route composition and the error boundary.
"""

from __future__ import annotations

from .errors import SafeErrorMiddleware, error_payload, install_error_handlers
from .router import RouteSet, compose, router

__all__ = [
    "RouteSet",
    "compose",
    "router",
    "install_error_handlers",
    "error_payload",
    "SafeErrorMiddleware",
]
