"""
Service module - utilities for running restpipe routes as a service.

Provides:
- create_app: Factory for creating the FastAPI app
- Database utilities (Base, get_session_maker, init_db)
"""

from __future__ import annotations

from .app import HealthcheckLogFilter, create_app
from .database import Base, close_db, get_engine, get_session_maker, init_db

__all__ = [
    # App factory
    "create_app",
    "HealthcheckLogFilter",
    # Database
    "Base",
    "get_engine",
    "get_session_maker",
    "init_db",
    "close_db",
]
