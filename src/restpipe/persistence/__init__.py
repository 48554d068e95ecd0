"""
Persistence module - data store collaborators for the run stage.
"""

from __future__ import annotations

from .base import Persistence, Record
from .sql import SQLAlchemyPersistence

__all__ = [
    "Persistence",
    "Record",
    "SQLAlchemyPersistence",
]
