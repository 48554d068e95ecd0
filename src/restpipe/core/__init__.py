"""
Core module - definitions, errors, and query descriptors.
"""

from __future__ import annotations

from .defs import (
    OPERATION_NAMES,
    RelationDef,
    ResourceConfig,
    RouteConfig,
)
from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    InactiveAccountError,
    NotFoundError,
    PersistenceError,
    RestpipeError,
    StageError,
)
from .query_types import ROUTE_OPERATIONS, Operation, QueryDescriptor
from .utils import (
    compile_path,
    normalize_path,
    pluralize,
    resource_path,
    to_snake_case,
)

__all__ = [
    # Definitions
    "RelationDef",
    "RouteConfig",
    "ResourceConfig",
    "OPERATION_NAMES",
    # Errors
    "RestpipeError",
    "ConfigurationError",
    "StageError",
    "AuthenticationError",
    "AuthorizationError",
    "InactiveAccountError",
    "PersistenceError",
    "NotFoundError",
    # Query types
    "Operation",
    "QueryDescriptor",
    "ROUTE_OPERATIONS",
    # Utils
    "to_snake_case",
    "pluralize",
    "resource_path",
    "normalize_path",
    "compile_path",
]
