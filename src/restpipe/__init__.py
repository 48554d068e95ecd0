"""
restpipe - CRUD endpoints generated from declarative configuration.

Every generated route runs the same three-stage pipeline:
- query: build a QueryDescriptor from the request
- run: execute it with one persistence call
- convert: shape the raw records through a converter table

Custom logic is added as actions tagged with one of nine phases
(before/on/after x query/run/convert).

Usage:
    from restpipe import ABSENT, before_query, create_app, resource

    app = create_app([
        resource(Account, persistence, {
            "defaults": {
                "converter": {"password": lambda _: ABSENT},
                "actions": [before_query([auth, is_admin])],
            },
        }),
    ])
"""

from __future__ import annotations

from .api import RouteSet, compose, install_error_handlers, router
from .core import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    InactiveAccountError,
    NotFoundError,
    PersistenceError,
    QueryDescriptor,
    RelationDef,
    ResourceConfig,
    RestpipeError,
    RouteConfig,
    StageError,
)
from .iam import (
    authenticate,
    build_access_token,
    decode_access_token,
    require_active,
    require_owner_or_type,
    require_self_or_type,
    require_type,
    set_field_from_principal,
)
from .persistence import Persistence, SQLAlchemyPersistence
from .resource import ResourceBuilder, Route, RouteTable, login, resource
from .runtime import (
    ABSENT,
    NOT_FOUND,
    PHASE_ORDER,
    Action,
    ActionContext,
    Phase,
    PipelineExecutor,
    Principal,
    RequestData,
    after_convert,
    after_query,
    after_run,
    before_convert,
    before_query,
    before_run,
    build_query,
    convert,
    convert_data,
    execute,
    get_data,
    on_convert,
    on_query,
    on_run,
    run,
    run_query,
    set_query,
    tag,
)
from .service import Base, create_app, get_session_maker
from .settings import Settings, get_settings

__version__ = "0.1.0"

__all__ = [
    # Definitions
    "RelationDef",
    "RouteConfig",
    "ResourceConfig",
    "QueryDescriptor",
    # Errors
    "RestpipeError",
    "ConfigurationError",
    "StageError",
    "AuthenticationError",
    "AuthorizationError",
    "InactiveAccountError",
    "PersistenceError",
    "NotFoundError",
    # Runtime
    "Phase",
    "PHASE_ORDER",
    "Action",
    "tag",
    "before_query",
    "on_query",
    "after_query",
    "before_run",
    "on_run",
    "after_run",
    "before_convert",
    "on_convert",
    "after_convert",
    "ActionContext",
    "Principal",
    "RequestData",
    "get_data",
    "PipelineExecutor",
    "run",
    "ABSENT",
    "NOT_FOUND",
    "build_query",
    "set_query",
    "execute",
    "run_query",
    "convert",
    "convert_data",
    # Persistence
    "Persistence",
    "SQLAlchemyPersistence",
    # Resources
    "Route",
    "RouteTable",
    "ResourceBuilder",
    "resource",
    "login",
    # API
    "RouteSet",
    "compose",
    "router",
    "install_error_handlers",
    # IAM
    "authenticate",
    "require_type",
    "require_self_or_type",
    "require_owner_or_type",
    "set_field_from_principal",
    "require_active",
    "build_access_token",
    "decode_access_token",
    # Service
    "create_app",
    "Base",
    "get_session_maker",
    # Settings
    "Settings",
    "get_settings",
]
