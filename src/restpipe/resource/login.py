"""
Login route - exchanges credentials for an access token.

Usage:
    login(secret, Account, persistence, ["email", "password"], {
        "uri": "/auth",
        "actions": [before_convert(require_active())],
    })

POST /auth {"email": ..., "password": ...} -> {"token": "..."}
"""

from __future__ import annotations

from typing import Any, Sequence

from ..core.defs import RouteConfig
from ..core.errors import AuthenticationError, ConfigurationError
from ..core.query_types import QueryDescriptor
from ..iam.tokens import build_access_token
from ..persistence.base import Persistence
from ..runtime.actions import on_convert, on_query, on_run
from ..runtime.context import ActionContext
from ..runtime.stages import primary_key, run_query, set_query
from .builder import Route, RouteTable, flatten_actions


def login(
    secret: str,
    model: Any,
    persistence: Persistence,
    fields: Sequence[str],
    config: RouteConfig | dict | None = None,
) -> RouteTable:
    """
    Build the login route table.

    The account is looked up with every credential field as an equality
    condition. Only `uri` and `actions` are accepted as options.
    """
    if not fields:
        raise ConfigurationError("login needs at least one credential field")

    route_config = RouteConfig.from_dict(config)
    if route_config.converter is not None or route_config.relations is not None:
        raise ConfigurationError("login only accepts the 'uri' and 'actions' options")

    pk = primary_key(model)
    credential_fields = list(fields)

    def credentials_query(context: ActionContext) -> QueryDescriptor:
        body = context.request.body
        missing = [name for name in credential_fields if body.get(name) in (None, "")]
        if missing:
            raise AuthenticationError(f"Missing credentials: {', '.join(missing)}")
        return QueryDescriptor(
            operation="read",
            conditions={name: body[name] for name in credential_fields},
        )

    def issue_token(context: ActionContext) -> ActionContext:
        if context.result is None:
            raise AuthenticationError("Invalid credentials.")
        context.output = {"token": build_access_token(context.result[pk], secret)}
        return context

    route = Route(
        method="POST",
        path=route_config.uri or "/login",
        operation="login",
        model=model,
        actions=(
            on_query(set_query(credentials_query)),
            on_run(run_query(persistence, model)),
            on_convert(issue_token),
            *flatten_actions(route_config.actions or []),
        ),
        name="login",
    )
    return RouteTable([route])
