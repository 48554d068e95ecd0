"""
Reusable hook functions for authentication and authorization.

Business rules are composed from these in the application:

    auth = authenticate(secret, Account, persistence)
    is_admin = require_type("admin")

    resource(Post, persistence, {
        "edit": {"actions": [before_query([
            auth,
            require_owner_or_type(persistence, Post, "writer_id"),
            set_field_from_principal("writer_id"),
        ])]},
    })

Every hook either returns (continue) or raises (abort). There is no path
that does both.
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.errors import AuthenticationError, AuthorizationError, InactiveAccountError
from ..persistence.base import Persistence
from ..runtime.context import ActionContext, Principal, get_data
from ..runtime.stages import model_name, primary_key
from .tokens import decode_access_token, extract_bearer_token

logger = logging.getLogger(__name__)


def _same_id(left: Any, right: Any) -> bool:
    """Compare identifiers that may arrive as str (path, token) or int (database)."""
    if left is None or right is None:
        return False
    return str(left) == str(right)


def _require_principal(context: ActionContext) -> Principal:
    if context.principal is None:
        raise AuthenticationError()
    return context.principal


def authenticate(secret: str, model: Any, persistence: Persistence):
    """
    Build the authentication hook.

    Reads the Bearer token, loads the account it names and attaches a
    Principal to the context. Use it in the before-query phase.
    """
    pk = primary_key(model)

    async def authenticate_account(context: ActionContext) -> ActionContext:
        token = extract_bearer_token(context.request.header("Authorization"))
        payload = decode_access_token(token, secret)

        account = await persistence.find_one(model, {pk: payload["sub"]}, [])
        if account is None:
            logger.info(f"Token for unknown {model_name(model)} {payload['sub']}")
            raise AuthenticationError("Account not found.")

        context.principal = Principal(
            id=account.get(pk),
            type=account.get("type"),
            owner=account.get("owner"),
            active=bool(account.get("active", True)),
            extra=account,
        )
        return context

    return authenticate_account


def require_type(*types: str):
    """Allow only principals whose type is one of `types`."""

    def require_account_type(context: ActionContext) -> None:
        principal = _require_principal(context)
        if principal.type not in types:
            raise AuthorizationError()

    return require_account_type


def require_self_or_type(*types: str, attr: str = "owner", param: str = "id"):
    """Allow principals of `types`, or the principal whose `attr` equals the path param."""

    def require_self(context: ActionContext) -> None:
        principal = _require_principal(context)
        if principal.type in types:
            return
        if _same_id(getattr(principal, attr), context.request.params.get(param)):
            return
        raise AuthorizationError()

    return require_self


def require_owner_or_type(
    persistence: Persistence,
    model: Any,
    owner_field: str,
    *,
    attr: str = "owner",
    types: tuple[str, ...] = ("admin",),
    param: str = "id",
):
    """
    Allow principals of `types`, or the owner of the addressed record.

    The record is looked up by primary key from the path param; its
    `owner_field` must equal the principal's `attr`.
    """
    pk = primary_key(model)

    async def require_owner(context: ActionContext) -> None:
        principal = _require_principal(context)
        if principal.type in types:
            return

        record = await persistence.find_one(model, {pk: context.request.params.get(param)}, [])
        if record is not None and _same_id(record.get(owner_field), getattr(principal, attr)):
            return
        raise AuthorizationError(f"Only the owner can modify this {model_name(model)}")

    return require_owner


def set_field_from_principal(field_name: str, attr: str = "owner"):
    """Copy a principal attribute into the request body (e.g. the writer of a post)."""

    def set_field(context: ActionContext) -> None:
        principal = _require_principal(context)
        context.request.body[field_name] = getattr(principal, attr)

    set_field.__name__ = f"set_{field_name}"
    return set_field


def require_active(field_name: str = "active"):
    """Reject when the first run result is a deactivated account. Use before-convert."""

    def require_active_account(context: ActionContext) -> None:
        records = get_data(context)
        if records and not records[0].get(field_name, True):
            raise InactiveAccountError()

    return require_active_account
