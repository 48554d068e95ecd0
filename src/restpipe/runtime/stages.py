"""
Default stage actions: query, run, convert.

Every generated route gets one of each:
- on-query: set_query(default_query(...)) builds the QueryDescriptor
- on-run: run_query(persistence) executes it
- on-convert: convert_data(converter) shapes the response payload
"""

from __future__ import annotations

import inspect as pyinspect
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Optional, Union

from sqlalchemy import inspect

from ..core.errors import ConfigurationError, NotFoundError
from ..core.query_types import ROUTE_OPERATIONS, QueryDescriptor
from ..persistence.base import Persistence
from .context import ActionContext


class _Marker:
    """Named sentinel."""

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name

    def __bool__(self) -> bool:
        return False


# Returned by a converter transform to drop the field from the output
ABSENT = _Marker("ABSENT")

# Output of convert() when a single-record result is missing
NOT_FOUND = _Marker("NOT_FOUND")


QueryBuilder = Callable[[ActionContext], Union[QueryDescriptor, Awaitable[QueryDescriptor]]]
Converter = dict[str, Callable[[Any], Any]]


# =============================================================================
# Model helpers
# =============================================================================


def model_name(model: Any) -> str:
    """Get the model's name (class name)."""
    return getattr(model, "__name__", str(model))


def primary_key(model: Any) -> str:
    """
    Get the primary key attribute of a model.

    Uses the SQLAlchemy mapper when the model is mapped, else the
    `__primary_key__` attribute, else "id".
    """
    mapper = inspect(model, raiseerr=False) if isinstance(model, type) else None
    if mapper is not None and mapper.primary_key:
        return mapper.get_property_by_column(mapper.primary_key[0]).key
    return getattr(model, "__primary_key__", "id")


# =============================================================================
# Query stage
# =============================================================================


def build_query(
    model: Any,
    params: Mapping[str, Any],
    body: Optional[Mapping[str, Any]],
    operation: str,
    relations: list[str],
) -> QueryDescriptor:
    """
    Derive the query descriptor for a CRUD route.

    Args:
        model: Resource model
        params: Path parameters
        body: Parsed request body
        operation: Route kind (list, get, add, edit, destroy)
        relations: Relation names resolved when the route was built

    Returns:
        QueryDescriptor
    """
    if operation not in ROUTE_OPERATIONS:
        raise ConfigurationError(f"Unknown route operation: {operation}")

    kind = ROUTE_OPERATIONS[operation]

    conditions: dict[str, Any] = {}
    if kind in ("read", "update", "delete"):
        conditions = {primary_key(model): params.get("id")}

    data = None
    if kind in ("create", "update"):
        data = dict(body or {})

    return QueryDescriptor(
        operation=kind,
        conditions=conditions,
        data=data,
        relations=list(relations),
    )


def default_query(model: Any, operation: str, relations: list[str]) -> QueryBuilder:
    """Query builder for a generated CRUD route."""

    def query_builder(context: ActionContext) -> QueryDescriptor:
        return build_query(model, context.request.params, context.request.body, operation, relations)

    return query_builder


def set_query(builder: QueryBuilder):
    """On-query action storing the builder's descriptor on the context."""

    async def set_query_action(context: ActionContext) -> ActionContext:
        query = builder(context)
        if pyinspect.isawaitable(query):
            query = await query
        context.query = query
        return context

    return set_query_action


# =============================================================================
# Run stage
# =============================================================================


async def execute(persistence: Persistence, model: Any, query: QueryDescriptor) -> Any:
    """
    Execute a descriptor with exactly one persistence call.

    Raises:
        PersistenceError: from the persistence layer, unchanged
    """
    op = query.operation
    if op == "list":
        return await persistence.find_many(model, query.conditions, query.relations)
    if op == "read":
        return await persistence.find_one(model, query.conditions, query.relations)
    if op == "create":
        return await persistence.insert_one(model, query.data or {})
    if op == "update":
        return await persistence.update_one(model, query.conditions, query.data or {})
    if op == "delete":
        return await persistence.delete_one(model, query.conditions)
    raise ConfigurationError(f"Unsupported query operation: {op}")


def run_query(persistence: Persistence, model: Any):
    """On-run action executing the context's descriptor."""

    async def run_query_action(context: ActionContext) -> ActionContext:
        if context.query is None:
            raise ConfigurationError(
                f"No query descriptor for {model_name(model)}.{context.operation}: "
                "the route has no on-query action"
            )
        context.result = await execute(persistence, model, context.query)
        return context

    return run_query_action


# =============================================================================
# Convert stage
# =============================================================================


def convert_record(record: Any, converter: Converter) -> dict[str, Any]:
    """Apply a converter table to one record."""
    if hasattr(record, "model_dump"):
        record = record.model_dump()
    if not isinstance(record, Mapping):
        raise TypeError(f"Cannot convert record of type {type(record).__name__}")

    output = dict(record)
    for field_name, transform in converter.items():
        if field_name not in output:
            continue
        value = transform(output[field_name])
        if value is ABSENT:
            del output[field_name]
        else:
            output[field_name] = value
    return output


def convert(raw: Any, converter: Optional[Converter] = None) -> Any:
    """
    Map a raw run result through a converter table.

    Lists are converted record by record (order and count kept). A missing
    single record gives NOT_FOUND, never an empty dict.
    """
    converter = converter or {}
    if raw is None:
        return NOT_FOUND
    if isinstance(raw, list):
        return [convert_record(record, converter) for record in raw]
    return convert_record(raw, converter)


def convert_data(converter: Optional[Converter] = None):
    """
    On-convert action setting context.output.

    Raises NotFoundError when the run stage found nothing, so the error
    boundary can answer differently from an empty success.
    """

    async def convert_data_action(context: ActionContext) -> ActionContext:
        output = convert(context.result, converter)
        if output is NOT_FOUND:
            conditions = context.query.conditions if context.query else None
            raise NotFoundError(model_name(context.model), conditions)
        context.output = output
        return context

    return convert_data_action
