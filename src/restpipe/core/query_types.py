"""
Pydantic models for query descriptors.

A descriptor is built once per request by the query stage and consumed by
the run stage.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


Operation = Literal["create", "read", "update", "delete", "list"]

# Route kind -> descriptor operation
ROUTE_OPERATIONS: dict[str, str] = {
    "list": "list",
    "get": "read",
    "add": "create",
    "edit": "update",
    "destroy": "delete",
}


class QueryDescriptor(BaseModel):
    """
    Structured description of one persistence call.

    Example:
        QueryDescriptor(
            operation="update",
            conditions={"id": 12},
            data={"title": "hi"},
            relations=["writer"],
        )

    operation is frozen: later actions may adjust conditions, data or
    relations but never turn an update into something else.
    """
    operation: Operation = Field(frozen=True)
    conditions: dict[str, Any] = Field(default_factory=dict)
    data: Optional[dict[str, Any]] = None
    relations: list[str] = Field(default_factory=list)
