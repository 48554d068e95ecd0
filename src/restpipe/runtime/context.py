"""
Request context for pipeline processing.

One ActionContext is created per request, threaded through every action of
the route and dropped when the handler returns.
"""

from __future__ import annotations


from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.query_types import QueryDescriptor


@dataclass
class Principal:
    """
    Represents the authenticated account making the request.

    Used by authorization hooks:
    - type: account type, e.g. "admin" or "user"
    - owner: id of the entity the account belongs to (e.g. the user id)
    """
    id: Any = None
    type: Optional[str] = None
    owner: Any = None
    active: bool = True
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class RequestData:
    """Transport-independent view of an incoming request. body is already parsed."""
    method: str
    path: str
    params: dict[str, Any] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default


@dataclass
class ActionContext:
    """
    Context passed through the action pipeline.

    Contains:
    - request: the incoming request data
    - model: the resource model the route serves
    - operation: route kind (list, get, add, edit, destroy, login)
    - principal: authenticated identity, set by the authentication hook
    - query: the query descriptor, set by the query stage
    - result: raw result of the run stage
    - output: converted payload, set by the convert stage
    - error: the failure that aborted the pipeline, if any
    - state: scratch space for hooks
    """
    request: RequestData
    model: Any = None
    operation: Optional[str] = None
    principal: Optional[Principal] = None
    result: Any = None
    output: Any = None
    error: Optional[BaseException] = None
    state: dict[str, Any] = field(default_factory=dict)
    _query: Optional[QueryDescriptor] = field(default=None, init=False, repr=False)

    @property
    def query(self) -> Optional[QueryDescriptor]:
        return self._query

    @query.setter
    def query(self, descriptor: QueryDescriptor) -> None:
        if self._query is not None and descriptor.operation != self._query.operation:
            raise ValueError(
                f"Query operation is fixed to '{self._query.operation}', "
                f"cannot replace it with '{descriptor.operation}'"
            )
        self._query = descriptor


def get_data(context: ActionContext) -> list[Any]:
    """
    Raw run result as a list.

    Lets hooks inspect records without caring whether the route returns one
    record or many. An absent result gives an empty list.
    """
    if context.result is None:
        return []
    if isinstance(context.result, list):
        return context.result
    return [context.result]
