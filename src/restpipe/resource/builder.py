"""
Resource route builder - one pipeline per CRUD operation.

Usage:
    from restpipe import resource, before_query

    posts = resource(Post, persistence, {
        "relations": relations,
        "defaults": {"converter": {"secret": lambda _: ABSENT}},
        "add": {"actions": [before_query([auth, set_writer])]},
    })

Generated routes for Post:
- GET    /posts        list
- GET    /posts/{id}   get
- POST   /posts        add
- PUT    /posts/{id}   edit
- DELETE /posts/{id}   destroy
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..core.defs import OPERATION_NAMES, RelationDef, ResourceConfig, RouteConfig
from ..core.errors import ConfigurationError
from ..core.utils import normalize_path, resource_path
from ..persistence.base import Persistence
from ..runtime.actions import Action, on_convert, on_query, on_run
from ..runtime.context import ActionContext, RequestData
from ..runtime.pipeline import PipelineExecutor
from ..runtime.stages import convert_data, default_query, model_name, run_query, set_query

logger = logging.getLogger(__name__)


OPERATION_METHODS: dict[str, str] = {
    "list": "GET",
    "get": "GET",
    "add": "POST",
    "edit": "PUT",
    "destroy": "DELETE",
}

# Operations addressing a single record by id
ITEM_OPERATIONS = frozenset({"get", "edit", "destroy"})


@dataclass(frozen=True)
class Route:
    """
    One generated endpoint.

    handle() creates a fresh context per call, so a Route can serve any
    number of concurrent requests.
    """
    method: str
    path: str
    operation: str
    model: Any
    actions: tuple[Action, ...]
    name: str = ""
    executor: PipelineExecutor = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "path", normalize_path(self.path))
        object.__setattr__(self, "executor", PipelineExecutor(self.actions))
        if not self.name:
            object.__setattr__(self, "name", f"{model_name(self.model).lower()}_{self.operation}")

    @property
    def key(self) -> tuple[str, str]:
        return (self.method, self.path)

    async def handle(self, request: RequestData) -> Any:
        """Run the pipeline and return the converted output."""
        context = ActionContext(request=request, model=self.model, operation=self.operation)
        context = await self.executor.run(context)
        return context.output


class RouteTable(Mapping):
    """
    Immutable ordered mapping (method, path) -> Route.

    Within one table a path may only be registered once.
    """

    def __init__(self, routes: Iterable[Route] = ()):
        table: dict[tuple[str, str], Route] = {}
        for route in routes:
            if route.key in table:
                raise ConfigurationError(f"Duplicate route in table: {route.method} {route.path}")
            table[route.key] = route
        self._routes = table

    def __getitem__(self, key: tuple[str, str]) -> Route:
        return self._routes[key]

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    @property
    def routes(self) -> list[Route]:
        return list(self._routes.values())

    def by_operation(self, operation: str) -> Route:
        for route in self._routes.values():
            if route.operation == operation:
                return route
        raise KeyError(operation)

    def __repr__(self) -> str:
        entries = ", ".join(f"{method} {path}" for method, path in self._routes)
        return f"RouteTable([{entries}])"


def flatten_actions(actions: Iterable[Any]) -> list[Action]:
    """Accept Actions or (nested) lists of Actions, as returned by the taggers."""
    result: list[Action] = []
    for item in actions:
        if isinstance(item, Action):
            result.append(item)
        elif isinstance(item, (list, tuple)):
            result.extend(flatten_actions(item))
        else:
            raise ConfigurationError(
                f"Route actions must be tagged with a phase (e.g. before_query(fn)), got {item!r}"
            )
    return result


class ResourceBuilder:
    """
    Builds the route table of one model.

    Option precedence for uri, converter, actions and relations:
    operation level, then `defaults`, then built-in behaviour.
    """

    def __init__(self, model: Any, persistence: Persistence, config: ResourceConfig | dict | None = None):
        self.model = model
        self.persistence = persistence
        self.config = ResourceConfig.from_dict(config)
        self.name = model_name(model)
        self.declared = [r for r in self.config.relations if r.source == self.name]

    def build(self) -> RouteTable:
        """Build one route per CRUD operation."""
        table = RouteTable(self.build_route(operation) for operation in OPERATION_NAMES)
        logger.debug(f"Built routes for {self.name}: {table!r}")
        return table

    def build_route(self, operation: str) -> Route:
        route_config = self.config.for_operation(operation)
        defaults = self.config.defaults

        relations = self._resolve_relations(route_config, defaults)
        converter = self._pick(route_config.converter, defaults.converter, {})
        actions = flatten_actions(self._pick(route_config.actions, defaults.actions, []))

        return Route(
            method=OPERATION_METHODS[operation],
            path=self._resolve_uri(operation, route_config, defaults),
            operation=operation,
            model=self.model,
            actions=(
                on_query(set_query(default_query(self.model, operation, relations))),
                on_run(run_query(self.persistence, self.model)),
                on_convert(convert_data(converter)),
                *actions,
            ),
        )

    @staticmethod
    def _pick(*values: Any) -> Any:
        """First value that is set."""
        for value in values:
            if value is not None:
                return value
        return None

    def _resolve_uri(self, operation: str, route_config: RouteConfig, defaults: RouteConfig) -> str:
        if route_config.uri:
            return normalize_path(route_config.uri)
        base = normalize_path(defaults.uri) if defaults.uri else resource_path(self.name)
        if operation in ITEM_OPERATIONS:
            return base.rstrip("/") + "/{id}"
        return base

    def _resolve_relations(self, route_config: RouteConfig, defaults: RouteConfig) -> list[str]:
        """Relation names to expand, resolved once at build time."""
        selected: Optional[list] = self._pick(route_config.relations, defaults.relations)
        if selected is None:
            return [relation.name for relation in self.declared]

        declared_names = {relation.name for relation in self.declared}
        names: list[str] = []
        for item in selected:
            if isinstance(item, RelationDef):
                # Relations of other models are skipped, like the declared set
                if item.source == self.name:
                    names.append(item.name)
            elif isinstance(item, str):
                if item not in declared_names:
                    raise ConfigurationError(f"Relation '{item}' is not declared for {self.name}")
                names.append(item)
            else:
                raise ConfigurationError(f"Invalid relation reference: {item!r}")
        return names


def resource(model: Any, persistence: Persistence, config: ResourceConfig | dict | None = None) -> RouteTable:
    """Build the CRUD route table for a model."""
    return ResourceBuilder(model, persistence, config).build()
