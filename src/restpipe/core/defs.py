"""
Core dataclass definitions for restpipe.

These define relations between models and the per-route configuration
consumed by the resource route builder.
"""

from __future__ import annotations


from dataclasses import dataclass, field, fields
from typing import Any, Callable, Literal, Optional

from .errors import ConfigurationError


@dataclass(frozen=True)
class RelationDef:
    """
    Declared relation between two models.

    Example: a post has one writer
        RelationDef(
            name="writer",
            source="Post",
            target="User",
            foreign_key="writer_id",
            cardinality="one",
        )

    source and target are model names. foreign_key lives on the source for
    "one" relations and on the target for "many" relations; local_key is the
    key it points to.
    """
    name: str
    source: str
    target: str
    foreign_key: Optional[str] = None
    local_key: str = "id"
    cardinality: Literal["one", "many"] = "one"


@dataclass
class RouteConfig:
    """
    Options accepted by a single generated route (or by `defaults`).

    None means "not set here", so the next level of precedence applies.
    relations may name declared relations or pass RelationDef objects.
    """
    uri: Optional[str] = None
    converter: Optional[dict[str, Callable[[Any], Any]]] = None
    actions: Optional[list] = None
    relations: Optional[list[str | RelationDef]] = None

    @classmethod
    def from_dict(cls, data: "RouteConfig | dict | None") -> "RouteConfig":
        """Create config from a dictionary, rejecting unknown options."""
        if data is None:
            return cls()
        if isinstance(data, RouteConfig):
            return data
        if not isinstance(data, dict):
            raise ConfigurationError(f"Route config must be a dict, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown route options: {sorted(unknown)}")

        actions = data.get("actions")
        if actions is not None and not isinstance(actions, (list, tuple)):
            actions = [actions]

        return cls(
            uri=data.get("uri"),
            converter=data.get("converter"),
            actions=list(actions) if actions is not None else None,
            relations=data.get("relations"),
        )


OPERATION_NAMES = ("list", "get", "add", "edit", "destroy")


@dataclass
class ResourceConfig:
    """
    Configuration for all routes generated for one model.

    Example:
        ResourceConfig(
            relations=blog_relations,
            defaults=RouteConfig(converter={"password": lambda _: ABSENT}),
            destroy=RouteConfig(actions=[before_query([auth, is_admin])]),
        )

    relations is the full set of declared relations; each route only expands
    the ones whose source is the resource model.
    """
    relations: list[RelationDef] = field(default_factory=list)
    defaults: RouteConfig = field(default_factory=RouteConfig)
    list: RouteConfig = field(default_factory=RouteConfig)
    get: RouteConfig = field(default_factory=RouteConfig)
    add: RouteConfig = field(default_factory=RouteConfig)
    edit: RouteConfig = field(default_factory=RouteConfig)
    destroy: RouteConfig = field(default_factory=RouteConfig)

    @classmethod
    def from_dict(cls, data: "ResourceConfig | dict | None") -> "ResourceConfig":
        """Create config from a dictionary."""
        if data is None:
            return cls()
        if isinstance(data, ResourceConfig):
            return data
        if not isinstance(data, dict):
            raise ConfigurationError(f"Resource config must be a dict, got {type(data).__name__}")

        unknown = set(data) - {"relations", "defaults", *OPERATION_NAMES}
        if unknown:
            raise ConfigurationError(f"Unknown resource options: {sorted(unknown)}")

        relations = data.get("relations") or []
        for relation in relations:
            if not isinstance(relation, RelationDef):
                raise ConfigurationError(f"Relations must be RelationDef instances, got {relation!r}")

        return cls(
            relations=list(relations),
            defaults=RouteConfig.from_dict(data.get("defaults")),
            **{name: RouteConfig.from_dict(data.get(name)) for name in OPERATION_NAMES},
        )

    def for_operation(self, name: str) -> RouteConfig:
        """Get the per-operation config by route kind name."""
        if name not in OPERATION_NAMES:
            raise ConfigurationError(f"Unknown operation: {name}")
        return getattr(self, name)

