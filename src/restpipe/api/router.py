"""
Router composer - merges route tables into one mountable handler set.

Usage:
    routes = compose([
        login(secret, Account, persistence, ["email", "password"]),
        resource(Post, persistence, post_config),
        resource(Comment, persistence, comment_config),
    ])
    app.include_router(routes.to_router())

On (method, path) collisions the first registration wins. Collisions are
logged, not rejected.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable, Optional, Union

from fastapi import APIRouter, HTTPException, Request

from ..core.utils import compile_path
from ..resource.builder import Route, RouteTable
from ..runtime.context import RequestData

logger = logging.getLogger(__name__)


BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class RouteSet:
    """Ordered set of routes with path matching."""

    def __init__(self, routes: Iterable[Route] = ()):
        self.routes: list[Route] = list(routes)
        self._patterns: list[tuple[Route, re.Pattern]] = [
            (route, compile_path(route.path)) for route in self.routes
        ]

    def __len__(self) -> int:
        return len(self.routes)

    def __iter__(self):
        return iter(self.routes)

    def match(self, method: str, path: str) -> Optional[tuple[Route, dict[str, str]]]:
        """Find the first route for method and path, with its path params."""
        method = method.upper()
        for route, pattern in self._patterns:
            if route.method != method:
                continue
            matched = pattern.match(path)
            if matched:
                return route, matched.groupdict()
        return None

    async def dispatch(
        self,
        method: str,
        path: str,
        body: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        Run the matching route without a transport.

        Raises:
            LookupError: no route matches
        """
        found = self.match(method, path)
        if found is None:
            raise LookupError(f"No route for {method.upper()} {path}")
        route, params = found
        request = RequestData(
            method=method.upper(),
            path=path,
            params=params,
            body=dict(body or {}),
            headers=dict(headers or {}),
        )
        return await route.handle(request)

    def to_router(self, prefix: str = "") -> APIRouter:
        """Create a FastAPI router with one endpoint per route."""
        router = APIRouter(prefix=prefix)
        for route in self.routes:
            router.add_api_route(
                route.path,
                endpoint=_make_endpoint(route),
                methods=[route.method],
                name=route.name,
            )
        return router


async def _parse_body(request: Request) -> dict[str, Any]:
    """Routes assume the body is already a parsed mapping."""
    if request.method not in BODY_METHODS:
        return {}
    # request.json() fails on an empty body, which routes treat as {}
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON body: {e.msg}")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="JSON body must be an object")
    return body


def _make_endpoint(route: Route):
    async def endpoint(request: Request):
        data = RequestData(
            method=request.method,
            path=request.url.path,
            params=dict(request.path_params),
            body=await _parse_body(request),
            headers=dict(request.headers),
        )
        return await route.handle(data)

    endpoint.__name__ = route.name
    return endpoint


RouteSource = Union[Route, RouteTable, RouteSet, Iterable[Any]]


def _iter_routes(source: RouteSource) -> Iterable[Route]:
    if isinstance(source, Route):
        yield source
    elif isinstance(source, RouteTable):
        yield from source.routes
    elif isinstance(source, RouteSet):
        yield from source.routes
    else:
        for item in source:
            yield from _iter_routes(item)


def compose(tables: Iterable[RouteSource]) -> RouteSet:
    """
    Merge route tables in order. First registration of (method, path) wins.
    """
    seen: dict[tuple[str, str], Route] = {}
    for route in _iter_routes(tables):
        if route.key in seen:
            logger.warning(
                f"Route {route.method} {route.path} ({route.name}) shadowed by "
                f"earlier registration ({seen[route.key].name})"
            )
            continue
        seen[route.key] = route
    return RouteSet(seen.values())


def router(tables: Iterable[RouteSource], prefix: str = "") -> APIRouter:
    """Compose tables and return a FastAPI router."""
    return compose(tables).to_router(prefix)
