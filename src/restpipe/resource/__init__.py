"""
Resource module - route tables generated from model configuration.
"""

from __future__ import annotations

from .builder import (
    ITEM_OPERATIONS,
    OPERATION_METHODS,
    ResourceBuilder,
    Route,
    RouteTable,
    flatten_actions,
    resource,
)
from .login import login

__all__ = [
    "Route",
    "RouteTable",
    "ResourceBuilder",
    "resource",
    "login",
    "flatten_actions",
    "OPERATION_METHODS",
    "ITEM_OPERATIONS",
]
