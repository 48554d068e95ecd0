"""
Runtime module - the per-route action pipeline.
"""

from __future__ import annotations

from .actions import (
    PHASE_ORDER,
    Action,
    Phase,
    after_convert,
    after_query,
    after_run,
    before_convert,
    before_query,
    before_run,
    on_convert,
    on_query,
    on_run,
    tag,
)
from .context import ActionContext, Principal, RequestData, get_data
from .pipeline import PipelineExecutor, run
from .stages import (
    ABSENT,
    NOT_FOUND,
    build_query,
    convert,
    convert_data,
    default_query,
    execute,
    model_name,
    primary_key,
    run_query,
    set_query,
)

__all__ = [
    # Context
    "Principal",
    "RequestData",
    "ActionContext",
    "get_data",
    # Actions
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
    # Executor
    "PipelineExecutor",
    "run",
    # Stages
    "ABSENT",
    "NOT_FOUND",
    "build_query",
    "default_query",
    "set_query",
    "execute",
    "run_query",
    "convert",
    "convert_data",
    "model_name",
    "primary_key",
]
