"""
Action registry - tags callables with the pipeline phase they run in.

Usage:
    from restpipe.runtime import before_query, tag, Phase

    auth_action = before_query([authenticate, is_admin])
    same_thing = tag(Phase.BEFORE_QUERY, [authenticate, is_admin])
"""

from __future__ import annotations

import enum
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence, Union

from ..core.errors import ConfigurationError
from .context import ActionContext


ActionResult = Union[ActionContext, None]
ActionFn = Callable[[ActionContext], Union[ActionResult, Awaitable[ActionResult]]]


class Phase(enum.Enum):
    """The nine points of a route where actions run."""
    BEFORE_QUERY = "before-query"
    ON_QUERY = "on-query"
    AFTER_QUERY = "after-query"
    BEFORE_RUN = "before-run"
    ON_RUN = "on-run"
    AFTER_RUN = "after-run"
    BEFORE_CONVERT = "before-convert"
    ON_CONVERT = "on-convert"
    AFTER_CONVERT = "after-convert"


# Declaration order is execution order
PHASE_ORDER: tuple[Phase, ...] = tuple(Phase)


@dataclass(frozen=True)
class Action:
    """A callable bound to a phase. Immutable once created."""
    phase: Phase
    fn: ActionFn

    @property
    def name(self) -> str:
        return getattr(self.fn, "__name__", repr(self.fn))


async def call_action(fn: ActionFn, context: ActionContext) -> ActionContext:
    """
    Call an action function and return the context to continue with.

    Returning None keeps the current context, returning a context replaces
    it. Raising aborts.
    """
    result = fn(context)
    if inspect.isawaitable(result):
        result = await result
    if result is None:
        return context
    if not isinstance(result, ActionContext):
        raise TypeError(
            f"Action {getattr(fn, '__name__', fn)!r} returned {type(result).__name__}, "
            "expected ActionContext or None"
        )
    return result


def _chain(fns: Sequence[ActionFn]) -> ActionFn:
    """Combine several callables into one that runs them in order."""

    async def chained(context: ActionContext) -> ActionContext:
        for fn in fns:
            context = await call_action(fn, context)
        return context

    chained.__name__ = "+".join(getattr(fn, "__name__", "action") for fn in fns)
    return chained


def _resolve_phase(phase: Any) -> Phase:
    if isinstance(phase, Phase):
        return phase
    if isinstance(phase, str):
        value = phase.strip().lower().replace("_", "-")
        try:
            return Phase(value)
        except ValueError:
            pass
    raise ConfigurationError(
        f"Unknown phase {phase!r}. Expected one of: {[p.value for p in PHASE_ORDER]}"
    )


def tag(phase: Phase | str, fn: ActionFn | Sequence[ActionFn]) -> Action:
    """
    Tag a callable (or a sequence of callables) with a phase.

    Raises:
        ConfigurationError: unknown phase, or fn is not callable
    """
    resolved = _resolve_phase(phase)

    if isinstance(fn, (list, tuple)):
        fns = list(fn)
        if not fns:
            raise ConfigurationError(f"Empty action list for phase '{resolved.value}'")
        for item in fns:
            if not callable(item):
                raise ConfigurationError(f"Action for phase '{resolved.value}' is not callable: {item!r}")
        fn = fns[0] if len(fns) == 1 else _chain(fns)
    elif not callable(fn):
        raise ConfigurationError(f"Action for phase '{resolved.value}' is not callable: {fn!r}")

    return Action(phase=resolved, fn=fn)


def _tagger(phase: Phase) -> Callable[[ActionFn | Sequence[ActionFn]], Action]:
    def tagger(fn: ActionFn | Sequence[ActionFn]) -> Action:
        return tag(phase, fn)

    tagger.__name__ = phase.name.lower()
    tagger.__doc__ = f"Tag fn with the {phase.value} phase."
    return tagger


before_query = _tagger(Phase.BEFORE_QUERY)
on_query = _tagger(Phase.ON_QUERY)
after_query = _tagger(Phase.AFTER_QUERY)
before_run = _tagger(Phase.BEFORE_RUN)
on_run = _tagger(Phase.ON_RUN)
after_run = _tagger(Phase.AFTER_RUN)
before_convert = _tagger(Phase.BEFORE_CONVERT)
on_convert = _tagger(Phase.ON_CONVERT)
after_convert = _tagger(Phase.AFTER_CONVERT)
