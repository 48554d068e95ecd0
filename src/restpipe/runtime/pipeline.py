"""
Pipeline executor - runs tagged actions in phase order.

Handles:
- Partitioning actions into one bucket per phase (insertion order kept)
- Running buckets in PHASE_ORDER, one action at a time
- Aborting on the first failure
"""

from __future__ import annotations

import logging
from typing import Iterable

from .actions import PHASE_ORDER, Action, Phase, call_action
from .context import ActionContext

logger = logging.getLogger(__name__)


class PipelineExecutor:
    """
    Executes a route's actions against a request context.

    Usage:
        executor = PipelineExecutor(actions)
        context = await executor.run(context)

    The bucket layout is computed once, so one executor serves every
    request of a route. Contexts are never stored on the executor.
    """

    def __init__(self, actions: Iterable[Action]):
        """
        Initialize executor.

        Args:
            actions: Tagged actions in insertion order
        """
        self.buckets = self._partition(actions)

    @staticmethod
    def _partition(actions: Iterable[Action]) -> tuple[tuple[Action, ...], ...]:
        """Split actions into one tuple per phase, in PHASE_ORDER."""
        grouped: dict[Phase, list[Action]] = {phase: [] for phase in PHASE_ORDER}
        for action in actions:
            if not isinstance(action, Action):
                raise TypeError(f"Expected Action, got {type(action).__name__}")
            grouped[action.phase].append(action)
        return tuple(tuple(grouped[phase]) for phase in PHASE_ORDER)

    @property
    def actions(self) -> list[Action]:
        """All actions in execution order."""
        return [action for bucket in self.buckets for action in bucket]

    async def run(self, context: ActionContext) -> ActionContext:
        """
        Run every action against the context.

        Args:
            context: Request-scoped context, owned by this run

        Returns:
            The final context

        Raises:
            Whatever the failing action raised, unchanged
        """
        for phase, bucket in zip(PHASE_ORDER, self.buckets):
            for action in bucket:
                logger.debug(f"[{context.operation}] {phase.value}: {action.name}")
                try:
                    context = await call_action(action.fn, context)
                except Exception as e:
                    context.error = e
                    logger.debug(f"[{context.operation}] aborted at {phase.value} ({action.name}): {e!r}")
                    raise
        return context


async def run(actions: Iterable[Action], context: ActionContext) -> ActionContext:
    """Run actions against a context in phase order."""
    return await PipelineExecutor(actions).run(context)
