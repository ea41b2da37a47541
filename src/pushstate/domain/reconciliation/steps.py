"""Ordered multi-step remote operations with per-step failure tagging."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pushstate.domain.errors import PartialSequenceFailure, ReconciliationError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Step:
    """One remote call; ``reaches`` is the remote state once it has succeeded."""

    name: str
    call: Callable[[], Awaitable[Any]]
    reaches: object | None = None


@dataclass(slots=True)
class StepSequence:
    """Run steps strictly in order.

    Cancellation is checked before every step after the first, so a cancelled
    sequence never issues its next call. A failure after at least one step
    succeeded raises :class:`PartialSequenceFailure` carrying the remote state
    the last completed step reached.
    """

    operation: str
    resource_id: str
    steps: list[Step] = field(default_factory=list["Step"])
    completed: list[str] = field(default_factory=list[str])

    def add(self, name: str, call: Callable[[], Awaitable[Any]], *, reaches: object = None) -> None:
        self.steps.append(Step(name, call, reaches))

    async def execute(self) -> list[Any]:
        results: list[Any] = []
        reached: object | None = None
        for step in self.steps:
            if self.completed:
                await asyncio.sleep(0)
            log.debug("%s %s: step %s", self.operation, self.resource_id, step.name)
            try:
                results.append(await step.call())
            except ReconciliationError as exc:
                exc.with_context(operation=self.operation, resource_id=self.resource_id)
                if not self.completed:
                    raise
                # A nested sequence knows better what it left behind.
                partial_state = (
                    exc.partial_state if isinstance(exc, PartialSequenceFailure) else reached
                )
                raise PartialSequenceFailure(
                    completed_steps=self.completed,
                    failed_step=step.name,
                    cause=exc,
                    partial_state=partial_state,
                    operation=self.operation,
                    resource_id=self.resource_id,
                ) from exc
            self.completed.append(step.name)
            reached = step.reaches
        return results
