"""Refresh, plan, and apply desired state for any handler."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pushstate.domain.errors import ReconciliationError, TransportFailure

from .contracts import Action, ChangePlan, ReconcileOutcome, UpdatableHandler
from .diff import plan_change
from .steps import StepSequence

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pushstate.domain.model import ObservedState

    from .contracts import ResourceHandler

log = getLogger(__name__)

_WRITES = frozenset({Action.CREATE, Action.UPDATE, Action.REPLACE})

type AnyHandler = ResourceHandler[Any, Any]


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconcileItem:
    """One managed entity: ``desired`` is None when it should no longer exist."""

    address: str
    handler: AnyHandler
    desired: object | None
    prior: ObservedState | None


@dataclass(slots=True)
class ReconciliationEngine:
    """Converge entities one at a time or concurrently.

    ``operation_timeout`` bounds each entity's whole refresh-plan-apply cycle
    when running many at once. A timed out entity may be partially applied.
    """

    operation_timeout: float | None = None

    async def refresh(
        self, handler: AnyHandler, prior: ObservedState | None
    ) -> tuple[ObservedState | None, bool]:
        """Return the current remote state and whether it vanished since ``prior``."""

        if prior is None:
            return None, False
        current = await handler.read(prior)
        if current is None:
            log.warning("%s %s drifted: no longer present remotely", handler.kind, prior.resource_id)
            return None, True
        return current, False

    async def plan(
        self,
        handler: AnyHandler,
        desired: object | None,
        prior: ObservedState | None,
        *,
        address: str | None = None,
    ) -> ReconcileOutcome:
        """Dry run: refresh and diff, but change nothing remotely."""

        current, drifted = await self.refresh(handler, prior)
        change = plan_change(desired, _spec(current), handler.fields)
        _validate_planned(handler, desired, change)
        return ReconcileOutcome(
            plan=change, state=current, drifted=drifted, address=address, executed=False
        )

    async def reconcile(
        self,
        handler: AnyHandler,
        desired: object | None,
        prior: ObservedState | None,
        *,
        address: str | None = None,
    ) -> ReconcileOutcome:
        current, drifted = await self.refresh(handler, prior)
        change = plan_change(desired, _spec(current), handler.fields)
        return await self._apply(handler, desired, current, change, drifted=drifted, address=address)

    async def _apply(
        self,
        handler: AnyHandler,
        desired: Any,
        current: ObservedState | None,
        change: ChangePlan,
        *,
        drifted: bool,
        address: str | None,
    ) -> ReconcileOutcome:
        _validate_planned(handler, desired, change)

        state: ObservedState | None = current
        match change.action:
            case Action.NOOP:
                pass
            case Action.CREATE:
                state = await handler.create(desired)
            case Action.UPDATE:
                if not isinstance(handler, UpdatableHandler):
                    raise TypeError(f"{handler.kind} handlers cannot update in place")
                state = await handler.update(desired, _require_current(current, change))
            case Action.REPLACE:
                state = await _replace(handler, desired, _require_current(current, change))
            case Action.DELETE:
                await handler.delete(_require_current(current, change))
                state = None

        if change.action is not Action.NOOP:
            log.info("%s: %s (%s)", address or handler.kind, change.action, change.reason)
        return ReconcileOutcome(plan=change, state=state, drifted=drifted, address=address)

    async def reconcile_many(self, items: Sequence[ReconcileItem]) -> list[ReconcileOutcome]:
        """Reconcile every item concurrently; one entity failing never stops the rest."""

        return list(await asyncio.gather(*(self._isolated(item, dry_run=False) for item in items)))

    async def plan_many(self, items: Sequence[ReconcileItem]) -> list[ReconcileOutcome]:
        return list(await asyncio.gather(*(self._isolated(item, dry_run=True) for item in items)))

    async def _isolated(self, item: ReconcileItem, *, dry_run: bool) -> ReconcileOutcome:
        change: ChangePlan | None = None
        resource_id = item.prior.resource_id if item.prior is not None else None
        try:
            async with asyncio.timeout(self.operation_timeout):
                current, drifted = await self.refresh(item.handler, item.prior)
                change = plan_change(item.desired, _spec(current), item.handler.fields)
                if dry_run:
                    _validate_planned(item.handler, item.desired, change)
                    return ReconcileOutcome(
                        plan=change,
                        state=current,
                        drifted=drifted,
                        address=item.address,
                        executed=False,
                    )
                return await self._apply(
                    item.handler,
                    item.desired,
                    current,
                    change,
                    drifted=drifted,
                    address=item.address,
                )
        except TimeoutError:
            error: ReconciliationError = TransportFailure(
                "timed out; remote state may be partially applied",
                operation=str(change.action) if change else "refresh",
                resource_id=resource_id,
            )
        except ReconciliationError as exc:
            error = exc.with_context(resource_id=resource_id)

        log.error("%s failed: %s", item.address, error)
        return ReconcileOutcome(
            plan=change or ChangePlan(action=Action.NOOP),
            state=item.prior,
            address=item.address,
            error=error,
            executed=change is not None and not dry_run,
        )


async def _replace(handler: AnyHandler, desired: object, current: ObservedState) -> ObservedState:
    """Delete then create; a failed create after the delete leaves nothing behind."""

    sequence = StepSequence(operation="replace", resource_id=current.resource_id)
    sequence.add("delete", lambda: handler.delete(current), reaches=None)
    sequence.add("create", lambda: handler.create(desired))
    results = await sequence.execute()
    return results[-1]


def _validate_planned(handler: AnyHandler, desired: object | None, change: ChangePlan) -> None:
    if desired is not None and change.action in _WRITES:
        handler.validate(desired)


def _spec(state: ObservedState | None) -> object | None:
    return state.spec if state is not None else None


def _require_current(current: ObservedState | None, change: ChangePlan) -> ObservedState:
    if current is None:
        raise ValueError(f"{change.action} planned without a current state")
    return current
