"""Shared reconciliation contract components.

This module holds only:
- the action vocabulary and change plans produced by the diff
- the handler protocols each entity type implements
- the outcome reported per reconciled entity
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pushstate.domain.errors import ReconciliationError
    from pushstate.domain.model import FieldTable, ObservedState, ResourceKind


class Action(StrEnum):
    """Remote operation chosen to converge one entity."""

    NOOP = "noop"
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"


@dataclass(frozen=True, slots=True, kw_only=True)
class ChangePlan:
    action: Action
    changed_fields: tuple[str, ...] = ()
    replace_fields: tuple[str, ...] = ()

    @property
    def reason(self) -> str:
        match self.action:
            case Action.REPLACE:
                return f"immutable fields changed: {', '.join(self.replace_fields)}"
            case Action.UPDATE:
                return f"mutable fields changed: {', '.join(self.changed_fields)}"
            case Action.CREATE:
                return "not present remotely"
            case Action.DELETE:
                return "no longer desired"
            case Action.NOOP:
                return "in sync"


@runtime_checkable
class CreateOnlyHandler[TSpec, TState: ObservedState](Protocol):
    """Entity the remote can create but never read back, edit, or withdraw."""

    kind: ResourceKind
    fields: FieldTable

    def validate(self, desired: TSpec) -> None: ...

    async def create(self, desired: TSpec) -> TState: ...

    async def read(self, prior: TState) -> TState | None: ...

    async def delete(self, prior: TState) -> None: ...


@runtime_checkable
class UpdatableHandler[TSpec, TState: ObservedState](CreateOnlyHandler[TSpec, TState], Protocol):
    """Entity whose mutable fields converge in place."""

    async def update(self, desired: TSpec, prior: TState) -> TState: ...


type ResourceHandler[TSpec, TState: ObservedState] = (
    CreateOnlyHandler[TSpec, TState] | UpdatableHandler[TSpec, TState]
)


@dataclass(slots=True, kw_only=True)
class ReconcileOutcome:
    """What one reconciliation did, and the observed state to persist."""

    plan: ChangePlan
    state: ObservedState | None = None
    drifted: bool = False
    address: str | None = None
    error: ReconciliationError | None = None
    executed: bool = True

    @property
    def action(self) -> Action:
        return self.plan.action

    @property
    def ok(self) -> bool:
        return self.error is None
