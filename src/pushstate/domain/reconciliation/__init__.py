"""Reconciliation engine and per-entity handlers."""

from __future__ import annotations

from .contracts import (
    Action,
    ChangePlan,
    CreateOnlyHandler,
    ReconcileOutcome,
    ResourceHandler,
    UpdatableHandler,
)
from .diff import changed_fields, plan_change
from .drift import (
    DriftResult,
    DriftStatus,
    MemberFound,
    MemberNotFound,
    MemberReadError,
    find_member,
    read_member,
)
from .engine import ReconcileItem, ReconciliationEngine
from .membership import MembershipHandler
from .notification import NotificationHandler
from .steps import Step, StepSequence

__all__ = [
    "Action",
    "ChangePlan",
    "CreateOnlyHandler",
    "DriftResult",
    "DriftStatus",
    "MemberFound",
    "MemberNotFound",
    "MemberReadError",
    "MembershipHandler",
    "NotificationHandler",
    "ReconcileItem",
    "ReconcileOutcome",
    "ReconciliationEngine",
    "ResourceHandler",
    "Step",
    "StepSequence",
    "UpdatableHandler",
    "changed_fields",
    "find_member",
    "plan_change",
    "read_member",
]
