from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from pushstate.domain.errors import (
    DriftReadError,
    PartialSequenceFailure,
    TransportFailure,
    ValidationError,
)
from pushstate.domain.model import (
    GroupMembership,
    MemberRow,
    MembershipState,
    NotificationRequest,
    NotificationState,
    Priority,
)
from pushstate.domain.reconciliation import (
    Action,
    ChangePlan,
    MembershipHandler,
    NotificationHandler,
    ReconcileItem,
    ReconciliationEngine,
    read_member,
)
from pushstate.domain.reconciliation.drift import MemberFound, MemberNotFound

if TYPE_CHECKING:
    from tests.helpers.gateway import FakeGateway


def test_scenario_create_then_read_membership(gateway: FakeGateway) -> None:
    engine = ReconciliationEngine()
    desired = GroupMembership(group="G1", user="U1", device="", memo="lead")

    outcome = asyncio.run(engine.reconcile(MembershipHandler(gateway), desired, None))

    assert outcome.action is Action.CREATE
    assert outcome.state is not None
    assert outcome.state.resource_id == "G1/U1"
    found = asyncio.run(read_member(gateway, desired.key))
    assert found == MemberFound(memo="lead", disabled=False)


def test_scenario_device_scoped_identifier(gateway: FakeGateway) -> None:
    desired = GroupMembership(group="G1", user="U1", device="iphone")

    outcome = asyncio.run(
        ReconciliationEngine().reconcile(MembershipHandler(gateway), desired, None)
    )

    assert outcome.state is not None
    assert outcome.state.resource_id == "G1/U1/iphone"


def test_scenario_emergency_receipt_and_retry_floor(gateway: FakeGateway) -> None:
    engine = ReconciliationEngine()
    handler = NotificationHandler(gateway)
    valid = NotificationRequest(
        recipient="U1", message="Down", priority=Priority.EMERGENCY, retry=60, expire=3600
    )

    outcome = asyncio.run(engine.reconcile(handler, valid, None))

    assert isinstance(outcome.state, NotificationState)
    assert outcome.state.receipt
    with pytest.raises(ValidationError):
        asyncio.run(engine.reconcile(handler, replace(valid, retry=10), None))
    assert len(gateway.sent) == 1


def test_scenario_disable_only_issues_one_call(gateway: FakeGateway) -> None:
    engine = ReconciliationEngine()
    handler = MembershipHandler(gateway)
    desired = GroupMembership(group="G1", user="U1", memo="lead")
    created = asyncio.run(engine.reconcile(handler, desired, None)).state
    gateway.calls.clear()

    outcome = asyncio.run(engine.reconcile(handler, replace(desired, disabled=True), created))

    assert outcome.action is Action.UPDATE
    assert gateway.calls == ["list_group_members", "disable_group_user"]


def test_scenario_delete_then_read_is_absent(gateway: FakeGateway) -> None:
    engine = ReconciliationEngine()
    handler = MembershipHandler(gateway)
    desired = GroupMembership(group="G1", user="U1")
    created = asyncio.run(engine.reconcile(handler, desired, None)).state

    outcome = asyncio.run(engine.reconcile(handler, None, created))

    assert outcome.action is Action.DELETE
    assert outcome.state is None
    assert isinstance(asyncio.run(read_member(gateway, desired.key)), MemberNotFound)


def test_noop_when_remote_matches(gateway: FakeGateway, membership: GroupMembership) -> None:
    engine = ReconciliationEngine()
    handler = MembershipHandler(gateway)
    created = asyncio.run(engine.reconcile(handler, membership, None)).state
    gateway.calls.clear()

    outcome = asyncio.run(engine.reconcile(handler, membership, created))

    assert outcome.action is Action.NOOP
    assert gateway.calls == ["list_group_members"]


def test_remote_edit_is_detected_and_reverted(
    gateway: FakeGateway, membership: GroupMembership
) -> None:
    engine = ReconciliationEngine()
    handler = MembershipHandler(gateway)
    created = asyncio.run(engine.reconcile(handler, membership, None)).state
    gateway.members("gGroupKey")[0] = MemberRow(user="uUserKey", memo="Edited", disabled=True)

    outcome = asyncio.run(engine.reconcile(handler, membership, created))

    assert outcome.action is Action.UPDATE
    assert outcome.plan.changed_fields == ("memo", "disabled")
    assert gateway.members("gGroupKey") == [MemberRow(user="uUserKey", memo="On call")]


def test_vanished_member_is_flagged_and_recreated(
    gateway: FakeGateway, membership: GroupMembership
) -> None:
    engine = ReconciliationEngine()
    handler = MembershipHandler(gateway)
    created = asyncio.run(engine.reconcile(handler, membership, None)).state
    gateway.members("gGroupKey").clear()

    outcome = asyncio.run(engine.reconcile(handler, membership, created))

    assert outcome.drifted
    assert outcome.action is Action.CREATE
    assert len(gateway.members("gGroupKey")) == 1


def test_vanished_and_undesired_is_noop(gateway: FakeGateway, membership: GroupMembership) -> None:
    outcome = asyncio.run(
        ReconciliationEngine().reconcile(
            MembershipHandler(gateway), None, MembershipState(membership)
        )
    )

    assert outcome.drifted
    assert outcome.action is Action.NOOP
    assert outcome.state is None


def test_device_change_replaces_membership(
    gateway: FakeGateway, membership: GroupMembership
) -> None:
    engine = ReconciliationEngine()
    handler = MembershipHandler(gateway)
    created = asyncio.run(engine.reconcile(handler, membership, None)).state
    desired = replace(membership, device="phone")

    outcome = asyncio.run(engine.reconcile(handler, desired, created))

    assert outcome.action is Action.REPLACE
    assert outcome.state == MembershipState(desired)
    assert gateway.members("gGroupKey") == [
        MemberRow(user="uUserKey", device="phone", memo="On call")
    ]


def test_replace_validates_before_deleting(
    gateway: FakeGateway, membership: GroupMembership
) -> None:
    engine = ReconciliationEngine()
    handler = MembershipHandler(gateway)
    created = asyncio.run(engine.reconcile(handler, membership, None)).state
    desired = replace(membership, device="phone", memo="x" * 300)

    with pytest.raises(ValidationError):
        asyncio.run(engine.reconcile(handler, desired, created))

    assert gateway.members("gGroupKey") == [MemberRow(user="uUserKey", memo="On call")]


def test_replace_with_failed_create_leaves_nothing(
    gateway: FakeGateway, membership: GroupMembership
) -> None:
    engine = ReconciliationEngine()
    handler = MembershipHandler(gateway)
    created = asyncio.run(engine.reconcile(handler, membership, None)).state
    gateway.fail("add_group_user")

    with pytest.raises(PartialSequenceFailure) as excinfo:
        asyncio.run(engine.reconcile(handler, replace(membership, device="phone"), created))

    assert excinfo.value.completed_steps == ("delete",)
    assert excinfo.value.partial_state is None
    assert gateway.members("gGroupKey") == []


def test_notification_change_sends_again(
    gateway: FakeGateway, notification: NotificationRequest
) -> None:
    engine = ReconciliationEngine()
    handler = NotificationHandler(gateway)
    first = asyncio.run(engine.reconcile(handler, notification, None)).state

    outcome = asyncio.run(engine.reconcile(handler, replace(notification, message="Again"), first))

    assert outcome.action is Action.REPLACE
    assert isinstance(outcome.state, NotificationState)
    assert outcome.state.request_id == "request-2"
    assert len(gateway.sent) == 2


def test_unchanged_notification_is_not_resent(
    gateway: FakeGateway, notification: NotificationRequest
) -> None:
    engine = ReconciliationEngine()
    handler = NotificationHandler(gateway)
    first = asyncio.run(engine.reconcile(handler, notification, None)).state

    outcome = asyncio.run(engine.reconcile(handler, notification, first))

    assert outcome.action is Action.NOOP
    assert len(gateway.sent) == 1


def test_read_error_aborts_reconcile(gateway: FakeGateway, membership: GroupMembership) -> None:
    gateway.fail("list_group_members", TransportFailure("reset"))

    with pytest.raises(DriftReadError):
        asyncio.run(
            ReconciliationEngine().reconcile(
                MembershipHandler(gateway), membership, MembershipState(membership)
            )
        )

    assert gateway.calls == ["list_group_members"]


def test_plan_changes_nothing(gateway: FakeGateway, membership: GroupMembership) -> None:
    outcome = asyncio.run(ReconciliationEngine().plan(MembershipHandler(gateway), membership, None))

    assert outcome.action is Action.CREATE
    assert not outcome.executed
    assert gateway.calls == []


def test_reconcile_many_isolates_failures(
    gateway: FakeGateway, membership: GroupMembership, notification: NotificationRequest
) -> None:
    engine = ReconciliationEngine()
    bad = GroupMembership(group="gGroupKey", user="uOther", memo="x" * 300)
    items = [
        ReconcileItem(
            address="membership.good",
            handler=MembershipHandler(gateway),
            desired=membership,
            prior=None,
        ),
        ReconcileItem(
            address="membership.bad", handler=MembershipHandler(gateway), desired=bad, prior=None
        ),
        ReconcileItem(
            address="notification.done",
            handler=NotificationHandler(gateway),
            desired=notification,
            prior=None,
        ),
    ]

    outcomes = asyncio.run(engine.reconcile_many(items))

    assert [outcome.address for outcome in outcomes] == [item.address for item in items]
    assert [outcome.ok for outcome in outcomes] == [True, False, True]
    assert isinstance(outcomes[1].error, ValidationError)
    assert len(gateway.members("gGroupKey")) == 1
    assert len(gateway.sent) == 1


def test_reconcile_many_times_out_slow_entities(membership: GroupMembership) -> None:
    class _SlowGateway:
        async def add_group_user(self, *args: object, **kwargs: object) -> None:
            await asyncio.sleep(5)

    item = ReconcileItem(
        address="membership.slow",
        handler=MembershipHandler(_SlowGateway()),  # type: ignore[arg-type]
        desired=membership,
        prior=None,
    )

    outcomes = asyncio.run(ReconciliationEngine(operation_timeout=0.01).reconcile_many([item]))

    assert isinstance(outcomes[0].error, TransportFailure)
    assert "timed out" in str(outcomes[0].error)


def test_delete_without_current_state_is_rejected(gateway: FakeGateway) -> None:
    engine = ReconciliationEngine()

    with pytest.raises(ValueError, match="without a current state"):
        asyncio.run(
            engine._apply(  # noqa: SLF001
                MembershipHandler(gateway),
                None,
                None,
                ChangePlan(action=Action.DELETE),
                drifted=False,
                address="membership.ops_lead",
            )
        )

    assert gateway.calls == []
