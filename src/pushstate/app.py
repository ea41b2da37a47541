"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from pushstate.adapters.pushover import PushoverClient
from pushstate.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyStateUnitOfWork,
    is_started,
    startup,
)
from pushstate.config import get_pushover_config
from pushstate.domain.catalog import fetch_sound_catalog, validate_recipient
from pushstate.domain.errors import PartialSequenceFailure
from pushstate.domain.model import (
    MembershipState,
    NotificationState,
    ResourceKind,
    decode_state,
    record_from_state,
)
from pushstate.domain.ports import RemoteGateway, StateUnitOfWork
from pushstate.domain.reconciliation import (
    MembershipHandler,
    NotificationHandler,
    ReconcileItem,
    ReconciliationEngine,
)

if TYPE_CHECKING:
    from pushstate.domain.model import (
        ObservedState,
        ReceiptStatus,
        RecipientValidation,
        ResourceRecord,
        SoundCatalog,
    )
    from pushstate.domain.ports import ResourceRecordRepository
    from pushstate.domain.reconciliation import ReconcileOutcome
    from pushstate.domain.reconciliation.engine import AnyHandler
    from pushstate.manifest import Manifest

GatewayFactory = Callable[[], AbstractAsyncContextManager[RemoteGateway]]
UnitOfWorkFactory = Callable[[], StateUnitOfWork]

log = getLogger(__name__)


@dataclass(slots=True)
class ApplyResult:
    outcomes: list[ReconcileOutcome] = field(default_factory=list["ReconcileOutcome"])

    @property
    def failed(self) -> list[ReconcileOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


def _default_gateway_factory() -> AbstractAsyncContextManager[RemoteGateway]:
    return PushoverClient(config=get_pushover_config())


def _default_unit_of_work_factory() -> StateUnitOfWork:
    if not is_started():
        startup()
    return SqlAlchemyStateUnitOfWork()


def _resolve_timeout(
    operation_timeout: float | None, gateway_factory: GatewayFactory | None
) -> float | None:
    if operation_timeout is not None or gateway_factory is not None:
        return operation_timeout
    return get_pushover_config().operation_timeout_seconds


@dataclass(slots=True)
class _Handlers:
    notifications: NotificationHandler
    memberships: MembershipHandler

    @classmethod
    def over(cls, gateway: RemoteGateway) -> _Handlers:
        return cls(NotificationHandler(gateway), MembershipHandler(gateway))

    def for_kind(self, kind: ResourceKind) -> AnyHandler:
        if kind is ResourceKind.NOTIFICATION:
            return self.notifications
        return self.memberships


def _kind_of(address: str, record: ResourceRecord | None) -> ResourceKind:
    if record is not None:
        return record.kind
    return ResourceKind(address.partition(".")[0])


def _renamed_memberships(manifest: Manifest, records: dict[str, ResourceRecord]) -> dict[str, str]:
    """Map new address to old address for memberships renamed in the manifest.

    A stored membership whose address left the manifest but whose key is now
    declared under another address is the same remote member.
    """

    orphaned = {
        record.resource_id: address
        for address, record in records.items()
        if record.kind is ResourceKind.MEMBERSHIP and address not in manifest.memberships
    }
    renamed: dict[str, str] = {}
    for address, membership in manifest.memberships.items():
        if address in records:
            continue
        old_address = orphaned.pop(membership.key.resource_id, None)
        if old_address is not None:
            log.info("%s moves to %s", old_address, address)
            renamed[address] = old_address
    return renamed


def _build_items(
    manifest: Manifest,
    records: dict[str, ResourceRecord],
    handlers: _Handlers,
    renamed: dict[str, str],
) -> list[ReconcileItem]:
    items: list[ReconcileItem] = []
    moved_away = set(renamed.values())
    addresses = dict.fromkeys([*manifest.addresses, *sorted(records)])
    for address in addresses:
        if address in moved_away:
            continue
        record = records.get(renamed.get(address, address))
        items.append(
            ReconcileItem(
                address=address,
                handler=handlers.for_kind(_kind_of(address, record)),
                desired=manifest.desired(address),
                prior=decode_state(record) if record is not None else None,
            )
        )
    return items


def _persist(
    records: ResourceRecordRepository, outcome: ReconcileOutcome, *, moved_from: str | None = None
) -> None:
    address = outcome.address
    if address is None:
        raise ValueError("cannot persist an outcome without an address")
    existing = records.get(address)

    state: ObservedState | None
    if outcome.error is None:
        state = outcome.state
    elif isinstance(outcome.error, PartialSequenceFailure):
        partial = outcome.error.partial_state
        state = partial if isinstance(partial, NotificationState | MembershipState) else None
        log.warning("%s partially applied; recording what now exists remotely", address)
    else:
        return

    if moved_from is not None:
        old = records.get(moved_from)
        if old is not None:
            records.remove(old)
    if state is None:
        if existing is not None:
            records.remove(existing)
        return
    records.add(record_from_state(address, state))


def _run_reconciliation(
    manifest: Manifest,
    *,
    gateway_factory: GatewayFactory | None,
    unit_of_work_factory: UnitOfWorkFactory | None,
    operation_timeout: float | None,
    dry_run: bool,
) -> ApplyResult:
    effective_gateway = gateway_factory or _default_gateway_factory
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory
    engine = ReconciliationEngine(
        operation_timeout=_resolve_timeout(operation_timeout, gateway_factory)
    )

    with effective_uow() as uow:
        records = {record.address: record for record in uow.records.list_all()}
        renamed = _renamed_memberships(manifest, records)

        async def run() -> list[ReconcileOutcome]:
            async with effective_gateway() as gateway:
                items = _build_items(manifest, records, _Handlers.over(gateway), renamed)
                if dry_run:
                    return await engine.plan_many(items)
                return await engine.reconcile_many(items)

        outcomes = asyncio.run(run())
        if not dry_run:
            for outcome in outcomes:
                _persist(uow.records, outcome, moved_from=renamed.get(outcome.address or ""))
            uow.commit()

    return ApplyResult(outcomes=outcomes)


def apply_manifest(
    manifest: Manifest,
    *,
    gateway_factory: GatewayFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    operation_timeout: float | None = None,
) -> ApplyResult:
    """Converge every managed entity to ``manifest`` and record the result."""

    log.info(
        "Applying manifest: %s notification(s), %s membership(s)",
        len(manifest.notifications),
        len(manifest.memberships),
    )
    result = _run_reconciliation(
        manifest,
        gateway_factory=gateway_factory,
        unit_of_work_factory=unit_of_work_factory,
        operation_timeout=operation_timeout,
        dry_run=False,
    )
    log.info(
        "Finished apply: entities=%s, failed=%s", len(result.outcomes), len(result.failed)
    )
    return result


def plan_manifest(
    manifest: Manifest,
    *,
    gateway_factory: GatewayFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    operation_timeout: float | None = None,
) -> ApplyResult:
    """Report what :func:`apply_manifest` would do without changing anything."""

    return _run_reconciliation(
        manifest,
        gateway_factory=gateway_factory,
        unit_of_work_factory=unit_of_work_factory,
        operation_timeout=operation_timeout,
        dry_run=True,
    )


def list_sounds(*, gateway_factory: GatewayFactory | None = None) -> SoundCatalog:
    effective_gateway = gateway_factory or _default_gateway_factory

    async def run() -> SoundCatalog:
        async with effective_gateway() as gateway:
            return await fetch_sound_catalog(gateway)

    return asyncio.run(run())


def validate_user(
    user: str,
    *,
    device: str | None = None,
    gateway_factory: GatewayFactory | None = None,
) -> RecipientValidation:
    effective_gateway = gateway_factory or _default_gateway_factory

    async def run() -> RecipientValidation:
        async with effective_gateway() as gateway:
            return await validate_recipient(gateway, user, device=device)

    return asyncio.run(run())


def poll_receipt(receipt: str, *, gateway_factory: GatewayFactory | None = None) -> ReceiptStatus:
    effective_gateway = gateway_factory or _default_gateway_factory

    async def run() -> ReceiptStatus:
        async with effective_gateway() as gateway:
            return await NotificationHandler(gateway).poll_receipt(receipt)

    return asyncio.run(run())


def cancel_receipt(receipt: str, *, gateway_factory: GatewayFactory | None = None) -> None:
    effective_gateway = gateway_factory or _default_gateway_factory

    async def run() -> None:
        async with effective_gateway() as gateway:
            await NotificationHandler(gateway).cancel_receipt(receipt)

    asyncio.run(run())


def cancel_by_tag(tag: str, *, gateway_factory: GatewayFactory | None = None) -> int:
    effective_gateway = gateway_factory or _default_gateway_factory

    async def run() -> int:
        async with effective_gateway() as gateway:
            return await NotificationHandler(gateway).cancel_tag(tag)

    return asyncio.run(run())


def rename_group(group: str, name: str, *, gateway_factory: GatewayFactory | None = None) -> None:
    effective_gateway = gateway_factory or _default_gateway_factory

    async def run() -> None:
        async with effective_gateway() as gateway:
            await MembershipHandler(gateway).rename_group(group, name)

    asyncio.run(run())
