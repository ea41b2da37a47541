"""Drift reader: rebuild a membership's current remote state from a group listing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from pushstate.domain.errors import ReconciliationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pushstate.domain.model import MemberRow, MembershipKey
    from pushstate.domain.ports import GroupGateway

log = getLogger(__name__)


class DriftStatus(StrEnum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    READ_ERROR = "read_error"


@dataclass(frozen=True, slots=True, kw_only=True)
class MemberFound:
    memo: str | None
    disabled: bool
    status: Literal[DriftStatus.FOUND] = DriftStatus.FOUND


@dataclass(frozen=True, slots=True, kw_only=True)
class MemberNotFound:
    """Not an error: the entity is treated as deleted."""

    status: Literal[DriftStatus.NOT_FOUND] = DriftStatus.NOT_FOUND


@dataclass(frozen=True, slots=True, kw_only=True)
class MemberReadError:
    cause: ReconciliationError
    status: Literal[DriftStatus.READ_ERROR] = DriftStatus.READ_ERROR


type DriftResult = MemberFound | MemberNotFound | MemberReadError


def find_member(rows: Sequence[MemberRow], key: MembershipKey) -> MemberRow | None:
    for row in rows:
        if key.matches(row.user, row.device):
            return row
    return None


async def read_member(
    gateway: GroupGateway,
    key: MembershipKey,
    *,
    api_token: str | None = None,
) -> DriftResult:
    """Fetch the full member listing of ``key.group`` in one call and scan for ``key``."""

    try:
        rows = await gateway.list_group_members(key.group, api_token=api_token)
    except ReconciliationError as exc:
        exc.with_context(operation="read", resource_id=key.resource_id)
        log.error("Could not list group members for %s: %s", key.resource_id, exc)
        return MemberReadError(cause=exc)

    row = find_member(rows, key)
    if row is None:
        return MemberNotFound()
    return MemberFound(memo=row.memo or None, disabled=row.disabled)
