"""Group membership handler.

The remote has no "create disabled" primitive and its add endpoint doubles as
the memo setter, so both create and update are short ordered step sequences.
Group, user, and device changes never reach this module; they are replaces.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

from pushstate.domain.errors import DriftReadError
from pushstate.domain.model import MEMBERSHIP_FIELDS, MembershipState, ResourceKind
from pushstate.domain.validation import validate_membership

from .diff import changed_fields
from .drift import MemberFound, MemberNotFound, MemberReadError, read_member
from .steps import StepSequence

if TYPE_CHECKING:
    from pushstate.domain.model import FieldTable, GroupMembership
    from pushstate.domain.ports import GroupGateway

log = getLogger(__name__)


@dataclass(slots=True)
class MembershipHandler:
    gateway: GroupGateway

    kind: ClassVar[ResourceKind] = ResourceKind.MEMBERSHIP
    fields: ClassVar[FieldTable] = MEMBERSHIP_FIELDS

    def validate(self, desired: GroupMembership) -> None:
        validate_membership(desired)

    async def create(self, desired: GroupMembership) -> MembershipState:
        validate_membership(desired)
        key = desired.key
        token = desired.api_token

        sequence = StepSequence(operation="create", resource_id=key.resource_id)
        sequence.add(
            "add_user",
            lambda: self.gateway.add_group_user(key, memo=desired.memo, api_token=token),
            reaches=MembershipState(replace(desired, disabled=False)),
        )
        if desired.disabled:
            sequence.add(
                "disable_user",
                lambda: self.gateway.disable_group_user(key, api_token=token),
                reaches=MembershipState(desired),
            )
        await sequence.execute()

        log.info("Added %s to group (disabled=%s)", key.resource_id, desired.disabled)
        return MembershipState(desired)

    async def read(self, prior: MembershipState) -> MembershipState | None:
        result = await read_member(self.gateway, prior.key, api_token=prior.spec.api_token)
        match result:
            case MemberNotFound():
                log.warning("Membership %s is no longer present in its group", prior.resource_id)
                return None
            case MemberReadError(cause=cause):
                raise DriftReadError(
                    f"could not read group members: {cause}",
                    operation="read",
                    resource_id=prior.resource_id,
                ) from cause
            case MemberFound(memo=memo, disabled=disabled):
                # A listing cannot tell "no memo" from an empty one; keep what we knew.
                observed_memo = memo if memo else prior.spec.memo
                return MembershipState(replace(prior.spec, memo=observed_memo, disabled=disabled))

    async def update(self, desired: GroupMembership, prior: MembershipState) -> MembershipState:
        if desired.key != prior.key:
            raise ValueError(
                f"Cannot update {prior.resource_id} in place to {desired.key.resource_id}"
            )
        validate_membership(desired)
        key = desired.key
        token = desired.api_token
        changed = changed_fields(desired, prior.spec, self.fields)

        sequence = StepSequence(operation="update", resource_id=key.resource_id)
        current = prior.spec
        if "memo" in changed:
            current = replace(current, memo=desired.memo, api_token=token)
            # An empty memo is sent explicitly so clearing reaches the remote.
            sequence.add(
                "add_user",
                lambda: self.gateway.add_group_user(key, memo=desired.memo or "", api_token=token),
                reaches=MembershipState(current),
            )
        if "disabled" in changed:
            current = replace(current, disabled=desired.disabled, api_token=token)
            if desired.disabled:
                sequence.add(
                    "disable_user",
                    lambda: self.gateway.disable_group_user(key, api_token=token),
                    reaches=MembershipState(current),
                )
            else:
                sequence.add(
                    "enable_user",
                    lambda: self.gateway.enable_group_user(key, api_token=token),
                    reaches=MembershipState(current),
                )
        await sequence.execute()

        log.info("Updated %s: %s", key.resource_id, ", ".join(changed))
        return MembershipState(desired)

    async def delete(self, prior: MembershipState) -> None:
        sequence = StepSequence(operation="delete", resource_id=prior.resource_id)
        sequence.add(
            "remove_user",
            lambda: self.gateway.remove_group_user(prior.key, api_token=prior.spec.api_token),
        )
        await sequence.execute()
        log.info("Removed %s from group", prior.resource_id)

    async def rename_group(self, group: str, name: str, *, api_token: str | None = None) -> None:
        """Rename the externally owned group; memberships inside it are untouched."""

        sequence = StepSequence(operation="rename_group", resource_id=group)
        sequence.add("rename", lambda: self.gateway.rename_group(group, name, api_token=api_token))
        await sequence.execute()
        log.info("Renamed group %s to %r", group, name)
