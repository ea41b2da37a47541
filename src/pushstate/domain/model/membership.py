"""Delivery-group membership: a mutable entity inside an externally owned group."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from .enums import Mutability

if TYPE_CHECKING:
    from .fields import FieldTable

ID_SEPARATOR = "/"


@dataclass(frozen=True, slots=True)
class MembershipKey:
    """Natural key of a membership row; device matches exactly or is absent on both sides."""

    group: str
    user: str
    device: str | None = None

    def matches(self, user: str, device: str | None) -> bool:
        return self.user == user and (self.device or None) == (device or None)

    @property
    def resource_id(self) -> str:
        parts = [self.group, self.user]
        if self.device:
            parts.append(self.device)
        return ID_SEPARATOR.join(parts)


@dataclass(frozen=True, slots=True, kw_only=True)
class GroupMembership:
    """Desired state of one member within a delivery group."""

    group: str
    user: str
    device: str | None = None
    memo: str | None = None
    disabled: bool = False
    api_token: str | None = None

    def __post_init__(self) -> None:
        # The remote cannot tell an empty device or memo from an absent one.
        if not self.device:
            object.__setattr__(self, "device", None)
        if not self.memo:
            object.__setattr__(self, "memo", None)

    @property
    def key(self) -> MembershipKey:
        return MembershipKey(self.group, self.user, self.device)


MEMBERSHIP_FIELDS: FieldTable = MappingProxyType(
    {
        "group": Mutability.IMMUTABLE,
        "user": Mutability.IMMUTABLE,
        "device": Mutability.IMMUTABLE,
        "memo": Mutability.MUTABLE,
        "disabled": Mutability.MUTABLE,
        "api_token": Mutability.MUTABLE,
    }
)


@dataclass(frozen=True, slots=True)
class MembershipState:
    """Observed state of a membership as last written or read."""

    spec: GroupMembership

    @property
    def resource_id(self) -> str:
        return self.spec.key.resource_id

    @property
    def key(self) -> MembershipKey:
        return self.spec.key


@dataclass(frozen=True, slots=True)
class MemberRow:
    """One row of a remote group listing."""

    user: str
    device: str | None = None
    memo: str | None = None
    disabled: bool = False
