"""Persisted state record: desired fields plus computed identifier and outputs."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, cast

from .enums import Priority, ResourceKind
from .membership import GroupMembership, MembershipState
from .notification import NotificationRequest, NotificationState

if TYPE_CHECKING:
    from datetime import datetime

type ObservedState = NotificationState | MembershipState


@dataclass(eq=False, kw_only=True)
class ResourceRecord:
    address: str
    kind: ResourceKind
    resource_id: str
    attributes: dict[str, Any] = field(default_factory=dict[str, Any])
    updated_at: datetime | None = None


def encode_state(state: ObservedState) -> tuple[ResourceKind, dict[str, Any]]:
    """Return the record kind and JSON-compatible attributes for ``state``."""

    attributes = asdict(state.spec)
    if isinstance(state, NotificationState):
        attributes["priority"] = int(state.spec.priority)
        attributes["tags"] = list(state.spec.tags)
        attributes["request_id"] = state.request_id
        attributes["receipt"] = state.receipt
        return ResourceKind.NOTIFICATION, attributes
    return ResourceKind.MEMBERSHIP, attributes


def record_from_state(address: str, state: ObservedState) -> ResourceRecord:
    kind, attributes = encode_state(state)
    return ResourceRecord(
        address=address,
        kind=kind,
        resource_id=state.resource_id,
        attributes=attributes,
    )


def decode_state(record: ResourceRecord) -> ObservedState:
    attributes = dict(record.attributes)
    if record.kind is ResourceKind.NOTIFICATION:
        request_id = cast(str, attributes.pop("request_id"))
        receipt = cast("str | None", attributes.pop("receipt", None))
        attributes["priority"] = Priority(attributes.get("priority", 0))
        attributes["tags"] = tuple(attributes.get("tags") or ())
        return NotificationState(
            spec=NotificationRequest(**attributes),
            request_id=request_id,
            receipt=receipt,
        )
    return MembershipState(spec=GroupMembership(**attributes))
