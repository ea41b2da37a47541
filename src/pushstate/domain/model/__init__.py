"""Domain model for reconcilable remote entities."""

from __future__ import annotations

from .enums import Mutability, Priority, ResourceKind
from .fields import FieldTable, immutable_fields, mutable_fields
from .membership import (
    ID_SEPARATOR,
    MEMBERSHIP_FIELDS,
    GroupMembership,
    MemberRow,
    MembershipKey,
    MembershipState,
)
from .notification import (
    NOTIFICATION_FIELDS,
    NotificationRequest,
    NotificationState,
    ReceiptStatus,
)
from .projections import RecipientValidation, SoundCatalog
from .record import (
    ObservedState,
    ResourceRecord,
    decode_state,
    encode_state,
    record_from_state,
)

__all__ = [
    "ID_SEPARATOR",
    "MEMBERSHIP_FIELDS",
    "NOTIFICATION_FIELDS",
    "FieldTable",
    "GroupMembership",
    "MemberRow",
    "MembershipKey",
    "MembershipState",
    "Mutability",
    "NotificationRequest",
    "NotificationState",
    "ObservedState",
    "Priority",
    "ReceiptStatus",
    "RecipientValidation",
    "ResourceKind",
    "ResourceRecord",
    "SoundCatalog",
    "decode_state",
    "encode_state",
    "immutable_fields",
    "mutable_fields",
    "record_from_state",
]
