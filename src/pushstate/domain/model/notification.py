"""Notification send: a create-only entity the remote cannot read back."""

from __future__ import annotations

from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import TYPE_CHECKING

from .enums import Mutability, Priority

if TYPE_CHECKING:
    from datetime import datetime

    from .fields import FieldTable


@dataclass(frozen=True, slots=True, kw_only=True)
class NotificationRequest:
    """Desired state of one notification send.

    ``retry`` and ``expire`` are only meaningful, and then required, at
    emergency priority. ``timestamp`` is a Unix epoch in seconds.
    """

    recipient: str
    message: str
    title: str | None = None
    url: str | None = None
    url_title: str | None = None
    priority: Priority = Priority.NORMAL
    sound: str | None = None
    device: str | None = None
    timestamp: int | None = None
    html: bool = False
    monospace: bool = False
    ttl: int | None = None
    retry: int | None = None
    expire: int | None = None
    callback: str | None = None
    tags: tuple[str, ...] = ()
    api_token: str | None = None

    @property
    def is_emergency(self) -> bool:
        return self.priority == Priority.EMERGENCY


# Every field is immutable: the remote exposes no way to edit or withdraw a send.
NOTIFICATION_FIELDS: FieldTable = MappingProxyType(
    {field.name: Mutability.IMMUTABLE for field in fields(NotificationRequest)}
)


@dataclass(frozen=True, slots=True)
class NotificationState:
    """Observed state: whatever was last written, plus the remote's outputs."""

    spec: NotificationRequest
    request_id: str
    receipt: str | None = None

    @property
    def resource_id(self) -> str:
        return self.request_id


@dataclass(frozen=True, slots=True, kw_only=True)
class ReceiptStatus:
    """Acknowledgement state of an emergency send."""

    receipt: str
    acknowledged: bool
    acknowledged_at: datetime | None = None
    acknowledged_by: str | None = None
    acknowledged_by_device: str | None = None
    last_delivered_at: datetime | None = None
    expired: bool = False
    expires_at: datetime | None = None
    called_back: bool = False
    called_back_at: datetime | None = None

    @property
    def outstanding(self) -> bool:
        return not self.acknowledged and not self.expired
