"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import ResourceRecordRepository
from .remote import (
    CatalogGateway,
    GroupGateway,
    NotificationGateway,
    RemoteGateway,
    SendResult,
)
from .unit_of_work import StateUnitOfWork

__all__ = [
    "CatalogGateway",
    "GroupGateway",
    "NotificationGateway",
    "RemoteGateway",
    "ResourceRecordRepository",
    "SendResult",
    "StateUnitOfWork",
]
