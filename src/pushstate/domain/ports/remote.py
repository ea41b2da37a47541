"""Ports for talking to the remote notification service.

Every operation is a coroutine so callers can bound it with a timeout or
cancel it; every operation accepts a per-call credential override.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pushstate.domain.model import (
        MemberRow,
        MembershipKey,
        NotificationRequest,
        ReceiptStatus,
        RecipientValidation,
        SoundCatalog,
    )


@dataclass(frozen=True, slots=True)
class SendResult:
    request_id: str
    receipt: str | None = None


@runtime_checkable
class NotificationGateway(Protocol):
    """Sending is never idempotent: each call creates a new, distinct send."""

    async def send_message(
        self, request: NotificationRequest, *, api_token: str | None = None
    ) -> SendResult: ...

    async def get_receipt(self, receipt: str, *, api_token: str | None = None) -> ReceiptStatus: ...

    async def cancel_receipt(self, receipt: str, *, api_token: str | None = None) -> None: ...

    async def cancel_receipts_by_tag(self, tag: str, *, api_token: str | None = None) -> int: ...


@runtime_checkable
class GroupGateway(Protocol):
    """Adding an existing member overwrites its memo rather than duplicating it."""

    async def list_group_members(
        self, group: str, *, api_token: str | None = None
    ) -> Sequence[MemberRow]: ...

    async def add_group_user(
        self, key: MembershipKey, *, memo: str | None = None, api_token: str | None = None
    ) -> None: ...

    async def remove_group_user(self, key: MembershipKey, *, api_token: str | None = None) -> None: ...

    async def enable_group_user(self, key: MembershipKey, *, api_token: str | None = None) -> None: ...

    async def disable_group_user(
        self, key: MembershipKey, *, api_token: str | None = None
    ) -> None: ...

    async def rename_group(self, group: str, name: str, *, api_token: str | None = None) -> None: ...


@runtime_checkable
class CatalogGateway(Protocol):
    async def list_sounds(self, *, api_token: str | None = None) -> SoundCatalog: ...

    async def validate_user(
        self,
        user: str,
        *,
        device: str | None = None,
        api_token: str | None = None,
    ) -> RecipientValidation: ...


@runtime_checkable
class RemoteGateway(NotificationGateway, GroupGateway, CatalogGateway, Protocol):
    """Everything one remote service client offers."""
