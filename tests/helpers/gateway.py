"""In-memory stand-in for the Pushover service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pushstate.domain.errors import ReconciliationError, RemoteRejection
from pushstate.domain.model import (
    MemberRow,
    MembershipKey,
    ReceiptStatus,
    RecipientValidation,
    SoundCatalog,
)
from pushstate.domain.ports import RemoteGateway, SendResult

if TYPE_CHECKING:
    from types import TracebackType

    from pushstate.domain.model import NotificationRequest


@dataclass
class FakeGateway:
    groups: dict[str, list[MemberRow]] = field(default_factory=dict[str, list[MemberRow]])
    receipts: dict[str, ReceiptStatus] = field(default_factory=dict[str, ReceiptStatus])
    sounds: dict[str, str] = field(
        default_factory=lambda: {"pushover": "Pushover (default)", "bike": "Bike"}
    )
    sent: list[NotificationRequest] = field(default_factory=list["NotificationRequest"])
    calls: list[str] = field(default_factory=list[str])
    tokens: list[str | None] = field(default_factory=list["str | None"])
    failures: dict[str, ReconciliationError] = field(
        default_factory=dict[str, ReconciliationError]
    )
    cancelled: list[str] = field(default_factory=list[str])

    async def __aenter__(self) -> FakeGateway:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        return None

    def fail(self, operation: str, error: ReconciliationError | None = None) -> None:
        self.failures[operation] = error or RemoteRejection(
            [f"{operation} refused"], operation=operation, status_code=400
        )

    def _record(self, operation: str, api_token: str | None) -> None:
        self.calls.append(operation)
        self.tokens.append(api_token)
        error = self.failures.get(operation)
        if error is not None:
            raise error

    def members(self, group: str) -> list[MemberRow]:
        return self.groups.setdefault(group, [])

    def _find(self, key: MembershipKey) -> int | None:
        for index, row in enumerate(self.members(key.group)):
            if key.matches(row.user, row.device):
                return index
        return None

    async def send_message(
        self, request: NotificationRequest, *, api_token: str | None = None
    ) -> SendResult:
        self._record("send_message", api_token)
        self.sent.append(request)
        number = len(self.sent)
        receipt = f"receipt-{number}" if request.is_emergency else None
        return SendResult(request_id=f"request-{number}", receipt=receipt)

    async def get_receipt(self, receipt: str, *, api_token: str | None = None) -> ReceiptStatus:
        self._record("get_receipt", api_token)
        return self.receipts.get(receipt) or ReceiptStatus(receipt=receipt, acknowledged=False)

    async def cancel_receipt(self, receipt: str, *, api_token: str | None = None) -> None:
        self._record("cancel_receipt", api_token)
        self.cancelled.append(receipt)

    async def cancel_receipts_by_tag(self, tag: str, *, api_token: str | None = None) -> int:
        self._record("cancel_receipts_by_tag", api_token)
        matching = [request for request in self.sent if tag in request.tags]
        return len(matching)

    async def list_group_members(
        self, group: str, *, api_token: str | None = None
    ) -> list[MemberRow]:
        self._record("list_group_members", api_token)
        return list(self.members(group))

    async def add_group_user(
        self, key: MembershipKey, *, memo: str | None = None, api_token: str | None = None
    ) -> None:
        self._record("add_group_user", api_token)
        index = self._find(key)
        rows = self.members(key.group)
        if index is None:
            rows.append(MemberRow(user=key.user, device=key.device, memo=memo or None))
            return
        row = rows[index]
        if memo is not None:
            rows[index] = MemberRow(row.user, row.device, memo or None, row.disabled)

    async def remove_group_user(self, key: MembershipKey, *, api_token: str | None = None) -> None:
        self._record("remove_group_user", api_token)
        index = self._find(key)
        if index is None:
            raise RemoteRejection(["user is not a member of this group"], status_code=400)
        del self.members(key.group)[index]

    async def enable_group_user(self, key: MembershipKey, *, api_token: str | None = None) -> None:
        self._record("enable_group_user", api_token)
        self._set_disabled(key, disabled=False)

    async def disable_group_user(self, key: MembershipKey, *, api_token: str | None = None) -> None:
        self._record("disable_group_user", api_token)
        self._set_disabled(key, disabled=True)

    def _set_disabled(self, key: MembershipKey, *, disabled: bool) -> None:
        index = self._find(key)
        if index is None:
            raise RemoteRejection(["user is not a member of this group"], status_code=400)
        rows = self.members(key.group)
        row = rows[index]
        rows[index] = MemberRow(row.user, row.device, row.memo, disabled)

    async def rename_group(self, group: str, name: str, *, api_token: str | None = None) -> None:
        self._record("rename_group", api_token)

    async def list_sounds(self, *, api_token: str | None = None) -> SoundCatalog:
        self._record("list_sounds", api_token)
        return SoundCatalog(sounds=dict(self.sounds))

    async def validate_user(
        self,
        user: str,
        *,
        device: str | None = None,
        api_token: str | None = None,
    ) -> RecipientValidation:
        self._record("validate_user", api_token)
        return RecipientValidation(
            recipient=user, is_group=user.startswith("g"), devices=("phone",), licenses=("iOS",)
        )


if TYPE_CHECKING:
    _gateway_check: RemoteGateway = FakeGateway()
