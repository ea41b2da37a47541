"""Notification send handler: create-only, never read back, never withdrawn."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

from pushstate.domain.errors import ReconciliationError
from pushstate.domain.model import NOTIFICATION_FIELDS, NotificationState, ResourceKind
from pushstate.domain.validation import validate_notification

if TYPE_CHECKING:
    from pushstate.domain.model import FieldTable, NotificationRequest, ReceiptStatus
    from pushstate.domain.ports import NotificationGateway

log = getLogger(__name__)


@dataclass(slots=True)
class NotificationHandler:
    """Every field change is a replace: the old send stays, a new one goes out."""

    gateway: NotificationGateway

    kind: ClassVar[ResourceKind] = ResourceKind.NOTIFICATION
    fields: ClassVar[FieldTable] = NOTIFICATION_FIELDS

    def validate(self, desired: NotificationRequest) -> None:
        validate_notification(desired)

    async def create(self, desired: NotificationRequest) -> NotificationState:
        # Checked locally so an emergency send missing retry/expire never costs a round trip.
        validate_notification(desired)
        try:
            result = await self.gateway.send_message(desired, api_token=desired.api_token)
        except ReconciliationError as exc:
            raise exc.with_context(operation="send")
        receipt = result.receipt if desired.is_emergency else None
        log.info(
            "Sent notification to %s: request=%s, priority=%s, receipt=%s",
            desired.recipient,
            result.request_id,
            int(desired.priority),
            receipt,
        )
        return NotificationState(spec=desired, request_id=result.request_id, receipt=receipt)

    async def read(self, prior: NotificationState) -> NotificationState:
        """No-op: the remote has no retrieval endpoint, so state is whatever was last written."""

        return prior

    async def delete(self, prior: NotificationState) -> None:
        """No-op: a delivered notification cannot be withdrawn."""

        log.debug("Forgetting notification %s; the remote send is not withdrawn", prior.request_id)

    async def poll_receipt(
        self, receipt: str, *, api_token: str | None = None
    ) -> ReceiptStatus:
        try:
            return await self.gateway.get_receipt(receipt, api_token=api_token)
        except ReconciliationError as exc:
            raise exc.with_context(operation="poll_receipt", resource_id=receipt)

    async def cancel_receipt(self, receipt: str, *, api_token: str | None = None) -> None:
        """Stop the retries of an emergency send that has not been acknowledged."""

        try:
            await self.gateway.cancel_receipt(receipt, api_token=api_token)
        except ReconciliationError as exc:
            raise exc.with_context(operation="cancel_receipt", resource_id=receipt)
        log.info("Cancelled emergency retries for receipt %s", receipt)

    async def cancel_tag(self, tag: str, *, api_token: str | None = None) -> int:
        try:
            cancelled = await self.gateway.cancel_receipts_by_tag(tag, api_token=api_token)
        except ReconciliationError as exc:
            raise exc.with_context(operation="cancel_tag", resource_id=tag)
        log.info("Cancelled %s emergency notification(s) tagged %r", cancelled, tag)
        return cancelled
