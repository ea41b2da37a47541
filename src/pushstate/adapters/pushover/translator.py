"""Translate between domain objects and Pushover request and response payloads."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pushstate.domain.model import (
    MemberRow,
    ReceiptStatus,
    RecipientValidation,
    SoundCatalog,
)

if TYPE_CHECKING:
    from pushstate.domain.model import NotificationRequest

    from .schema import GroupResponse, ReceiptResponse, SoundsResponse, ValidateResponse


def message_params(request: NotificationRequest) -> dict[str, str]:
    """Form fields for ``messages.json``.

    Unset text fields and zero numeric fields are omitted; ``priority`` is
    always sent. ``retry``, ``expire`` and ``callback`` only apply to
    emergency sends and are dropped otherwise.
    """

    params: dict[str, str] = {
        "user": request.recipient,
        "message": request.message,
        "priority": str(int(request.priority)),
    }
    text: dict[str, str | None] = {
        "title": request.title,
        "url": request.url,
        "url_title": request.url_title,
        "sound": request.sound,
        "device": request.device,
    }
    numeric: dict[str, int | None] = {"timestamp": request.timestamp, "ttl": request.ttl}
    if request.is_emergency:
        text["callback"] = request.callback
        numeric["retry"] = request.retry
        numeric["expire"] = request.expire
    params.update({name: value for name, value in text.items() if value is not None})
    params.update({name: str(value) for name, value in numeric.items() if value})
    if request.html:
        params["html"] = "1"
    if request.monospace:
        params["monospace"] = "1"
    if request.tags:
        params["tags"] = ",".join(request.tags)
    return params


def _epoch(value: int) -> datetime | None:
    # The API reports "never" as 0.
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=UTC)


def to_receipt_status(receipt: str, payload: ReceiptResponse) -> ReceiptStatus:
    return ReceiptStatus(
        receipt=receipt,
        acknowledged=bool(payload.acknowledged),
        acknowledged_at=_epoch(payload.acknowledged_at),
        acknowledged_by=payload.acknowledged_by or None,
        acknowledged_by_device=payload.acknowledged_by_device or None,
        last_delivered_at=_epoch(payload.last_delivered_at),
        expired=bool(payload.expired),
        expires_at=_epoch(payload.expires_at),
        called_back=bool(payload.called_back),
        called_back_at=_epoch(payload.called_back_at),
    )


def to_member_rows(payload: GroupResponse) -> list[MemberRow]:
    return [
        MemberRow(
            user=member.user,
            device=member.device or None,
            memo=member.memo or None,
            disabled=member.disabled,
        )
        for member in payload.users
    ]


def to_sound_catalog(payload: SoundsResponse) -> SoundCatalog:
    return SoundCatalog(sounds=dict(payload.sounds))


def to_recipient_validation(recipient: str, payload: ValidateResponse) -> RecipientValidation:
    return RecipientValidation(
        recipient=recipient,
        is_group=bool(payload.group),
        devices=tuple(payload.devices),
        licenses=tuple(payload.licenses),
    )
