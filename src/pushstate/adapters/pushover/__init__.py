"""Pushover adapter package."""

from __future__ import annotations

from .client import PushoverAPIError, PushoverClient
from .schema import (
    ApiResponse,
    CancelByTagResponse,
    GroupMemberPayload,
    GroupResponse,
    MessageResponse,
    ReceiptResponse,
    SoundsResponse,
    ValidateResponse,
)
from .translator import (
    message_params,
    to_member_rows,
    to_receipt_status,
    to_recipient_validation,
    to_sound_catalog,
)

__all__ = [
    "ApiResponse",
    "CancelByTagResponse",
    "GroupMemberPayload",
    "GroupResponse",
    "MessageResponse",
    "PushoverAPIError",
    "PushoverClient",
    "ReceiptResponse",
    "SoundsResponse",
    "ValidateResponse",
    "message_params",
    "to_member_rows",
    "to_receipt_status",
    "to_recipient_validation",
    "to_sound_catalog",
]
