"""Local contract checks run before anything is dispatched to the remote."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ValidationError
from .model import Priority

if TYPE_CHECKING:
    from .model import GroupMembership, NotificationRequest

MESSAGE_MAX_LENGTH = 1024
TITLE_MAX_LENGTH = 250
URL_MAX_LENGTH = 512
URL_TITLE_MAX_LENGTH = 100
MEMO_MAX_LENGTH = 200
MIN_TTL_SECONDS = 1
MIN_RETRY_SECONDS = 30
MAX_EXPIRE_SECONDS = 10800


def _check_length(issues: list[str], name: str, value: str | None, maximum: int) -> None:
    if value is not None and len(value) > maximum:
        issues.append(f"{name} must be at most {maximum} characters (got {len(value)})")


def notification_issues(request: NotificationRequest) -> list[str]:
    issues: list[str] = []
    if not request.recipient.strip():
        issues.append("recipient is required")
    if not request.message:
        issues.append("message is required")
    _check_length(issues, "message", request.message, MESSAGE_MAX_LENGTH)
    _check_length(issues, "title", request.title, TITLE_MAX_LENGTH)
    _check_length(issues, "url", request.url, URL_MAX_LENGTH)
    _check_length(issues, "url_title", request.url_title, URL_TITLE_MAX_LENGTH)

    if request.priority not in set(Priority):
        issues.append(f"priority must be between -2 and 2 (got {int(request.priority)})")
    if request.ttl is not None and request.ttl < MIN_TTL_SECONDS:
        issues.append(f"ttl must be at least {MIN_TTL_SECONDS} second")
    if request.retry is not None and request.retry < MIN_RETRY_SECONDS:
        issues.append(f"retry must be at least {MIN_RETRY_SECONDS} seconds (got {request.retry})")
    if request.expire is not None and not 1 <= request.expire <= MAX_EXPIRE_SECONDS:
        issues.append(
            f"expire must be between 1 and {MAX_EXPIRE_SECONDS} seconds (got {request.expire})"
        )
    if request.is_emergency and (request.retry is None or request.expire is None):
        issues.append("retry and expire are both required when priority is 2 (emergency)")
    return issues


def validate_notification(request: NotificationRequest) -> None:
    """Raise :class:`ValidationError` listing every rule ``request`` violates."""

    issues = notification_issues(request)
    if issues:
        raise ValidationError(issues, operation="validate")


def membership_issues(membership: GroupMembership) -> list[str]:
    issues: list[str] = []
    if not membership.group.strip():
        issues.append("group is required")
    if not membership.user.strip():
        issues.append("user is required")
    _check_length(issues, "memo", membership.memo, MEMO_MAX_LENGTH)
    return issues


def validate_membership(membership: GroupMembership) -> None:
    issues = membership_issues(membership)
    if issues:
        raise ValidationError(
            issues,
            operation="validate",
            resource_id=membership.key.resource_id,
        )
