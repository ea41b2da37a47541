"""TOML manifest of desired notifications and group memberships.

Example::

    [notifications.deploy_done]
    recipient = "uQiRzpo4DXghDmr9QzzfQu27cmVRsG"
    message = "Deploy finished"
    priority = "high"

    [memberships.ops_lead]
    group = "gznej3rKEVAvPUxu9vvNnqpmZpokzF"
    user = "uQiRzpo4DXghDmr9QzzfQu27cmVRsG"
    memo = "Ops lead"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from pushstate.domain.errors import ValidationError
from pushstate.domain.model import GroupMembership, NotificationRequest, Priority, ResourceKind

if TYPE_CHECKING:
    from pathlib import Path

NOTIFICATION_PREFIX = f"{ResourceKind.NOTIFICATION}."
MEMBERSHIP_PREFIX = f"{ResourceKind.MEMBERSHIP}."


class ManifestModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class NotificationEntry(ManifestModel):
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

    @field_validator("priority", mode="before")
    @classmethod
    def _priority_by_name(cls, value: object) -> object:
        if isinstance(value, str) and not value.lstrip("-").isdigit():
            try:
                return Priority[value.upper()]
            except KeyError:
                raise ValueError(f"unknown priority {value!r}") from None
        return value

    def to_domain(self) -> NotificationRequest:
        return NotificationRequest(**self.model_dump())


class MembershipEntry(ManifestModel):
    group: str
    user: str
    device: str | None = None
    memo: str | None = None
    disabled: bool = False
    api_token: str | None = None

    def to_domain(self) -> GroupMembership:
        return GroupMembership(**self.model_dump())


EntryName = Annotated[str, Field(pattern=r"^[A-Za-z0-9_\-]+$")]


class ManifestDocument(ManifestModel):
    notifications: dict[EntryName, NotificationEntry] = Field(
        default_factory=dict[str, NotificationEntry]
    )
    memberships: dict[EntryName, MembershipEntry] = Field(
        default_factory=dict[str, MembershipEntry]
    )


@dataclass(slots=True)
class Manifest:
    """Desired state keyed by address, e.g. ``membership.ops_lead``."""

    notifications: dict[str, NotificationRequest] = field(
        default_factory=dict[str, NotificationRequest]
    )
    memberships: dict[str, GroupMembership] = field(default_factory=dict[str, GroupMembership])

    @property
    def addresses(self) -> list[str]:
        return [*self.notifications, *self.memberships]

    def desired(self, address: str) -> NotificationRequest | GroupMembership | None:
        return self.notifications.get(address) or self.memberships.get(address)


def _issues_from(error: PydanticValidationError) -> list[str]:
    issues: list[str] = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        issues.append(f"{location}: {detail['msg']}")
    return issues


def parse_manifest(text: str) -> Manifest:
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ValidationError([f"invalid TOML: {exc}"], operation="load_manifest") from exc
    try:
        document = ManifestDocument.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError(_issues_from(exc), operation="load_manifest") from exc

    manifest = Manifest()
    for name, entry in document.notifications.items():
        manifest.notifications[f"{NOTIFICATION_PREFIX}{name}"] = entry.to_domain()

    seen: dict[str, str] = {}
    issues: list[str] = []
    for name, entry in document.memberships.items():
        membership = entry.to_domain()
        address = f"{MEMBERSHIP_PREFIX}{name}"
        resource_id = membership.key.resource_id
        if resource_id in seen:
            issues.append(f"{address} duplicates {seen[resource_id]} ({resource_id})")
            continue
        seen[resource_id] = address
        manifest.memberships[address] = membership
    if issues:
        raise ValidationError(issues, operation="load_manifest")
    return manifest


def load_manifest(path: Path) -> Manifest:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(
            [f"cannot read manifest {path}: {exc.strerror}"], operation="load_manifest"
        ) from exc
    return parse_manifest(text)
