"""Pydantic models for Pushover API responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PushoverBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ApiResponse(PushoverBaseModel):
    """Envelope shared by every endpoint; ``status == 1`` means success."""

    status: int
    request: str | None = None
    errors: list[str] = Field(default_factory=list[str])

    @field_validator("errors", mode="before")
    @classmethod
    def _errors_as_list(cls, value: object) -> object:
        # Some endpoints answer a mapping of parameter name to messages.
        if isinstance(value, dict):
            messages: list[str] = []
            for name, detail in value.items():  # pyright: ignore[reportUnknownVariableType]
                details = detail if isinstance(detail, list) else [detail]  # pyright: ignore[reportUnknownVariableType]
                messages.extend(f"{name} {item}" for item in details)  # pyright: ignore[reportUnknownVariableType]
            return messages
        if isinstance(value, str):
            return [value]
        return value

    @property
    def ok(self) -> bool:
        return self.status == 1


class MessageResponse(ApiResponse):
    receipt: str | None = None


class ReceiptResponse(ApiResponse):
    acknowledged: int = 0
    acknowledged_at: int = 0
    acknowledged_by: str | None = None
    acknowledged_by_device: str | None = None
    last_delivered_at: int = 0
    expired: int = 0
    expires_at: int = 0
    called_back: int = 0
    called_back_at: int = 0


class CancelByTagResponse(ApiResponse):
    canceled: int = 0


class SoundsResponse(ApiResponse):
    sounds: dict[str, str] = Field(default_factory=dict[str, str])


class ValidateResponse(ApiResponse):
    group: int = 0
    devices: list[str] = Field(default_factory=list[str])
    licenses: list[str] = Field(default_factory=list[str])


class GroupMemberPayload(PushoverBaseModel):
    user: str
    device: str | None = None
    memo: str | None = None
    disabled: bool = False


class GroupResponse(ApiResponse):
    name: str | None = None
    users: list[GroupMemberPayload] = Field(default_factory=list["GroupMemberPayload"])
