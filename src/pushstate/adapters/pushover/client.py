"""HTTP client for the Pushover API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from pushstate.adapters.http_resilience import ResilientClient
from pushstate.domain.errors import RemoteRejection, TransportFailure
from pushstate.domain.ports import CatalogGateway, GroupGateway, NotificationGateway, SendResult

from .schema import (
    ApiResponse,
    CancelByTagResponse,
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

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from types import TracebackType

    from pushstate.config.http_resilience import ResilienceConfig
    from pushstate.config.pushover import PushoverConfig
    from pushstate.domain.model import (
        MemberRow,
        MembershipKey,
        NotificationRequest,
        ReceiptStatus,
        RecipientValidation,
        SoundCatalog,
    )

log = getLogger(__name__)


class PushoverAPIError(RemoteRejection):
    """Raised when the Pushover API answers with ``status != 1``."""


def _segment(value: str) -> str:
    return quote(value, safe="")


class PushoverClient:
    """Async Pushover client implementing every remote gateway port.

    Use it as an async context manager to share one rate-limited connection
    pool across calls; outside a context each call opens its own.
    """

    def __init__(
        self,
        *,
        config: PushoverConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._http: ResilientClient | None = None

    async def __aenter__(self) -> PushoverClient:
        self._http = self._client_factory(self._resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    # Notifications ------------------------------------------------------

    async def send_message(
        self, request: NotificationRequest, *, api_token: str | None = None
    ) -> SendResult:
        payload = await self._post(
            "/messages.json",
            message_params(request),
            MessageResponse,
            operation="messages.send",
            api_token=api_token,
        )
        if payload.request is None:
            raise TransportFailure(
                "response carried no request id", operation="messages.send"
            )
        return SendResult(request_id=payload.request, receipt=payload.receipt)

    async def get_receipt(self, receipt: str, *, api_token: str | None = None) -> ReceiptStatus:
        payload = await self._get(
            f"/receipts/{_segment(receipt)}.json",
            ReceiptResponse,
            operation="receipts.get",
            resource_id=receipt,
            api_token=api_token,
        )
        return to_receipt_status(receipt, payload)

    async def cancel_receipt(self, receipt: str, *, api_token: str | None = None) -> None:
        await self._post(
            f"/receipts/{_segment(receipt)}/cancel.json",
            {},
            ApiResponse,
            operation="receipts.cancel",
            resource_id=receipt,
            api_token=api_token,
        )

    async def cancel_receipts_by_tag(self, tag: str, *, api_token: str | None = None) -> int:
        payload = await self._post(
            f"/receipts/cancel_by_tag/{_segment(tag)}.json",
            {},
            CancelByTagResponse,
            operation="receipts.cancel_by_tag",
            resource_id=tag,
            api_token=api_token,
        )
        return payload.canceled

    # Groups -------------------------------------------------------------

    async def list_group_members(
        self, group: str, *, api_token: str | None = None
    ) -> list[MemberRow]:
        payload = await self._get(
            f"/groups/{_segment(group)}.json",
            GroupResponse,
            operation="groups.get",
            resource_id=group,
            api_token=api_token,
        )
        return to_member_rows(payload)

    async def add_group_user(
        self, key: MembershipKey, *, memo: str | None = None, api_token: str | None = None
    ) -> None:
        data = self._member_fields(key)
        if memo is not None:
            data["memo"] = memo
        await self._group_user_call(key, "add_user", data, api_token=api_token)

    async def remove_group_user(self, key: MembershipKey, *, api_token: str | None = None) -> None:
        await self._group_user_call(
            key, "delete_user", self._member_fields(key), api_token=api_token
        )

    async def enable_group_user(self, key: MembershipKey, *, api_token: str | None = None) -> None:
        await self._group_user_call(
            key, "enable_user", self._member_fields(key), api_token=api_token
        )

    async def disable_group_user(self, key: MembershipKey, *, api_token: str | None = None) -> None:
        await self._group_user_call(
            key, "disable_user", self._member_fields(key), api_token=api_token
        )

    async def rename_group(self, group: str, name: str, *, api_token: str | None = None) -> None:
        await self._post(
            f"/groups/{_segment(group)}/rename.json",
            {"name": name},
            ApiResponse,
            operation="groups.rename",
            resource_id=group,
            api_token=api_token,
        )

    # Catalog ------------------------------------------------------------

    async def list_sounds(self, *, api_token: str | None = None) -> SoundCatalog:
        payload = await self._get(
            "/sounds.json", SoundsResponse, operation="sounds.list", api_token=api_token
        )
        return to_sound_catalog(payload)

    async def validate_user(
        self,
        user: str,
        *,
        device: str | None = None,
        api_token: str | None = None,
    ) -> RecipientValidation:
        data = {"user": user}
        if device:
            data["device"] = device
        payload = await self._post(
            "/users/validate.json",
            data,
            ValidateResponse,
            operation="users.validate",
            resource_id=user,
            api_token=api_token,
        )
        return to_recipient_validation(user, payload)

    # Plumbing -----------------------------------------------------------

    @staticmethod
    def _member_fields(key: MembershipKey) -> dict[str, str]:
        data = {"user": key.user}
        if key.device:
            data["device"] = key.device
        return data

    async def _group_user_call(
        self,
        key: MembershipKey,
        action: str,
        data: dict[str, str],
        *,
        api_token: str | None,
    ) -> None:
        await self._post(
            f"/groups/{_segment(key.group)}/{action}.json",
            data,
            ApiResponse,
            operation=f"groups.{action}",
            resource_id=key.resource_id,
            api_token=api_token,
        )

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[ResilientClient]:
        if self._http is not None:
            yield self._http
            return
        async with self._client_factory(self._resilience) as client:
            yield client

    async def _get[T: ApiResponse](
        self,
        path: str,
        model: type[T],
        *,
        operation: str,
        resource_id: str | None = None,
        api_token: str | None = None,
    ) -> T:
        params = {"token": api_token or self._config.api_token}
        return await self._perform_request(
            "GET", path, model, operation=operation, resource_id=resource_id, params=params
        )

    async def _post[T: ApiResponse](
        self,
        path: str,
        data: dict[str, str],
        model: type[T],
        *,
        operation: str,
        resource_id: str | None = None,
        api_token: str | None = None,
    ) -> T:
        form = {"token": api_token or self._config.api_token, **data}
        return await self._perform_request(
            "POST", path, model, operation=operation, resource_id=resource_id, data=form
        )

    async def _perform_request[T: ApiResponse](
        self,
        method: str,
        path: str,
        model: type[T],
        *,
        operation: str,
        resource_id: str | None,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> T:
        url = self._resilience.url(path)
        log.debug("Pushover %s %s (%s)", method, path, operation)
        try:
            async with self._session() as client:
                if method == "GET":
                    response = await client.get(url, params=params)
                else:
                    response = await client.post(url, data=data)
        except httpx.HTTPError as exc:
            raise TransportFailure(
                f"{type(exc).__name__}: {exc}", operation=operation, resource_id=resource_id
            ) from exc

        try:
            raw = response.json()
        except ValueError as exc:
            raise TransportFailure(
                f"undecodable response (HTTP {response.status_code})",
                operation=operation,
                resource_id=resource_id,
            ) from exc
        if not isinstance(raw, dict) or "status" not in raw:
            raise TransportFailure(
                f"unexpected response payload (HTTP {response.status_code})",
                operation=operation,
                resource_id=resource_id,
            )

        envelope = ApiResponse.model_validate(raw)
        if not envelope.ok:
            log.error(
                "Pushover rejected %s (HTTP %s, request %s): %s",
                operation,
                response.status_code,
                envelope.request,
                "; ".join(envelope.errors),
            )
            raise PushoverAPIError(
                envelope.errors,
                operation=operation,
                resource_id=resource_id,
                status_code=response.status_code,
                request_id=envelope.request,
            )

        try:
            return model.model_validate(raw)
        except PydanticValidationError as exc:
            raise TransportFailure(
                f"malformed {operation} response", operation=operation, resource_id=resource_id
            ) from exc


if TYPE_CHECKING:
    _notification_check: NotificationGateway = PushoverClient(config=...)  # type: ignore[arg-type]
    _group_check: GroupGateway = PushoverClient(config=...)  # type: ignore[arg-type]
    _catalog_check: CatalogGateway = PushoverClient(config=...)  # type: ignore[arg-type]
