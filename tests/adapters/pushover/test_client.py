from __future__ import annotations

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from pushstate.adapters.pushover import PushoverAPIError, PushoverClient
from pushstate.config.pushover import PushoverConfig  # noqa: TC001
from pushstate.domain.errors import RemoteRejection, TransportFailure
from pushstate.domain.model import MemberRow, MembershipKey, NotificationRequest, Priority

from tests.helpers.http import make_client_factory


def _form(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


def test_send_message_posts_form(pushover_config: PushoverConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": 1, "request": "req-1", "receipt": "rcpt-1"})

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))
    request = NotificationRequest(
        recipient="uUser",
        message="Down",
        priority=Priority.EMERGENCY,
        retry=60,
        expire=3600,
        tags=("db", "prod"),
        html=True,
    )

    result = asyncio.run(client.send_message(request))

    assert result.request_id == "req-1"
    assert result.receipt == "rcpt-1"
    sent = seen[0]
    assert sent.method == "POST"
    assert str(sent.url) == "https://api.example.test/1/messages.json"
    form = _form(sent)
    assert form["token"] == "aAppToken"
    assert form["user"] == "uUser"
    assert form["priority"] == "2"
    assert form["retry"] == "60"
    assert form["tags"] == "db,prod"
    assert form["html"] == "1"
    assert "title" not in form


def test_per_call_token_overrides_default(pushover_config: PushoverConfig) -> None:
    tokens: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        tokens.append(_form(request)["token"])
        return httpx.Response(200, json={"status": 1, "request": "req-1"})

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    asyncio.run(
        client.send_message(NotificationRequest(recipient="u", message="m"), api_token="aOther")
    )

    assert tokens == ["aOther"]


def test_rejection_carries_remote_messages(pushover_config: PushoverConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"status": 0, "request": "req-9", "errors": ["user identifier is invalid"]},
        )

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    with pytest.raises(PushoverAPIError) as excinfo:
        asyncio.run(client.send_message(NotificationRequest(recipient="bad", message="m")))

    error = excinfo.value
    assert isinstance(error, RemoteRejection)
    assert error.messages == ("user identifier is invalid",)
    assert error.status_code == 400
    assert error.request_id == "req-9"
    assert error.operation == "messages.send"
    assert "aAppToken" not in str(error)


def test_rejection_with_keyed_errors(pushover_config: PushoverConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"status": 0, "errors": {"memo": ["is too long"]}})

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    with pytest.raises(PushoverAPIError) as excinfo:
        asyncio.run(client.add_group_user(MembershipKey("gGroup", "uUser"), memo="x"))

    assert excinfo.value.messages == ("memo is too long",)
    assert excinfo.value.operation == "groups.add_user"
    assert excinfo.value.resource_id == "gGroup/uUser"


def test_undecodable_body_is_transport_failure(pushover_config: PushoverConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>Bad gateway</html>")

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    with pytest.raises(TransportFailure, match="HTTP 502"):
        asyncio.run(client.cancel_receipt("rcpt-1"))


def test_network_error_is_transport_failure(pushover_config: PushoverConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    with pytest.raises(TransportFailure) as excinfo:
        asyncio.run(client.list_sounds())

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
    assert excinfo.value.operation == "sounds.list"


def test_list_group_members(pushover_config: PushoverConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "status": 1,
                "request": "req-1",
                "name": "Ops",
                "users": [
                    {"user": "uA", "device": None, "memo": "", "disabled": False},
                    {"user": "uB", "device": "phone", "memo": "lead", "disabled": True},
                ],
            },
        )

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    rows = asyncio.run(client.list_group_members("gGroup"))

    assert rows == [
        MemberRow(user="uA"),
        MemberRow(user="uB", device="phone", memo="lead", disabled=True),
    ]
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/1/groups/gGroup.json"
    assert seen[0].url.params["token"] == "aAppToken"


@pytest.mark.parametrize(
    ("call", "path"),
    [
        ("remove_group_user", "/1/groups/gGroup/delete_user.json"),
        ("enable_group_user", "/1/groups/gGroup/enable_user.json"),
        ("disable_group_user", "/1/groups/gGroup/disable_user.json"),
    ],
)
def test_group_user_calls(pushover_config: PushoverConfig, call: str, path: str) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": 1, "request": "req-1"})

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    asyncio.run(getattr(client, call)(MembershipKey("gGroup", "uUser", "phone")))

    assert seen[0].url.path == path
    assert _form(seen[0]) == {"token": "aAppToken", "user": "uUser", "device": "phone"}


def test_add_group_user_sends_empty_memo_to_clear(pushover_config: PushoverConfig) -> None:
    forms: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        forms.append(request.content.decode())
        return httpx.Response(200, json={"status": 1})

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    asyncio.run(client.add_group_user(MembershipKey("gGroup", "uUser"), memo=""))
    asyncio.run(client.add_group_user(MembershipKey("gGroup", "uUser")))

    assert "memo=" in forms[0]
    assert "memo" not in forms[1]


def test_receipt_status(pushover_config: PushoverConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/1/receipts/rcpt-1.json"
        return httpx.Response(
            200,
            json={
                "status": 1,
                "request": "req-2",
                "acknowledged": 1,
                "acknowledged_at": 1700000000,
                "acknowledged_by": "uUser",
                "acknowledged_by_device": "phone",
                "last_delivered_at": 1699999990,
                "expired": 0,
                "expires_at": 1700003600,
                "called_back": 0,
                "called_back_at": 0,
            },
        )

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    status = asyncio.run(client.get_receipt("rcpt-1"))

    assert status.acknowledged
    assert status.acknowledged_by_device == "phone"
    assert status.acknowledged_at is not None
    assert status.acknowledged_at.timestamp() == 1700000000
    assert status.called_back_at is None
    assert not status.outstanding


def test_cancel_by_tag_returns_count(pushover_config: PushoverConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/1/receipts/cancel_by_tag/db.json"
        return httpx.Response(200, json={"status": 1, "canceled": 3})

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    assert asyncio.run(client.cancel_receipts_by_tag("db")) == 3


def test_sounds_and_validation(pushover_config: PushoverConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("sounds.json"):
            return httpx.Response(
                200, json={"status": 1, "sounds": {"siren": "Siren", "bike": "Bike"}}
            )
        assert _form(request)["device"] == "phone"
        return httpx.Response(
            200, json={"status": 1, "group": 0, "devices": ["phone"], "licenses": ["iOS"]}
        )

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    async def run() -> None:
        async with client:
            catalog = await client.list_sounds()
            validation = await client.validate_user("uUser", device="phone")
        assert catalog.keys == ("bike", "siren")
        assert "siren" in catalog
        assert not validation.is_group
        assert validation.devices == ("phone",)

    asyncio.run(run())


def test_rename_group(pushover_config: PushoverConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": 1})

    client = PushoverClient(config=pushover_config, client_factory=make_client_factory(handler))

    asyncio.run(client.rename_group("gGroup", "On-call rota"))

    assert seen[0].url.path == "/1/groups/gGroup/rename.json"
    assert _form(seen[0])["name"] == "On-call rota"
