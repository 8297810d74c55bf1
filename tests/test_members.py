"""
Tests for the MEMBERS web API client.
"""

import httpx
import pytest

from scriptwatch.monitor.errors import MembersAPIError
from scriptwatch.monitor.members import MembersClient

PAYLOAD = [
    {
        "message_id": 101,
        "account": {"account_id": 9, "name": "田中"},
        "type": 1,
        "body": "■基本情報<br>株式会社サンプル",
        "send_time": 1700000000,
        "update_time": 1700000000,
    },
    {
        "message_id": 102,
        "account": {"account_id": 9, "name": "田中"},
        "type": 1,
        "body": "追記です",
        "send_time": 1700000060,
        "update_time": 1700000060,
    },
]


def client_with(handler, token="secret-token"):
    return MembersClient(token=token, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_room_messages_parses_snapshot():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=PAYLOAD)

    client = client_with(handler)
    messages = await client.get_room_messages(196320)
    await client.close()

    assert seen["url"] == "https://api.mem-bers.jp/web-api/rooms/196320/messages?force=1"
    assert seen["auth"] == "Bearer secret-token"
    assert [m.id for m in messages] == [101, 102]
    assert messages[0].author == "田中"
    assert messages[1].sent_at.year == 2023


@pytest.mark.asyncio
async def test_force_zero_is_passed_through():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["force"] = request.url.params.get("force")
        return httpx.Response(200, json=[])

    client = client_with(handler)
    assert await client.get_room_messages(5, force=0) == []
    assert seen["force"] == "0"


@pytest.mark.asyncio
async def test_error_status_raises_with_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="unauthorized")

    client = client_with(handler)
    with pytest.raises(MembersAPIError) as exc_info:
        await client.get_room_messages(196320)

    assert str(exc_info.value) == "MEMBERS API error 401: unauthorized"
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = client_with(handler)
    with pytest.raises(MembersAPIError, match="request failed"):
        await client.get_room_messages(196320)


@pytest.mark.asyncio
async def test_invalid_body_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": "shape"})

    client = client_with(handler)
    with pytest.raises(MembersAPIError, match="invalid body"):
        await client.get_room_messages(196320)


@pytest.mark.asyncio
async def test_missing_token_fails_without_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    client = client_with(handler, token=None)
    with pytest.raises(MembersAPIError, match="token"):
        await client.get_room_messages(196320)
    assert calls == []
