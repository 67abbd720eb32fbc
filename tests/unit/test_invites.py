"""Unit tests for UnipileClient.send_invite."""
import json

import httpx
import pytest

from config.settings import Settings
from linkd.core.invites import DEFAULT_INVITE_MESSAGE, UnipileClient

PROFILE_URL = "https://www.linkedin.com/in/sarah-johnson"


def _client(handler, api_key: str = "unipile-key") -> UnipileClient:
    settings = Settings(unipile_api_key=api_key, unipile_base_url="https://api.unipile.test")
    return UnipileClient(settings=settings, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_send_invite_success():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"object": "UserInvitationSent"})

    result = await _client(handler).send_invite(PROFILE_URL, "Fellow Bruin here!")

    assert result.success is True
    assert PROFILE_URL in result.message
    assert seen[0].url.path == "/users/invitation"
    assert seen[0].headers["Authorization"] == "Bearer unipile-key"
    assert json.loads(seen[0].content) == {
        "provider": "linkedin",
        "identifier": PROFILE_URL,
        "message": "Fellow Bruin here!",
    }


@pytest.mark.asyncio
async def test_send_invite_uses_default_message():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    await _client(handler).send_invite(PROFILE_URL)
    assert json.loads(seen[0].content)["message"] == DEFAULT_INVITE_MESSAGE


@pytest.mark.asyncio
async def test_send_invite_without_key_makes_no_call():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200)

    result = await _client(handler, api_key="").send_invite(PROFILE_URL)

    assert result.success is False
    assert "configuration error" in result.message
    assert calls == []


@pytest.mark.asyncio
async def test_send_invite_reports_server_message():
    handler = lambda r: httpx.Response(422, json={"message": "Invitation already sent"})
    result = await _client(handler).send_invite(PROFILE_URL)

    assert result.success is False
    assert "Invitation already sent" in result.message


@pytest.mark.asyncio
async def test_send_invite_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await _client(handler).send_invite(PROFILE_URL)
    assert result.success is False
    assert "connection refused" in result.message
