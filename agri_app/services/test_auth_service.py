"""
AuthService against a mocked identity service
"""
import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from agri_app.errors import AuthError
from agri_app.models.models import AuthChangeEvent, AuthUser, Credentials, Session
from agri_app.services.auth_service import AuthService

BASE_URL = "https://example.supabase.co/"
CREDS = Credentials(email="grower@farm.io", password="secret")


def token_body(access="access-1", refresh="refresh-1", expires_in=3600):
    return {
        "access_token": access,
        "refresh_token": refresh,
        "expires_in": expires_in,
        "user": {"id": "user-1", "email": "grower@farm.io"},
    }


class Recorder:
    """MockTransport handler that records requests and replays canned responses"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def make_service(recorder):
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    service = AuthService(BASE_URL, "anon-key", client=client)
    events = []
    service.on_auth_state_change(lambda event, session: events.append((event, session)))
    return service, events


def test_sign_in_posts_password_grant():
    async def scenario():
        recorder = Recorder(httpx.Response(200, json=token_body()))
        service, events = make_service(recorder)

        session = await service.sign_in_with_password(CREDS)

        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://example.supabase.co/auth/v1/token?grant_type=password"
        assert request.headers["apikey"] == "anon-key"
        assert json.loads(request.content) == {"email": "grower@farm.io", "password": "secret"}

        assert session.access_token == "access-1"
        assert session.expires_at is not None
        assert service.current_session is session
        assert events == [(AuthChangeEvent.SIGNED_IN, session)]

    asyncio.run(scenario())


def test_sign_in_error_body_becomes_auth_error():
    async def scenario():
        recorder = Recorder(httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}))
        service, events = make_service(recorder)

        with pytest.raises(AuthError) as exc:
            await service.sign_in_with_password(CREDS)
        assert exc.value.message == "Invalid login credentials"
        assert exc.value.code == "invalid_grant"
        assert exc.value.status == 400
        assert events == []
        assert service.current_session is None

    asyncio.run(scenario())


def test_network_error_becomes_auth_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    async def scenario():
        service, _ = make_service(handler)
        with pytest.raises(AuthError) as exc:
            await service.sign_in_with_password(CREDS)
        assert isinstance(exc.value.cause, httpx.ConnectTimeout)

    asyncio.run(scenario())


def test_sign_up_pending_confirmation_returns_no_session():
    async def scenario():
        recorder = Recorder(httpx.Response(200, json={"id": "user-2", "email": "new@farm.io"}))
        service, events = make_service(recorder)

        user, session = await service.sign_up(Credentials(email="new@farm.io", password="secret"))
        assert recorder.requests[0].url.path == "/auth/v1/signup"
        assert user == AuthUser(id="user-2", email="new@farm.io")
        assert session is None
        assert events == []

    asyncio.run(scenario())


def test_sign_up_with_session_signs_in():
    async def scenario():
        recorder = Recorder(httpx.Response(200, json=token_body()))
        service, events = make_service(recorder)

        user, session = await service.sign_up(CREDS)
        assert user.id == "user-1"
        assert events == [(AuthChangeEvent.SIGNED_IN, session)]

    asyncio.run(scenario())


def test_sign_out_clears_session_even_when_remote_fails():
    async def scenario():
        recorder = Recorder(
            httpx.Response(200, json=token_body()),
            httpx.Response(500, json={"msg": "upstream down"}),
        )
        service, events = make_service(recorder)
        await service.sign_in_with_password(CREDS)

        with pytest.raises(AuthError):
            await service.sign_out()

        assert recorder.requests[1].headers["authorization"] == "Bearer access-1"
        assert service.current_session is None
        assert events[-1] == (AuthChangeEvent.SIGNED_OUT, None)

    asyncio.run(scenario())


def test_sign_out_without_session_skips_request():
    async def scenario():
        recorder = Recorder()
        service, events = make_service(recorder)
        await service.sign_out()
        assert recorder.requests == []
        assert events == [(AuthChangeEvent.SIGNED_OUT, None)]

    asyncio.run(scenario())


def test_get_session_refreshes_near_expiry():
    async def scenario():
        recorder = Recorder(
            httpx.Response(200, json=token_body(expires_in=30)),
            httpx.Response(200, json=token_body(access="access-2", refresh="refresh-2")),
        )
        service, events = make_service(recorder)
        await service.sign_in_with_password(CREDS)

        session = await service.get_session()
        assert session.access_token == "access-2"
        assert json.loads(recorder.requests[1].content) == {"refresh_token": "refresh-1"}
        assert events[-1][0] == AuthChangeEvent.TOKEN_REFRESHED

    asyncio.run(scenario())


def test_get_session_failed_refresh_signs_out():
    async def scenario():
        recorder = Recorder(
            httpx.Response(200, json=token_body(expires_in=30)),
            httpx.Response(400, json={"error": "invalid_grant", "error_description": "Refresh Token Not Found"}),
        )
        service, events = make_service(recorder)
        await service.sign_in_with_password(CREDS)

        with pytest.raises(AuthError):
            await service.get_session()
        assert service.current_session is None
        assert events[-1] == (AuthChangeEvent.SIGNED_OUT, None)

    asyncio.run(scenario())


def test_get_session_without_anything_is_none():
    async def scenario():
        service, _ = make_service(Recorder())
        assert await service.get_session() is None
        with pytest.raises(AuthError) as exc:
            await service.refresh_session()
        assert exc.value.code == "no_refresh_token"

    asyncio.run(scenario())


def test_session_from_token_response_expires_at():
    now = datetime(2024, 3, 1, tzinfo=timezone.utc)
    body = token_body()
    body["expires_at"] = int((now + timedelta(minutes=10)).timestamp())
    session = Session.from_token_response(body, now=now)
    assert session.expires_at == now + timedelta(minutes=10)
    assert not session.is_expired(now)
    assert session.expires_within(600, now)
    assert not session.expires_within(599, now)
