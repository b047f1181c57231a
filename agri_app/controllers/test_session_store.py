"""
SessionStore
status transitions driven by the auth service change feed
"""
import asyncio
import json

import httpx
import pytest

from agri_app.controllers.session_store import SessionStore
from agri_app.errors import AuthError
from agri_app.models.models import AuthStatus, Credentials
from agri_app.services.auth_service import AuthService

BASE_URL = "https://example.supabase.co"


def token_body(email="grower@farm.io", access="access-1", refresh="refresh-1"):
    return {
        "access_token": access,
        "refresh_token": refresh,
        "token_type": "bearer",
        "expires_in": 3600,
        "user": {"id": "5f1c0d0e-user", "email": email},
    }


def make_store(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = SessionStore(AuthService(BASE_URL, "anon-key", client=client))
    store.mount()
    return store


def ok_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/auth/v1/token":
        grant = request.url.params["grant_type"]
        if grant == "password":
            body = json.loads(request.content)
            if body["password"] != "secret":
                return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})
            return httpx.Response(200, json=token_body(body["email"]))
        if grant == "refresh_token":
            return httpx.Response(200, json=token_body(access="access-2", refresh="refresh-2"))
    if path == "/auth/v1/logout":
        return httpx.Response(204)
    return httpx.Response(404, json={"msg": "not found"})


def test_initial_status_is_unknown():
    store = make_store(ok_handler)
    assert store.status == AuthStatus.UNKNOWN
    assert store.is_resolving
    assert not store.can_render_protected


def test_restore_without_session_is_anonymous():
    async def scenario():
        store = make_store(ok_handler)
        assert await store.restore_session() is None
        assert store.status == AuthStatus.ANONYMOUS
        assert not store.is_resolving

    asyncio.run(scenario())


def test_restore_from_refresh_token():
    async def scenario():
        store = make_store(ok_handler)
        session = await store.restore_session("refresh-1")
        assert session.access_token == "access-2"
        assert store.status == AuthStatus.AUTHENTICATED
        assert store.user.email == "grower@farm.io"

    asyncio.run(scenario())


def test_restore_failure_is_anonymous():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    async def scenario():
        store = make_store(handler)
        assert await store.restore_session("refresh-1") is None
        assert store.status == AuthStatus.ANONYMOUS

    asyncio.run(scenario())


def test_sign_in_then_sign_out():
    async def scenario():
        store = make_store(ok_handler)
        await store.restore_session()
        seen = []
        store.subscribe(lambda s: seen.append(store.status))

        await store.sign_in(Credentials(email="Grower@Farm.io", password="secret"))
        assert store.status == AuthStatus.AUTHENTICATED
        assert store.user.email == "grower@farm.io"

        await store.sign_out()
        # reported by the feed before sign_out returns
        assert store.status == AuthStatus.ANONYMOUS
        assert store.session is None
        assert seen == [AuthStatus.AUTHENTICATED, AuthStatus.ANONYMOUS]

    asyncio.run(scenario())


def test_failed_sign_in_leaves_status_unchanged():
    async def scenario():
        store = make_store(ok_handler)
        await store.restore_session()
        with pytest.raises(AuthError) as exc:
            await store.sign_in(Credentials(email="grower@farm.io", password="wrong"))
        assert str(exc.value) == "Invalid login credentials"
        assert exc.value.status == 400
        assert store.status == AuthStatus.ANONYMOUS

    asyncio.run(scenario())


def test_unsubscribe_stops_notifications():
    async def scenario():
        store = make_store(ok_handler)
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        await store.sign_in(Credentials(email="grower@farm.io", password="secret"))
        assert seen == []

    asyncio.run(scenario())


def test_listener_error_does_not_block_others():
    async def scenario():
        store = make_store(ok_handler)
        seen = []

        def broken(session):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(seen.append)
        session = await store.sign_in(Credentials(email="grower@farm.io", password="secret"))
        assert seen == [session]

    asyncio.run(scenario())


def test_mount_twice_raises_and_unmount_detaches():
    async def scenario():
        store = make_store(ok_handler)
        with pytest.raises(RuntimeError):
            store.mount()

        store.unmount()
        assert not store.mounted
        await store.auth.sign_in_with_password(Credentials(email="grower@farm.io", password="secret"))
        assert store.status == AuthStatus.UNKNOWN

    asyncio.run(scenario())
