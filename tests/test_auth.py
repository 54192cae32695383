"""
Tests for admin sessions and auth state notifications.

Run with: python -m pytest tests/test_auth.py
"""

import time
from unittest.mock import AsyncMock, patch

import pytest

from server import auth


def token_response(access_token="access-1", expires_in=3600):
    return {
        "access_token": access_token,
        "refresh_token": "refresh-1",
        "expires_in": expires_in,
        "expires_at": int(time.time()) + expires_in,
        "user": {"id": "user-1", "email": "admin@example.org"},
    }


@pytest.fixture
def events():
    received = []
    unsubscribe = auth.on_auth_state_change(lambda event, sid, session: received.append((event, sid)))
    yield received
    unsubscribe()


@pytest.mark.asyncio
async def test_sign_in_emits_signed_in(events):
    with patch("server.auth._auth_request", new_callable=AsyncMock, return_value=token_response()):
        session_id, error = await auth.sign_in("admin@example.org", "secret")

    assert error is None
    assert auth.user_sessions[session_id]["access_token"] == "access-1"
    assert events == [(auth.SIGNED_IN, session_id)]


@pytest.mark.asyncio
async def test_sign_in_failure_returns_message(events):
    with patch(
        "server.auth._auth_request",
        new_callable=AsyncMock,
        side_effect=auth.IdentityError("Invalid login credentials"),
    ):
        session_id, error = await auth.sign_in("admin@example.org", "wrong")

    assert session_id is None
    assert error == "Invalid login credentials"
    assert auth.user_sessions == {}
    assert events == []


@pytest.mark.asyncio
async def test_expiring_session_is_refreshed(events):
    with patch("server.auth._auth_request", new_callable=AsyncMock, return_value=token_response(expires_in=10)):
        session_id, _ = await auth.sign_in("admin@example.org", "secret")

    with patch(
        "server.auth._auth_request",
        new_callable=AsyncMock,
        return_value=token_response(access_token="access-2"),
    ):
        current = await auth.get_session(auth.serializer.dumps(session_id))

    assert current[0] == session_id
    assert current[1]["access_token"] == "access-2"
    assert events[-1] == (auth.TOKEN_REFRESHED, session_id)


@pytest.mark.asyncio
async def test_failed_refresh_signs_out(events):
    with patch("server.auth._auth_request", new_callable=AsyncMock, return_value=token_response(expires_in=10)):
        session_id, _ = await auth.sign_in("admin@example.org", "secret")

    with patch(
        "server.auth._auth_request",
        new_callable=AsyncMock,
        side_effect=auth.IdentityError("Invalid Refresh Token"),
    ):
        current = await auth.get_session(auth.serializer.dumps(session_id))

    assert current is None
    assert session_id not in auth.user_sessions
    assert events[-1] == (auth.SIGNED_OUT, session_id)


@pytest.mark.asyncio
async def test_bad_cookie_has_no_session():
    assert await auth.get_session(None) is None
    assert await auth.get_session("not-a-signed-value") is None


def test_unsubscribe_stops_notifications():
    unsubscribe = auth.on_auth_state_change(lambda *args: None)
    count = len(auth.auth_listeners)
    unsubscribe()
    assert len(auth.auth_listeners) == count - 1
