"""Admin authentication module.

This module signs admins in against Supabase Auth (email and password) and
keeps their sessions server-side, referenced by a signed cookie. Uses aiohttp
for the Auth API and itsdangerous for secure cookie signing.

Listeners registered with on_auth_state_change() are told when a session
signs in, refreshes its token or signs out (including when an expired session
can no longer be refreshed).
"""

import asyncio
import inspect
import logging
import os
import secrets
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import aiohttp
from fastapi import APIRouter, Cookie, HTTPException
from fastapi.responses import JSONResponse
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import BaseModel

from logic import config

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY")

if not SESSION_SECRET_KEY:
    SESSION_SECRET_KEY = secrets.token_urlsafe(32)
    logger.warning(
        "SESSION_SECRET_KEY not set. Using temporary key. Set this in .env for production."
    )

# Session serializer for secure cookie signing
serializer = URLSafeTimedSerializer(SESSION_SECRET_KEY)

SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 7 days in seconds
COOKIE_NAME = "session"

# Refresh the access token when it has less than this many seconds left
REFRESH_MARGIN_SECONDS = 60

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

# session_id -> session data
user_sessions: Dict[str, Dict[str, Any]] = {}

# callback(event, session_id, session)
auth_listeners: List[Callable[[str, str, Optional[dict]], Any]] = []


class IdentityError(Exception):
    """Raised when Supabase Auth rejects a request or can't be reached."""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


# ==========================
# Supabase Auth calls
# ==========================
def _error_message(data: Any, fallback: str) -> str:
    if isinstance(data, dict):
        for key in ("msg", "error_description", "message", "error"):
            if data.get(key):
                return str(data[key])
    return fallback


async def _auth_request(path: str, body: Optional[dict] = None, access_token: Optional[str] = None) -> Any:
    """POST to the Supabase Auth API.

    Raises:
        IdentityError: With the service's message on a non-success status,
            or a generic message when the service can't be reached.
    """
    url = f"{config.SUPABASE_URL}/auth/v1/{path}"
    headers = {"apikey": config.SUPABASE_ANON_KEY, "Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    timeout = aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT_SECONDS)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=body or {}, headers=headers) as resp:
                status = resp.status
                data = await resp.json(content_type=None) if status != 204 else None
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.exception("Supabase Auth request to %s failed", path)
        raise IdentityError("Sign in failed") from e

    if status >= 400:
        raise IdentityError(_error_message(data, "Sign in failed"))

    return data


def _session_from_token(data: Dict[str, Any]) -> Dict[str, Any]:
    expires_at = data.get("expires_at")
    if expires_at is None:
        expires_at = int(time.time()) + int(data.get("expires_in", 3600))

    user = data.get("user") or {}
    return {
        "user": {"id": user.get("id"), "email": user.get("email")},
        "access_token": data["access_token"],
        "refresh_token": data.get("refresh_token"),
        "expires_at": int(expires_at),
    }


async def sign_in(email: str, password: str) -> Tuple[Optional[str], Optional[str]]:
    """Sign in with email and password.

    Args:
        email: Admin email.
        password: Admin password.

    Returns:
        Tuple of (session_id, error message). Exactly one of them is None.
    """
    try:
        data = await _auth_request("token?grant_type=password", {"email": email, "password": password})
        session = _session_from_token(data)
    except IdentityError as e:
        return None, str(e)
    except (KeyError, TypeError):
        logger.exception("Unexpected Supabase Auth response")
        return None, "Sign in failed"

    session_id = secrets.token_urlsafe(32)
    session["created_at"] = datetime.now().isoformat()
    user_sessions[session_id] = session

    await _emit(SIGNED_IN, session_id, session)
    return session_id, None


async def sign_out(session_id: str) -> bool:
    """Sign out a session locally and at Supabase Auth.

    Returns:
        True if Supabase Auth confirmed the sign-out.
    """
    session = user_sessions.pop(session_id, None)
    if session is None:
        return False

    await _emit(SIGNED_OUT, session_id, None)

    try:
        await _auth_request("logout", access_token=session["access_token"])
    except IdentityError:
        logger.warning("Supabase Auth sign-out failed for user %s", session["user"].get("email"))
        return False
    return True


async def refresh_session(session_id: str) -> Optional[Dict[str, Any]]:
    """Exchange a session's refresh token for a new access token.

    A session that can't be refreshed is dropped and reported as signed out.

    Returns:
        The refreshed session, or None if it was dropped.
    """
    session = user_sessions.get(session_id)
    if session is None:
        return None

    try:
        if not session.get("refresh_token"):
            raise IdentityError("Session has no refresh token")
        data = await _auth_request(
            "token?grant_type=refresh_token", {"refresh_token": session["refresh_token"]}
        )
        refreshed = _session_from_token(data)
    except (IdentityError, KeyError, TypeError) as e:
        logger.info("Session for %s expired: %s", session["user"].get("email"), e)
        user_sessions.pop(session_id, None)
        await _emit(SIGNED_OUT, session_id, None)
        return None

    refreshed["created_at"] = session.get("created_at")
    user_sessions[session_id] = refreshed
    await _emit(TOKEN_REFRESHED, session_id, refreshed)
    return refreshed


# ==========================
# Sessions
# ==========================
def session_id_from_cookie(session_cookie: Optional[str]) -> Optional[str]:
    """Validate a signed session cookie.

    Args:
        session_cookie: Signed session cookie value.

    Returns:
        The session id if the signature is valid, None otherwise.
    """
    if not session_cookie:
        return None

    try:
        return serializer.loads(session_cookie, max_age=SESSION_MAX_AGE)
    except (BadSignature, SignatureExpired):
        return None


async def get_session(session_cookie: Optional[str]) -> Optional[Tuple[str, Dict[str, Any]]]:
    """Get the current session, refreshing its token if it is about to expire.

    Args:
        session_cookie: Signed session cookie value.

    Returns:
        Tuple of (session_id, session), or None if there is no valid session.
    """
    session_id = session_id_from_cookie(session_cookie)
    if not session_id:
        return None

    session = user_sessions.get(session_id)
    if session is None:
        return None

    if session["expires_at"] - time.time() < REFRESH_MARGIN_SECONDS:
        session = await refresh_session(session_id)
        if session is None:
            return None

    return session_id, session


def on_auth_state_change(callback: Callable[[str, str, Optional[dict]], Any]) -> Callable[[], None]:
    """Subscribe to auth state changes.

    Args:
        callback: Called with (event, session_id, session). May be a coroutine
            function.

    Returns:
        Function that removes the subscription.
    """
    auth_listeners.append(callback)

    def unsubscribe():
        if callback in auth_listeners:
            auth_listeners.remove(callback)

    return unsubscribe


async def _emit(event: str, session_id: str, session: Optional[dict]) -> None:
    for callback in list(auth_listeners):
        result = callback(event, session_id, session)
        if inspect.isawaitable(result):
            await result


async def require_admin(session: Optional[str] = Cookie(None, alias=COOKIE_NAME)) -> Dict[str, Any]:
    """Dependency that requires a signed-in admin.

    Returns:
        Session data with its session_id.

    Raises:
        HTTPException: 401 if there is no valid session.
    """
    current = await get_session(session)
    if current is None:
        raise HTTPException(status_code=401, detail="Not signed in")

    session_id, data = current
    return {"session_id": session_id, **data}


# ==========================
# Routes
# ==========================
@router.post("/auth/login")
async def login(data: LoginRequest):
    """Sign in with email and password and set the session cookie.

    Raises:
        HTTPException: 400 if a field is missing, 401 if sign in fails.
    """
    email = data.email.strip()
    if not email or not data.password:
        raise HTTPException(status_code=400, detail="Please enter email and password")

    session_id, error = await sign_in(email, data.password)
    if error:
        raise HTTPException(status_code=401, detail=error)

    response = JSONResponse({"success": True, "user": user_sessions[session_id]["user"]})
    response.set_cookie(
        key=COOKIE_NAME,
        value=serializer.dumps(session_id),
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=False,  # Set to True in production with HTTPS
        samesite="lax",
    )
    return response


@router.post("/auth/logout")
async def logout(session: Optional[str] = Cookie(None, alias=COOKIE_NAME)):
    """Log out the current admin and clear the session cookie."""
    session_id = session_id_from_cookie(session)
    if session_id:
        await sign_out(session_id)

    response = JSONResponse({"success": True, "message": "Logged out successfully"})
    response.delete_cookie(key=COOKIE_NAME)
    return response


@router.get("/auth/me")
async def get_current_user(session: Optional[str] = Cookie(None, alias=COOKIE_NAME)):
    """Get the signed-in admin, or a null user if not signed in."""
    current = await get_session(session)

    if current:
        return {"authenticated": True, "user": current[1]["user"]}

    return {"authenticated": False, "user": None}
