"""Supabase REST wrapper for pin CRUD.

Reads are public and use the anon key. Writes carry the signed-in admin's
access token; the store decides whether that principal may write.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from logic import config

logger = logging.getLogger(__name__)

TABLE = "pins"


class StoreError(Exception):
    """Raised when a store request fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class AuthorizationError(StoreError):
    """Raised when the store rejects the caller's credentials."""


async def supabase_request(
        endpoint: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        access_token: Optional[str] = None,
        prefer: str = "return=representation",
) -> Any:
    """Make a request to the Supabase REST API.

    Args:
        endpoint: Path and query below /rest/v1/.
        method: HTTP method.
        body: JSON body for writes.
        access_token: User access token; the anon key is used when omitted.
        prefer: PostgREST Prefer header.

    Returns:
        Decoded JSON response, or None for an empty body.

    Raises:
        AuthorizationError: On 401/403.
        StoreError: On any other failure.
    """
    url = f"{config.SUPABASE_URL}/rest/v1/{endpoint}"
    headers = {
        "apikey": config.SUPABASE_ANON_KEY,
        "Authorization": f"Bearer {access_token or config.SUPABASE_ANON_KEY}",
        "Content-Type": "application/json",
        "Prefer": prefer,
    }
    timeout = aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT_SECONDS)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(method, url, headers=headers, json=body) as resp:
                text = await resp.text()
                status = resp.status
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise StoreError(f"Supabase request failed: {e}") from e

    if status in (401, 403):
        logger.error("Supabase rejected %s %s: %s", method, endpoint, text)
        raise AuthorizationError(f"Supabase request not authorized: {status}", status)

    if status >= 400:
        logger.error("Supabase error on %s %s: %s", method, endpoint, text)
        raise StoreError(f"Supabase request failed: {status}", status)

    if not text:
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise StoreError(f"Invalid Supabase response: {e}", status) from e


async def list_pins() -> List[Dict[str, Any]]:
    """Get all pins, newest first."""
    pins = await supabase_request(f"{TABLE}?select=*&order=created_at.desc")
    return pins or []


async def get_pin(pin_id: Any) -> Optional[Dict[str, Any]]:
    result = await supabase_request(f"{TABLE}?id=eq.{pin_id}&select=*")
    return result[0] if result else None


async def create_pin(pin: Dict[str, Any], access_token: str) -> Dict[str, Any]:
    """Insert a pin.

    Args:
        pin: Validated pin fields.
        access_token: Admin access token.

    Returns:
        The created pin, including its id and created_at.
    """
    result = await supabase_request(TABLE, method="POST", body=pin, access_token=access_token)
    if not result:
        raise StoreError("Supabase returned no created pin")
    return result[0]


async def update_pin(
        pin_id: Any, updates: Dict[str, Any], access_token: str
) -> Optional[Dict[str, Any]]:
    """Apply a partial update to a pin.

    Returns:
        The updated pin, or None if no pin has that id.
    """
    result = await supabase_request(
        f"{TABLE}?id=eq.{pin_id}", method="PATCH", body=updates, access_token=access_token
    )
    return result[0] if result else None


async def delete_pin(pin_id: Any, access_token: str) -> Optional[Dict[str, Any]]:
    """Delete a pin.

    Returns:
        The deleted pin, or None if no pin had that id.
    """
    result = await supabase_request(
        f"{TABLE}?id=eq.{pin_id}", method="DELETE", access_token=access_token
    )
    return result[0] if result else None
