"""
Pin management API routes.

Public endpoints read the cached pins. Admin endpoints create, update and
delete pins in the store, apply the change to the live map straight away (the
realtime echo of the same change is then a no-op) and then record it in the
audit trail. A confirmed change the cache has no pin for reloads the cache.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from audit_service import AuditLogger
from logic.render import render_pin_list
from logic.validation import PinCreate, PinUpdate
from server import store
from server.auth import require_admin
from server.broadcast import publish
from server.state import map_state, reload_pins

logger = logging.getLogger(__name__)

router = APIRouter()


def _admin_name(admin: Dict[str, Any]) -> str:
    user = admin.get("user") or {}
    return user.get("email") or user.get("id") or "unknown"


async def _apply_or_reload(payload: Optional[Dict[str, Any]]) -> None:
    # The cache missed a write the store confirmed; resync from the store
    if payload is None:
        await reload_pins()
        return
    await publish(payload)


@router.get("/api/pins")
def list_pins():
    """Get all cached pins, newest first, with counts by status."""
    return {"pins": map_state.pins, "counts": map_state.counts()}


@router.get("/api/pins/{pin_id}")
async def get_pin(pin_id: str):
    """Get a single pin from the store.

    Raises:
        HTTPException: 404 if not found, 502 if the store request fails.
    """
    try:
        pin = await store.get_pin(pin_id)
    except store.StoreError:
        logger.exception("Failed to get pin %s", pin_id)
        raise HTTPException(502, "Failed to load pin. Please try again.")

    if pin is None:
        raise HTTPException(404, f"Pin '{pin_id}' not found")
    return pin


@router.post("/api/pins", status_code=201)
async def create_pin(data: PinCreate, admin: Dict[str, Any] = Depends(require_admin)):
    """Create a pin.

    Args:
        data: Validated pin fields.
        admin: Signed-in admin session.

    Returns:
        The created pin with its id and created_at.

    Raises:
        HTTPException: 403 if the store rejects the admin, 502 on store failure.
    """
    try:
        pin = await store.create_pin(data.to_record(), admin["access_token"])
    except store.AuthorizationError:
        raise HTTPException(403, "Not authorized to save pins")
    except store.StoreError:
        logger.exception("Failed to save pin")
        raise HTTPException(502, "Failed to save pin. Please try again.")

    await publish(map_state.apply_insert(pin))
    AuditLogger.log_create(_admin_name(admin), pin)
    return pin


@router.patch("/api/pins/{pin_id}")
async def update_pin(
        pin_id: str, data: PinUpdate, admin: Dict[str, Any] = Depends(require_admin)
):
    """Update any subset of a pin's fields.

    Raises:
        HTTPException: 400 if no fields were supplied, 404 if the pin does not
            exist, 403 if the store rejects the admin, 502 on store failure.
    """
    changes = data.to_changes()
    if not changes:
        raise HTTPException(400, "No valid fields supplied")

    before = map_state.find(pin_id)

    try:
        pin = await store.update_pin(pin_id, changes, admin["access_token"])
    except store.AuthorizationError:
        raise HTTPException(403, "Not authorized to update pins")
    except store.StoreError:
        logger.exception("Failed to update pin %s", pin_id)
        raise HTTPException(502, "Failed to update pin. Please try again.")

    if pin is None:
        raise HTTPException(404, f"Pin '{pin_id}' not found")

    await _apply_or_reload(map_state.apply_update(pin))
    AuditLogger.log_update(_admin_name(admin), before, pin)
    return pin


@router.delete("/api/pins/{pin_id}")
async def delete_pin(pin_id: str, admin: Dict[str, Any] = Depends(require_admin)):
    """Delete a pin.

    Raises:
        HTTPException: 404 if the pin does not exist, 403 if the store rejects
            the admin, 502 on store failure.
    """
    before = map_state.find(pin_id)

    try:
        deleted = await store.delete_pin(pin_id, admin["access_token"])
    except store.AuthorizationError:
        raise HTTPException(403, "Not authorized to delete pins")
    except store.StoreError:
        logger.exception("Failed to delete pin %s", pin_id)
        raise HTTPException(502, "Failed to delete pin. Please try again.")

    if deleted is None:
        raise HTTPException(404, f"Pin '{pin_id}' not found")

    await _apply_or_reload(map_state.apply_delete(deleted))
    AuditLogger.log_delete(_admin_name(admin), pin_id, before or deleted)
    return {"success": True, "id": deleted.get("id")}


@router.get("/api/admin/pins")
def admin_pin_list(admin: Dict[str, Any] = Depends(require_admin)):
    """Get the admin pin list (title and status color per pin)."""
    return render_pin_list(map_state.pins)


@router.get("/api/admin/audit")
def get_audit_logs(
        pin_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
        admin: Dict[str, Any] = Depends(require_admin),
):
    """Get recent audit log entries, newest first."""
    return {"logs": AuditLogger.get_logs(pin_id=pin_id, limit=limit, offset=offset)}
