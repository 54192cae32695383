"""
Map and legend filter API routes.

This module serves the full public map state and the legend filter toggles.
Filter changes only dim or undim markers; pins and counts are untouched.
"""

from fastapi import APIRouter, HTTPException

from logic.config import get_map_config
from logic.status import status_table
from server.broadcast import publish
from server.state import map_state

router = APIRouter()


@router.get("/api/map")
def get_map():
    """Get everything a client needs to draw the public map.

    Returns:
        Dictionary with map config, status table, markers, counts, active
        filters, search overlay and last updated text.
    """
    return {
        "config": get_map_config(),
        "statuses": status_table(),
        **map_state.snapshot(),
    }


@router.get("/api/filters")
def get_filters():
    """Get the active status categories and the currently dimmed markers."""
    return map_state.filter_payload()


@router.post("/api/filters/reset")
async def reset_filters():
    """Make every status category active again."""
    payload = map_state.reset_filters()
    await publish(payload)
    return payload


@router.post("/api/filters/{status}/toggle")
async def toggle_filter(status: str):
    """Toggle a status category between active and dimmed.

    Raises:
        HTTPException: 400 if the status is not a known category.
    """
    try:
        payload = map_state.toggle_filter(status)
    except ValueError as e:
        raise HTTPException(400, str(e))

    await publish(payload)
    return payload
