"""
Server-sent events (SSE) broadcasting module.

This module manages SSE subscriber connections and pushes map changes to all
clients. Auth events only go to the subscribers of the session they concern,
so an admin page can force re-authentication when its session ends.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from server.auth import on_auth_state_change

logger = logging.getLogger(__name__)

# SSE subscriber queue -> session id of the connecting client (None for public clients)
subscribers: Dict[asyncio.Queue, Optional[str]] = {}


def subscribe(session_id: Optional[str] = None) -> asyncio.Queue:
    queue = asyncio.Queue()
    subscribers[queue] = session_id
    return queue


def unsubscribe(queue: asyncio.Queue) -> None:
    subscribers.pop(queue, None)


async def event_generator(queue: asyncio.Queue):
    """Generate SSE events from the queue.

    Args:
        queue: Async queue to read events from.

    Yields:
        SSE formatted event strings.
    """
    try:
        while True:
            data = await queue.get()
            yield f"data: {json.dumps(data)}\n\n"
    except asyncio.CancelledError:
        pass
    finally:
        unsubscribe(queue)


async def publish(payload: Optional[Dict[str, Any]]) -> None:
    """Broadcast a view-change payload to all SSE subscribers.

    Args:
        payload: JSON-serialisable payload. None is ignored.
    """
    if payload is None:
        return
    for queue in list(subscribers):
        await queue.put(payload)


async def publish_auth_event(event: str, session_id: str, session: Optional[dict]) -> None:
    """Send an auth state change to the subscribers of that session."""
    payload = {"type": "auth", "event": event}
    for queue, owner in list(subscribers.items()):
        if owner == session_id:
            await queue.put(payload)
    logger.debug("Auth event %s for session", event)


on_auth_state_change(publish_auth_event)
