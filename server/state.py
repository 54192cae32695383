"""
Shared map state for the running application.

The process owns exactly one MapState. Everything that reads or changes the
pin cache goes through it.
"""

import logging

from logic.state import MapState
from server import store
from server.broadcast import publish

logger = logging.getLogger(__name__)

map_state = MapState()


async def reload_pins() -> bool:
    """Reload the cache from the store and push a full re-render to clients.

    Returns:
        True if the pins were loaded. On failure the cache is left unchanged.
    """
    try:
        pins = await store.list_pins()
    except store.StoreError:
        logger.exception("Failed to load pins")
        return False

    await publish(map_state.load(pins))
    return True
