"""
Realtime pin change feed.

Subscribes to Supabase Realtime (Phoenix channel protocol over a websocket)
for changes to the pins table and applies each change to the map state in
the order it arrives, pushing the resulting view change to SSE clients.
"""

import asyncio
import itertools
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from logic import config
from logic.state import DELETE, INSERT, UPDATE, MapState, PinEvent
from server import store

logger = logging.getLogger(__name__)

CHANNEL_TOPIC = "realtime:pins-realtime"
HEARTBEAT_INTERVAL_SECONDS = 30

CHANGE_KINDS = {"INSERT": INSERT, "UPDATE": UPDATE, "DELETE": DELETE}


def realtime_url(base_url: Optional[str] = None, api_key: Optional[str] = None) -> str:
    """Build the Realtime websocket URL from the project URL."""
    base_url = base_url if base_url is not None else config.SUPABASE_URL
    api_key = api_key if api_key is not None else config.SUPABASE_ANON_KEY
    if base_url.startswith("https://"):
        base_url = "wss://" + base_url[len("https://"):]
    elif base_url.startswith("http://"):
        base_url = "ws://" + base_url[len("http://"):]
    return f"{base_url}/realtime/v1/websocket?apikey={api_key}&vsn=1.0.0"


def join_message(ref: str) -> Dict[str, Any]:
    """Build the channel join message for postgres changes on the pins table."""
    return {
        "topic": CHANNEL_TOPIC,
        "event": "phx_join",
        "payload": {
            "config": {
                "broadcast": {"self": False},
                "presence": {"key": ""},
                "postgres_changes": [
                    {"event": "*", "schema": "public", "table": store.TABLE}
                ],
            },
            "access_token": config.SUPABASE_ANON_KEY,
        },
        "ref": ref,
        "join_ref": ref,
    }


def heartbeat_message(ref: str) -> Dict[str, Any]:
    return {"topic": "phoenix", "event": "heartbeat", "payload": {}, "ref": ref}


def parse_change(message: Dict[str, Any]) -> Optional[PinEvent]:
    """Convert a Realtime message into a pin event.

    Args:
        message: Decoded websocket message.

    Returns:
        The PinEvent, or None if the message is not a pin change.
    """
    if message.get("event") != "postgres_changes":
        return None

    data = (message.get("payload") or {}).get("data") or {}
    kind = CHANGE_KINDS.get(data.get("type"))
    if kind is None or data.get("table", store.TABLE) != store.TABLE:
        return None

    record = data.get("old_record") if kind == DELETE else data.get("record")
    if not record or record.get("id") is None:
        return None

    return PinEvent(kind=kind, record=record)


class RealtimeSubscriber:
    """Long-lived subscription that feeds pin changes into a MapState."""

    def __init__(
            self,
            state: MapState,
            on_payload: Callable[[Optional[dict]], Awaitable[None]],
            resync: Optional[Callable[[], Awaitable[Any]]] = None,
            url: Optional[str] = None,
            reconnect_delay: float = config.REALTIME_RECONNECT_SECONDS,
    ):
        self.state = state
        self.on_payload = on_payload
        self.resync = resync
        self.url = url or realtime_url()
        self.reconnect_delay = reconnect_delay
        self._refs = itertools.count(1)
        self._task: Optional[asyncio.Task] = None

    def _next_ref(self) -> str:
        return str(next(self._refs))

    async def handle_message(self, message: Any) -> None:
        """Apply one Realtime message. Non-change messages are ignored."""
        if not isinstance(message, dict):
            logger.warning("Ignoring non-object Realtime message")
            return

        if message.get("event") == "phx_reply" and message.get("topic") == CHANNEL_TOPIC:
            status = (message.get("payload") or {}).get("status")
            if status != "ok":
                logger.error("Realtime channel join failed: %s", message.get("payload"))
            return

        event = parse_change(message)
        if event is None:
            return

        await self.on_payload(self.state.apply_event(event))

    async def _heartbeat(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        while not ws.closed:
            await asyncio.sleep(HEARTBEAT_INTERVAL_SECONDS)
            await ws.send_json(heartbeat_message(self._next_ref()))

    async def _listen(self, session: aiohttp.ClientSession) -> None:
        async with session.ws_connect(self.url) as ws:
            await ws.send_json(join_message(self._next_ref()))
            heartbeat = asyncio.create_task(self._heartbeat(ws))
            try:
                async for msg in ws:
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        try:
                            message = json.loads(msg.data)
                        except json.JSONDecodeError:
                            logger.warning("Ignoring malformed Realtime message")
                            continue
                        await self.handle_message(message)
                    elif msg.type in (aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                        break
            finally:
                heartbeat.cancel()
                try:
                    await heartbeat
                except asyncio.CancelledError:
                    pass
                except (aiohttp.ClientError, ConnectionResetError) as e:
                    logger.warning("Realtime heartbeat failed: %s", e)

    async def run(self) -> None:
        """Keep the subscription open, reconnecting after a delay when it drops.

        Changes made while disconnected are picked up by reloading the cache
        from the store on every reconnect.
        """
        first = True
        async with aiohttp.ClientSession() as session:
            while True:
                try:
                    if not first and self.resync is not None:
                        await self.resync()
                    first = False
                    await self._listen(session)
                    logger.warning("Realtime connection closed")
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    logger.warning("Realtime connection failed: %s", e)
                except Exception:
                    logger.exception("Realtime subscription error")

                await asyncio.sleep(self.reconnect_delay)

    def start(self) -> asyncio.Task:
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
