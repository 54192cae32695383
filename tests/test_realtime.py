"""
Tests for the realtime change feed.

Run with: python -m pytest tests/test_realtime.py
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from conftest import make_pin
from logic.state import DELETE, INSERT, UPDATE, MapState
from server.realtime import (
    CHANNEL_TOPIC,
    RealtimeSubscriber,
    join_message,
    parse_change,
    realtime_url,
)


def change_message(change_type, record=None, old_record=None, table="pins"):
    return {
        "topic": CHANNEL_TOPIC,
        "event": "postgres_changes",
        "payload": {
            "data": {
                "schema": "public",
                "table": table,
                "type": change_type,
                "record": record,
                "old_record": old_record,
                "commit_timestamp": "2025-12-01T10:20:30Z",
            },
            "ids": [1],
        },
        "ref": None,
    }


class TestParseChange:
    def test_insert(self):
        event = parse_change(change_message("INSERT", record=make_pin(1)))
        assert event.kind == INSERT
        assert event.record["id"] == 1

    def test_update(self):
        event = parse_change(change_message("UPDATE", record=make_pin(1, "critical"), old_record={"id": 1}))
        assert event.kind == UPDATE
        assert event.record["status"] == "critical"

    def test_delete_carries_old_record(self):
        event = parse_change(change_message("DELETE", record={}, old_record={"id": 1}))
        assert event.kind == DELETE
        assert event.record == {"id": 1}

    def test_other_table_ignored(self):
        assert parse_change(change_message("INSERT", record=make_pin(1), table="users")) is None

    def test_non_change_messages_ignored(self):
        assert parse_change({"topic": "phoenix", "event": "phx_reply", "payload": {}}) is None
        assert parse_change(change_message("TRUNCATE", record={"id": 1})) is None
        assert parse_change(change_message("INSERT", record=None)) is None


def test_realtime_url():
    assert realtime_url("https://abc.supabase.co", "key") == (
        "wss://abc.supabase.co/realtime/v1/websocket?apikey=key&vsn=1.0.0"
    )
    assert realtime_url("http://localhost:54321", "key").startswith("ws://localhost:54321/")


def test_join_message_subscribes_to_pins():
    message = join_message("1")
    assert message["event"] == "phx_join"
    assert message["topic"] == CHANNEL_TOPIC
    changes = message["payload"]["config"]["postgres_changes"]
    assert changes == [{"event": "*", "schema": "public", "table": "pins"}]


@pytest.mark.asyncio
async def test_handle_message_applies_changes_in_order():
    state = MapState()
    state.load([make_pin(1)])
    on_payload = AsyncMock()
    subscriber = RealtimeSubscriber(state, on_payload, url="ws://test")

    await subscriber.handle_message(change_message("INSERT", record=make_pin(2, "critical")))
    await subscriber.handle_message(change_message("UPDATE", record=make_pin(2, "weather")))
    await subscriber.handle_message(change_message("DELETE", old_record={"id": 1}))

    assert [p["id"] for p in state.pins] == [2]
    assert state.find(2)["status"] == "weather"
    sent = [call.args[0]["type"] for call in on_payload.await_args_list]
    assert sent == ["pin_added", "pins_rendered", "pin_removed"]


@pytest.mark.asyncio
async def test_handle_message_ignores_join_reply():
    state = MapState()
    on_payload = AsyncMock()
    subscriber = RealtimeSubscriber(state, on_payload, url="ws://test")

    await subscriber.handle_message(
        {"topic": CHANNEL_TOPIC, "event": "phx_reply", "payload": {"status": "error"}, "ref": "1"}
    )

    on_payload.assert_not_awaited()
    assert state.pins == []


@pytest.mark.asyncio
async def test_dropped_update_publishes_nothing_new():
    state = MapState()
    on_payload = AsyncMock()
    subscriber = RealtimeSubscriber(state, on_payload, url="ws://test")

    await subscriber.handle_message(change_message("UPDATE", record=make_pin(5)))

    on_payload.assert_awaited_once_with(None)
    assert state.pins == []


@pytest.mark.asyncio
async def test_handle_message_ignores_non_object_frames():
    state = MapState()
    on_payload = AsyncMock()
    subscriber = RealtimeSubscriber(state, on_payload, url="ws://test")

    await subscriber.handle_message(["not", "a", "dict"])
    await subscriber.handle_message("text")

    on_payload.assert_not_awaited()


@pytest.mark.asyncio
async def test_run_reconnects_after_unexpected_error():
    resync = AsyncMock()
    subscriber = RealtimeSubscriber(
        MapState(), AsyncMock(), resync=resync, url="ws://test", reconnect_delay=0
    )
    attempts = []
    reconnected = asyncio.Event()

    async def listen(session):
        attempts.append(session)
        if len(attempts) == 1:
            raise RuntimeError("handler failed")
        if len(attempts) == 2:
            raise KeyError("id")
        reconnected.set()
        await asyncio.Event().wait()

    with patch.object(subscriber, "_listen", side_effect=listen):
        subscriber.start()
        await asyncio.wait_for(reconnected.wait(), timeout=1)
        await subscriber.stop()

    assert len(attempts) == 3
    assert resync.await_count == 2
