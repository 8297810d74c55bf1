"""
Tests for the observer event broadcaster.
"""

import asyncio

import pytest

from scriptwatch.monitor.events import (
    CollectingEventSink,
    EventBroadcaster,
    EventType,
    Phase,
    QueueEventSink,
)


class FailingSink:
    async def send(self, event):
        raise ConnectionResetError("observer went away")


@pytest.mark.asyncio
async def test_events_carry_type_timestamp_and_seq(sink):
    broadcaster = EventBroadcaster(sink)

    await broadcaster.hello(196320, 10000)
    await broadcaster.status(Phase.POLL_OK)

    first, second = [e.to_dict() for e in sink.events]
    assert first["type"] == "hello"
    assert first["roomId"] == 196320
    assert first["intervalMs"] == 10000
    assert first["timestamp"].endswith("+00:00")
    assert second["type"] == "status"
    assert second["phase"] == "poll_ok"
    assert second["seq"] > first["seq"]


@pytest.mark.asyncio
async def test_debug_events_require_debug_mode():
    quiet_sink = CollectingEventSink()
    quiet = EventBroadcaster(quiet_sink, debug=False)
    await quiet.debug("tick 1")
    await quiet.error("boom")
    assert [e.type for e in quiet_sink.events] == [EventType.ERROR]

    loud_sink = CollectingEventSink()
    loud = EventBroadcaster(loud_sink, debug=True)
    await loud.debug("tick 1")
    assert loud_sink.of_type(EventType.DEBUG)[0].data == {"message": "tick 1"}


@pytest.mark.asyncio
async def test_send_after_close_is_noop(sink):
    broadcaster = EventBroadcaster(sink, debug=True)
    broadcaster.close()

    result = await broadcaster.emit(EventType.ERROR, message="late")
    await broadcaster.ping()

    assert result is None
    assert sink.events == []
    assert broadcaster.is_closed


@pytest.mark.asyncio
async def test_failing_sink_never_raises():
    broadcaster = EventBroadcaster(FailingSink())

    assert await broadcaster.emit(EventType.PING) is None
    await broadcaster.error("still fine")


@pytest.mark.asyncio
async def test_queue_sink_delivers_in_order():
    sink = QueueEventSink()
    broadcaster = EventBroadcaster(sink)

    await broadcaster.hello(1, 1000)
    await broadcaster.messages([{"message_id": 1}])

    first = await asyncio.wait_for(sink.get(), timeout=1)
    second = await asyncio.wait_for(sink.get(), timeout=1)
    assert first.type == EventType.HELLO
    assert second.to_dict()["messages"] == [{"message_id": 1}]
