"""
Tests for new-message detection in the room monitor.
"""

import asyncio

import pytest

from scriptwatch.monitor.errors import GenerationError, MembersAPIError
from scriptwatch.monitor.events import EventType
from scriptwatch.monitor.room_monitor import RoomMonitor
from scriptwatch.monitor.state import RoomState

from conftest import FakeMembersClient, make_messages


def build_monitor(room_state, scheduler, broadcaster, *snapshots, generate_on_connect=False):
    members = FakeMembersClient(*snapshots)
    monitor = RoomMonitor(
        state=room_state,
        members=members,
        scheduler=scheduler,
        broadcaster=broadcaster,
        generate_on_connect=generate_on_connect,
    )
    return monitor, members


@pytest.mark.asyncio
async def test_first_poll_sets_baseline_without_generating(room_state, scheduler, broadcaster, generator, sink):
    monitor, members = build_monitor(room_state, scheduler, broadcaster, make_messages(1, 2, 3))

    new = await monitor.poll()

    assert new == []
    assert generator.calls == []
    assert room_state.last_seen_message_id == 3
    assert room_state.is_first_poll is False
    assert members.calls == [(196320, 1)]
    messages_event = sink.of_type(EventType.MESSAGES)[0]
    assert [m["message_id"] for m in messages_event.data["messages"]] == [1, 2, 3]


@pytest.mark.asyncio
async def test_new_message_triggers_one_generation(room_state, scheduler, broadcaster, generator, sink):
    monitor, _ = build_monitor(
        room_state, scheduler, broadcaster,
        make_messages(1, 2, 3),
        make_messages(1, 2, 3, 4),
    )

    await monitor.poll()
    new = await monitor.poll()
    await scheduler.wait_idle()

    assert [m.id for m in new] == [4]
    assert generator.triggers == [4]
    assert room_state.last_seen_message_id == 4
    assert "poll_ok" in sink.phases()


@pytest.mark.asyncio
async def test_mark_advances_even_when_generation_fails(room_state, scheduler, broadcaster, generator):
    generator.error = GenerationError("boom")
    monitor, _ = build_monitor(
        room_state, scheduler, broadcaster,
        make_messages(1, 2, 3),
        make_messages(1, 2, 3, 4),
    )

    await monitor.poll()
    await monitor.poll()
    await scheduler.wait_idle()

    assert room_state.last_seen_message_id == 4
    assert room_state.last_generation_completed_at is None


@pytest.mark.asyncio
async def test_same_snapshot_twice_triggers_nothing(room_state, scheduler, broadcaster, generator):
    monitor, _ = build_monitor(room_state, scheduler, broadcaster, make_messages(1, 2, 3))

    await monitor.poll()
    await monitor.poll()
    await monitor.poll()

    assert generator.calls == []
    assert room_state.last_seen_message_id == 3


@pytest.mark.asyncio
async def test_late_lower_id_is_never_new(room_state, scheduler, broadcaster, generator):
    monitor, _ = build_monitor(
        room_state, scheduler, broadcaster,
        make_messages(5, 6),
        make_messages(3, 5, 6),
    )

    await monitor.poll()
    new = await monitor.poll()

    assert new == []
    assert generator.calls == []
    assert room_state.last_seen_message_id == 6


@pytest.mark.asyncio
async def test_unsorted_snapshot_is_processed_in_id_order(room_state, scheduler, broadcaster, generator):
    generator.gate = asyncio.Event()
    monitor, _ = build_monitor(
        room_state, scheduler, broadcaster,
        make_messages(1),
        make_messages(3, 1, 2),
    )

    await monitor.poll()
    new = await monitor.poll()
    generator.gate.set()
    await scheduler.wait_idle()

    assert [m.id for m in new] == [2, 3]
    # 2 started the pipeline, 3 arrived while it was in flight
    assert generator.triggers == [2]
    assert room_state.last_seen_message_id == 3


@pytest.mark.asyncio
async def test_fetch_failure_leaves_state_unchanged(room_state, scheduler, broadcaster, generator, sink):
    monitor, _ = build_monitor(
        room_state, scheduler, broadcaster,
        make_messages(1, 2),
        MembersAPIError("MEMBERS API error 503: unavailable", status_code=503),
        make_messages(1, 2, 3),
    )

    await monitor.poll()
    before = room_state.to_dict()
    assert await monitor.poll() == []
    assert room_state.to_dict() == before
    assert sink.of_type(EventType.ERROR)[-1].data["message"] == "MEMBERS API error 503: unavailable"

    await monitor.poll()
    await scheduler.wait_idle()
    assert generator.triggers == [3]


@pytest.mark.asyncio
async def test_generate_on_connect_runs_once(room_state, scheduler, broadcaster, generator):
    monitor, _ = build_monitor(
        room_state, scheduler, broadcaster,
        make_messages(1, 2, 3),
        generate_on_connect=True,
    )

    await monitor.poll()
    await scheduler.wait_idle()
    await monitor.poll()
    await scheduler.wait_idle()

    assert generator.triggers == [None]
    assert generator.calls[0]["message_ids"] == [1, 2, 3]
    assert room_state.last_seen_message_id == 3


@pytest.mark.asyncio
async def test_generate_on_connect_waits_for_messages(room_state, scheduler, broadcaster, generator):
    monitor, _ = build_monitor(
        room_state, scheduler, broadcaster,
        [],
        make_messages(1),
        generate_on_connect=True,
    )

    await monitor.poll()
    assert generator.calls == []
    assert room_state.is_first_poll is True

    await monitor.poll()
    await scheduler.wait_idle()
    assert generator.triggers == [None]
    assert room_state.last_seen_message_id == 1


@pytest.mark.asyncio
async def test_resumed_baseline_treats_higher_ids_as_new(scheduler, broadcaster, generator, clock):
    state = RoomState.resume_from(196320, 2)
    scheduler.state = state
    monitor, _ = build_monitor(state, scheduler, broadcaster, make_messages(1, 2, 3))

    new = await monitor.poll()
    await scheduler.wait_idle()

    assert [m.id for m in new] == [3]
    assert generator.triggers == [3]
    assert state.last_seen_message_id == 3


@pytest.mark.asyncio
async def test_poll_drains_due_queue_entries(room_state, scheduler, broadcaster, generator, clock):
    monitor, _ = build_monitor(
        room_state, scheduler, broadcaster,
        make_messages(1),
        make_messages(1, 2),
        make_messages(1, 2, 3),
    )

    await monitor.poll()
    await monitor.poll()
    await scheduler.wait_idle()
    assert generator.triggers == [2]

    clock.now = 60.0
    await monitor.poll()
    assert [p.trigger_message_id for p in room_state.pending_queue] == [3]

    clock.now = 301.0
    await monitor.poll()
    await scheduler.wait_idle()
    assert generator.triggers == [2, 3]
    assert room_state.pending_queue == []
