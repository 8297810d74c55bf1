"""
Shared fixtures and fakes for the scriptwatch tests.

The fakes stand in for the three network collaborators (MEMBERS, the
LLM-backed generator, Google Sheets) so the monitor can be driven tick
by tick with a controllable clock.
"""

import asyncio
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from scriptwatch.monitor.events import CollectingEventSink, EventBroadcaster
from scriptwatch.monitor.models import (
    ExportOutcome,
    GenerationMode,
    GenerationResult,
    MembersAccount,
    Message,
    document_url,
)
from scriptwatch.monitor.scheduler import GenerationScheduler
from scriptwatch.monitor.state import RoomState


def make_message(message_id: int, body: str = "", name: str = "営業担当", send_time: int = 1700000000) -> Message:
    return Message(
        message_id=message_id,
        account=MembersAccount(account_id=1, name=name),
        body=body or f"message {message_id}",
        send_time=send_time + message_id,
        update_time=send_time + message_id,
    )


def make_messages(*ids: int) -> list[Message]:
    return [make_message(i) for i in ids]


# ==================== Fakes ====================

class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMembersClient:
    """Returns queued snapshots; an exception in the queue is raised instead."""

    def __init__(self, *snapshots):
        self.snapshots = list(snapshots)
        self.calls: list[tuple] = []
        self.closed = False

    async def get_room_messages(self, room_id, force: int = 1):
        self.calls.append((room_id, force))
        if not self.snapshots:
            return []
        item = self.snapshots[0] if len(self.snapshots) == 1 else self.snapshots.pop(0)
        if isinstance(item, Exception):
            raise item
        return list(item)

    async def close(self) -> None:
        self.closed = True


class StubGenerator:
    """
    Generator double that records calls.

    While `gate` is set to an unset asyncio.Event, generate() blocks on it,
    which keeps a pipeline in flight. `max_active` counts concurrent entries.
    """

    def __init__(self, content: str = "プロット①\n本文", error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.calls: list[dict] = []
        self.active = 0
        self.max_active = 0

    async def generate(self, messages, trigger_message_id=None, use_reasoning=False):
        self.calls.append({
            "message_ids": [m.id for m in messages],
            "trigger_message_id": trigger_message_id,
            "use_reasoning": use_reasoning,
        })
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.error is not None:
                raise self.error
            return GenerationResult(
                content=self.content,
                model_id="stub-model",
                mode=GenerationMode.REASONING if use_reasoning else GenerationMode.DIRECT,
                context_messages=list(messages),
                trigger_message_id=trigger_message_id,
            )
        finally:
            self.active -= 1

    @property
    def triggers(self) -> list:
        return [c["trigger_message_id"] for c in self.calls]


class StubExportPipeline:
    """Export double for scheduler tests."""

    def __init__(self, error: Optional[Exception] = None, configured: bool = True):
        self.error = error
        self.configured = configured
        self.calls: list[dict] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def export(self, content, context_messages, trigger_message_id=None, on_warning=None):
        self.calls.append({"content": content, "trigger_message_id": trigger_message_id})
        if self.error is not None:
            raise self.error
        return ExportOutcome(document_id="sheet-123", document_url=document_url("sheet-123"))


class FakeSheetsClient:
    """Records every spreadsheet call; failures are switched on per method."""

    def __init__(self):
        self.missing: set[str] = set()
        self.fail: dict[str, Exception] = {}
        self.first_sheet = (0, "シート1")
        self.copies: list[dict] = []
        self.permissions: list[str] = []
        self.renames: list[tuple] = []
        self.writes: list[dict] = []
        self.appended: list[tuple] = []
        self.scripts: list[tuple] = []

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail:
            raise self.fail[method]

    async def file_exists(self, file_id: str) -> bool:
        return file_id not in self.missing

    async def copy_file(self, template_id: str, name: str, folder_id: Optional[str] = None) -> str:
        self._maybe_fail("copy_file")
        self.copies.append({"template_id": template_id, "name": name, "folder_id": folder_id})
        return "newsheet0123456789"

    async def grant_anyone_writer(self, file_id: str) -> None:
        self._maybe_fail("grant_anyone_writer")
        self.permissions.append(file_id)

    async def get_first_sheet(self, spreadsheet_id: str):
        self._maybe_fail("get_first_sheet")
        return self.first_sheet

    async def rename_sheet(self, spreadsheet_id: str, sheet_id: int, title: str) -> None:
        self._maybe_fail("rename_sheet")
        self.renames.append((spreadsheet_id, sheet_id, title))

    async def write_cells(self, spreadsheet_id: str, sheet_title: str, cells: dict) -> None:
        self._maybe_fail("write_cells")
        self.writes.append({"spreadsheet_id": spreadsheet_id, "sheet_title": sheet_title, "cells": dict(cells)})

    async def append_row(self, spreadsheet_id: str, row: list, columns: str = "A:D") -> int:
        self._maybe_fail("append_row")
        self.appended.append((spreadsheet_id, list(row)))
        return len(self.appended) + 1

    async def run_script(self, script_id: str, function: str, parameters: list) -> dict:
        self._maybe_fail("run_script")
        self.scripts.append((script_id, function, list(parameters)))
        return {"done": True}


# ==================== Fixtures ====================

@pytest.fixture
def clock():
    return FakeClock(now=0.0)


@pytest.fixture
def sink():
    return CollectingEventSink()


@pytest.fixture
def broadcaster(sink):
    return EventBroadcaster(sink, debug=True)


@pytest.fixture
def room_state():
    return RoomState(room_id=196320)


@pytest.fixture
def generator():
    return StubGenerator()


@pytest.fixture
def scheduler(room_state, generator, broadcaster, clock):
    return GenerationScheduler(
        state=room_state,
        generator=generator,
        broadcaster=broadcaster,
        clock=clock,
    )


@pytest.fixture
def sheets():
    return FakeSheetsClient()


@pytest.fixture
def client():
    from scriptwatch.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
