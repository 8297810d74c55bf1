"""
Event Broadcaster

Turns monitor state transitions into an ordered, timestamped stream of
event records for one observer. Business logic only talks to the
broadcaster; the transport sits behind an EventSink.

Events sent (server → observer):
- { type: "hello", roomId, intervalMs }
- { type: "ping", timestamp }
- { type: "messages", messages: [...] }
- { type: "status", phase: "poll_ok" | "generation_start" | "generation_done"
                          | "export_start" | "export_done", ... }
- { type: "debug", message }        (only when debug is requested)
- { type: "error", message }
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events emitted to an observer."""
    HELLO = "hello"
    PING = "ping"
    MESSAGES = "messages"
    STATUS = "status"
    DEBUG = "debug"
    ERROR = "error"


class Phase(str, Enum):
    """Pipeline phases reported through status events."""
    POLL_OK = "poll_ok"
    GENERATION_START = "generation_start"
    GENERATION_DONE = "generation_done"
    EXPORT_START = "export_start"
    EXPORT_DONE = "export_done"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class MonitorEvent:
    """Event emitted during monitoring."""
    type: EventType
    data: dict = field(default_factory=dict)
    timestamp: str = field(default_factory=_utc_now_iso)
    seq: int = 0

    def to_dict(self) -> dict:
        """Flatten to the wire shape."""
        return {
            "type": self.type.value,
            "timestamp": self.timestamp,
            "seq": self.seq,
            **self.data,
        }


class EventSink(Protocol):
    """Transport for one observer connection."""

    async def send(self, event: MonitorEvent) -> None:
        ...


class QueueEventSink:
    """
    Sink backed by an asyncio.Queue.

    The SSE response drains the queue; producers never block.
    """

    def __init__(self, maxsize: int = 0):
        self.queue: asyncio.Queue[MonitorEvent] = asyncio.Queue(maxsize=maxsize)

    async def send(self, event: MonitorEvent) -> None:
        self.queue.put_nowait(event)

    async def get(self) -> MonitorEvent:
        return await self.queue.get()


class CollectingEventSink:
    """Sink that keeps every event in a list (useful for tests and CLIs)."""

    def __init__(self):
        self.events: list[MonitorEvent] = []

    async def send(self, event: MonitorEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[MonitorEvent]:
        return [e for e in self.events if e.type == event_type]

    def phases(self) -> list[str]:
        return [e.data["phase"] for e in self.of_type(EventType.STATUS)]


class EventBroadcaster:
    """
    Serializes events for one observer.

    - Stamps each event with a timestamp and a monotonically increasing seq
    - Drops debug events unless debug mode is on
    - After close(), every send is a silent no-op
    - A failing sink never raises into the caller
    """

    def __init__(self, sink: EventSink, debug: bool = False):
        """
        Initialize broadcaster.

        Args:
            sink: Where events are delivered
            debug: Whether debug events are forwarded
        """
        self.sink = sink
        self.debug_enabled = debug
        self._closed = False
        self._seq = 0

    @property
    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Mark the sink closed; later sends are dropped."""
        self._closed = True

    async def emit(self, event_type: EventType, **data: Any) -> Optional[MonitorEvent]:
        """
        Send an event to the observer.

        Returns:
            The event sent, or None if it was dropped
        """
        if self._closed:
            return None
        if event_type == EventType.DEBUG and not self.debug_enabled:
            return None

        self._seq += 1
        event = MonitorEvent(type=event_type, data=data, seq=self._seq)
        try:
            await self.sink.send(event)
        except Exception as e:
            logger.debug(f"Failed to send {event_type.value} event: {e}")
            return None
        return event

    # ==================== Convenience ====================

    async def hello(self, room_id: int, interval_ms: int) -> None:
        await self.emit(EventType.HELLO, roomId=room_id, intervalMs=interval_ms)

    async def ping(self) -> None:
        await self.emit(EventType.PING)

    async def messages(self, messages: list[dict]) -> None:
        await self.emit(EventType.MESSAGES, messages=messages)

    async def status(self, phase: Phase, **data: Any) -> None:
        await self.emit(EventType.STATUS, phase=phase.value, **data)

    async def debug(self, message: str) -> None:
        await self.emit(EventType.DEBUG, message=message)

    async def error(self, message: str) -> None:
        await self.emit(EventType.ERROR, message=message)
