"""
Monitoring Sessions

A MonitorSession is one observer connection watching one room. It owns
the room's state, the monitor/scheduler pair, and two cancellable tasks:
the poll loop and the heartbeat. Stopping a session cancels both and
closes its event stream; a generation already in flight finishes on its
own and its events are dropped.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional

from .config import DEFAULT_POLL_INTERVAL_MS, HEARTBEAT_INTERVAL, MIN_POLL_INTERVAL_MS
from .events import EventBroadcaster, EventSink
from .export import ExportPipeline
from .generator import ScriptGenerator
from .members import MembersClient
from .models import generate_session_id
from .room_monitor import RoomMonitor
from .scheduler import GenerationScheduler
from .state import RoomState

logger = logging.getLogger(__name__)


def _flag(value: Optional[str]) -> bool:
    return value == "1"


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass
class SessionParams:
    """Parameters supplied when an observer connects."""
    room_id: int
    interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    last_id: Optional[int] = None
    use_reasoning: bool = False
    generate_on_connect: bool = False
    export_on_generate: bool = False
    debug: bool = False

    def __post_init__(self):
        self.interval_ms = max(MIN_POLL_INTERVAL_MS, int(self.interval_ms or DEFAULT_POLL_INTERVAL_MS))

    @classmethod
    def from_query(cls, query: Mapping[str, str], default_room_id: int) -> "SessionParams":
        """Build from stream query parameters; flags are "1" for true."""
        return cls(
            room_id=_int_or_none(query.get("roomId")) or default_room_id,
            interval_ms=_int_or_none(query.get("intervalMs")) or DEFAULT_POLL_INTERVAL_MS,
            last_id=_int_or_none(query.get("lastId")),
            use_reasoning=_flag(query.get("useReasoning")),
            generate_on_connect=_flag(query.get("generateOnConnect")),
            export_on_generate=_flag(query.get("exportOnGenerate")),
            debug=_flag(query.get("debug")),
        )


class MonitorSession:
    """One observer watching one room."""

    def __init__(
        self,
        params: SessionParams,
        members: MembersClient,
        generator: ScriptGenerator,
        sink: EventSink,
        export_pipeline: Optional[ExportPipeline] = None,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or generate_session_id()
        self.params = params
        self.heartbeat_interval = heartbeat_interval
        self.created_at = datetime.now(timezone.utc)

        self.state = RoomState.resume_from(params.room_id, params.last_id)
        self.broadcaster = EventBroadcaster(sink, debug=params.debug)
        self.scheduler = GenerationScheduler(
            state=self.state,
            generator=generator,
            broadcaster=self.broadcaster,
            export_pipeline=export_pipeline,
            export_on_generate=params.export_on_generate,
            use_reasoning=params.use_reasoning,
        )
        self.monitor = RoomMonitor(
            state=self.state,
            members=members,
            scheduler=self.scheduler,
            broadcaster=self.broadcaster,
            generate_on_connect=params.generate_on_connect,
        )

        self._poll_task: Optional[asyncio.Task] = None
        self._heartbeat_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def start(self) -> None:
        """Send hello and start the poll loop and heartbeat."""
        if self.is_running:
            logger.warning(f"Session {self.session_id} already running")
            return

        await self.broadcaster.hello(self.params.room_id, self.params.interval_ms)
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info(
            f"Session {self.session_id}: watching room {self.params.room_id} "
            f"every {self.params.interval_ms}ms"
        )

    async def stop(self) -> None:
        """Cancel timers and close the event stream. In-flight generations are left alone."""
        self.broadcaster.close()
        for task in (self._poll_task, self._heartbeat_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._poll_task = None
        self._heartbeat_task = None
        logger.info(f"Session {self.session_id}: stopped")

    async def _poll_loop(self) -> None:
        interval = self.params.interval_ms / 1000
        while True:
            try:
                await self.monitor.poll()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Session {self.session_id}: poll error: {e}")
                await self.broadcaster.error(str(e))
            await asyncio.sleep(interval)

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            await self.broadcaster.ping()

    def get_state(self) -> dict:
        return {
            "sessionId": self.session_id,
            "createdAt": self.created_at.isoformat(),
            "running": self.is_running,
            "generationsInFlight": self.scheduler.in_flight,
            "room": self.state.to_dict(),
        }


class SessionManager:
    """Tracks live monitoring sessions for status reporting and shutdown."""

    def __init__(self):
        self.sessions: Dict[str, MonitorSession] = {}

    def register(self, session: MonitorSession) -> None:
        self.sessions[session.session_id] = session
        logger.info(f"Registered session {session.session_id} (total: {len(self.sessions)})")

    async def remove(self, session_id: str) -> bool:
        """Stop and forget a session."""
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        await session.stop()
        logger.info(f"Removed session {session_id} (total: {len(self.sessions)})")
        return True

    def get_session(self, session_id: str) -> Optional[MonitorSession]:
        return self.sessions.get(session_id)

    def list_sessions(self) -> list[dict]:
        return [s.get_state() for s in self.sessions.values()]

    async def stop_all(self) -> None:
        """Stop every session (for shutdown)."""
        for session_id in list(self.sessions.keys()):
            await self.remove(session_id)


# Global session manager instance
_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Get the global session manager."""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager
