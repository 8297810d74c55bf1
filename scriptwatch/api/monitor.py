"""
Room Monitor API Routes

Provides endpoints for:
- SSE observer stream (one monitoring session per connection)
- Status endpoint (read-only)

Each stream connection owns its own session: closing the connection
stops that session's poll loop and heartbeat.
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from scriptwatch.api.deps import (
    get_export_pipeline,
    get_generator,
    get_members_client,
    get_monitor_config,
)
from scriptwatch.monitor.config import MonitorConfig
from scriptwatch.monitor.events import QueueEventSink
from scriptwatch.monitor.export import ExportPipeline
from scriptwatch.monitor.generator import ScriptGenerator
from scriptwatch.monitor.members import MembersClient
from scriptwatch.monitor.session import MonitorSession, SessionParams, get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["monitor"])


# ==================== SSE Endpoint ====================

@router.get("/api/members/messages/stream")
async def message_stream(
    request: Request,
    config: MonitorConfig = Depends(get_monitor_config),
    members: MembersClient = Depends(get_members_client),
    generator: ScriptGenerator = Depends(get_generator),
    export_pipeline: ExportPipeline = Depends(get_export_pipeline),
):
    """
    SSE stream for one monitoring session.

    Query parameters: roomId, intervalMs (floor 1000), lastId,
    useReasoning, generateOnConnect, exportOnGenerate, debug ("1" = on).

    Events sent (server → client), one JSON object per `data:` line:
    - { type: 'hello', roomId, intervalMs }
    - { type: 'ping' }
    - { type: 'messages', messages: [...] }
    - { type: 'status', phase: ... }
    - { type: 'debug', message }
    - { type: 'error', message }
    """
    params = SessionParams.from_query(request.query_params, config.default_room_id)
    sink = QueueEventSink()
    session = MonitorSession(
        params=params,
        members=members,
        generator=generator,
        sink=sink,
        export_pipeline=export_pipeline,
    )
    manager = get_session_manager()
    manager.register(session)
    await session.start()

    async def event_generator():
        try:
            while True:
                event = await sink.get()
                yield {"data": json.dumps(event.to_dict(), ensure_ascii=False)}
        except asyncio.CancelledError:
            logger.info(f"Observer disconnected from session {session.session_id}")
            raise
        finally:
            await manager.remove(session.session_id)

    return EventSourceResponse(event_generator())


# ==================== Read-Only API Endpoints ====================

@router.get("/api/monitor/status")
async def monitor_status():
    """Live sessions with their room state."""
    sessions = get_session_manager().list_sessions()
    return JSONResponse({
        "status": "running" if sessions else "idle",
        "session_count": len(sessions),
        "sessions": sessions,
    })
