"""
MEMBERS API Routes

Passthrough listing of a room's current messages.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from scriptwatch.api.deps import get_members_client, get_monitor_config
from scriptwatch.monitor.config import MonitorConfig
from scriptwatch.monitor.members import MembersClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["members"])


@router.get("/api/members/messages")
async def list_messages(
    roomId: Optional[int] = None,
    force: int = 1,
    config: MonitorConfig = Depends(get_monitor_config),
    members: MembersClient = Depends(get_members_client),
):
    """Raw message list for a room; 500 with an error string on failure."""
    room_id = roomId or config.default_room_id
    try:
        messages = await members.get_room_messages(room_id, force=force)
    except Exception as e:
        logger.error(f"Listing messages for room {room_id} failed: {e}")
        return JSONResponse({"error": str(e)}, status_code=500)

    return JSONResponse([m.to_broadcast() for m in messages])
