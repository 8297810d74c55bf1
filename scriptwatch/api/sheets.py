"""
Sheets API Routes

Manual export of an already generated script, outside any monitoring
session. Best-effort warnings only reach the log here.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from scriptwatch.api.deps import get_export_pipeline
from scriptwatch.monitor.export import ExportPipeline
from scriptwatch.monitor.models import Message

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sheets"])


class ExportRequest(BaseModel):
    """Request body for a manual export."""
    chatMessages: list[Message] = Field(default_factory=list)
    generatedScript: str = ""


@router.post("/api/sheets/export")
async def export_to_sheet(
    body: ExportRequest,
    pipeline: ExportPipeline = Depends(get_export_pipeline),
):
    """
    Copy the template and fill it from the given chat and script.

    Returns:
        200 {ok, spreadsheetId, spreadsheetUrl}, 400 on bad input or a
        missing template, 500 when the export itself fails
    """
    if not pipeline.is_configured:
        return JSONResponse(
            {"ok": False, "error": "SHEETS_TEMPLATE_FILE_ID is not set"},
            status_code=400,
        )
    if not body.chatMessages:
        return JSONResponse({"ok": False, "error": "chatMessages is required"}, status_code=400)
    if not body.generatedScript:
        return JSONResponse({"ok": False, "error": "generatedScript is required"}, status_code=400)

    try:
        outcome = await pipeline.export(body.generatedScript, body.chatMessages)
    except Exception as e:
        logger.error(f"Manual export failed: {e}")
        return JSONResponse({"ok": False, "error": str(e)}, status_code=500)

    return JSONResponse({
        "ok": True,
        "spreadsheetId": outcome.document_id,
        "spreadsheetUrl": outcome.document_url,
    })
