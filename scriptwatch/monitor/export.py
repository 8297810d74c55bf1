"""
Export Pipeline

Turns a generated script plus its chat context into a spreadsheet:

1. Extract chat fields and split the script into plot / Q&A segments
2. Copy the template (falling back to the drive root if the destination
   folder is not accessible) and rename its first sheet
3. Optionally grant link-editor access and look up a company profile
4. Write every field into its fixed cell
5. Schedule the delayed Apps Script formatting pass (detached)
6. Append a summary row to the results log (detached)

Steps 1, 2 (copy) and 4 are fatal and raise ExportError. Everything else
is best-effort and reported through the warning channel only.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, Optional, Sequence

from .company import CompanyInfoExtractor
from .errors import ExportError
from .extract import ExportFields, extract_export_fields, split_script_by_sections
from .models import ExportOutcome, Message, document_url
from .sheets import SheetsClient
from .utils.tasks import spawn_detached

logger = logging.getLogger(__name__)

WarningCallback = Callable[[str], Awaitable[None]]


# ==================== Cell Layout ====================

FIELD_CELLS = {
    "basic_info": "C1",
    "company_url": "F3",
    "product_info": "C6",
    "closing_info": "C13",
}

SCRIPT_CELL = "C15"

SEGMENT_CELLS = {
    "plot_1": "C17",
    "plot_2": "C19",
    "plot_3": "C21",
    "plot_4": "C23",
    "plot_5": "C25",
    "qa": "C27",
}

COMPANY_INFO_CELLS = {
    "representative": "C2",
    "employee_count": "C4",
    "head_office_address": "F2",
}


def build_cell_values(fields: ExportFields, content: str) -> dict[str, str]:
    """Map extracted fields, the full script and its segments to cells."""
    cells = {cell: getattr(fields, name) for name, cell in FIELD_CELLS.items()}
    cells[SCRIPT_CELL] = content
    for name, cell in SEGMENT_CELLS.items():
        cells[cell] = fields.segments.get(name, "").strip()
    return cells


def format_result_time(send_time: Optional[int]) -> str:
    """Local `YYYY/MM/DD HH:MM` for the results log."""
    ts = send_time if send_time else time.time()
    return datetime.fromtimestamp(ts).strftime("%Y/%m/%d %H:%M")


def result_file_label(document_id: str) -> str:
    return f"スプレッドシート_{document_id[:8]}..."


class ExportPipeline:
    """Creates and fills one spreadsheet per export call."""

    def __init__(
        self,
        sheets: SheetsClient,
        template_file_id: str,
        destination_folder_id: Optional[str] = None,
        results_sheet_id: Optional[str] = None,
        grant_editor_permission: bool = True,
        permission_delay: float = 2.0,
        formatting_script_id: Optional[str] = None,
        formatting_function: str = "formatKeywords",
        formatting_delay_minutes: float = 1.0,
        company_info: Optional[CompanyInfoExtractor] = None,
    ):
        """
        Initialize pipeline.

        Args:
            sheets: Spreadsheet capability
            template_file_id: Spreadsheet copied for every export
            destination_folder_id: Drive folder for new files
            results_sheet_id: Results log spreadsheet; no log when None
            grant_editor_permission: Give anyone-with-link edit access
            permission_delay: Seconds to let a new file settle before sharing it
            formatting_script_id: Apps Script project; no formatting pass when None
            formatting_function: Script function receiving the spreadsheet id
            formatting_delay_minutes: Delay before the formatting pass runs
            company_info: Optional company profile lookup
        """
        self.sheets = sheets
        self.template_file_id = template_file_id
        self.destination_folder_id = destination_folder_id
        self.results_sheet_id = results_sheet_id
        self.grant_editor_permission = grant_editor_permission
        self.permission_delay = permission_delay
        self.formatting_script_id = formatting_script_id
        self.formatting_function = formatting_function
        self.formatting_delay_minutes = formatting_delay_minutes
        self.company_info = company_info

    @classmethod
    def from_config(
        cls,
        config,
        sheets: SheetsClient,
        company_info: Optional[CompanyInfoExtractor] = None,
    ) -> "ExportPipeline":
        return cls(
            sheets=sheets,
            template_file_id=config.sheets_template_file_id,
            destination_folder_id=config.destination_folder_id,
            results_sheet_id=config.results_sheet_id,
            grant_editor_permission=config.grant_editor_permission,
            formatting_script_id=config.gas_project_id if config.formatting_enabled else None,
            formatting_function=config.gas_function,
            formatting_delay_minutes=config.formatting_delay_minutes,
            company_info=company_info if config.company_info_enabled else None,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.template_file_id)

    async def export(
        self,
        content: str,
        context_messages: Sequence[Message],
        trigger_message_id: Optional[int] = None,
        on_warning: Optional[WarningCallback] = None,
    ) -> ExportOutcome:
        """
        Create and populate a spreadsheet for one generated script.

        Args:
            content: Generated script
            context_messages: Chat messages the script was generated from
            trigger_message_id: Message that triggered generation, for logging
            on_warning: Receives best-effort failures

        Returns:
            ExportOutcome once the copy and cell writes succeed

        Raises:
            ExportError: Template missing, copy failed, or cell write failed
        """
        warn = _Warner(on_warning)

        if not self.template_file_id:
            raise ExportError("SHEETS_TEMPLATE_FILE_ID is not set")

        fields = extract_export_fields(context_messages)
        fields.segments = split_script_by_sections(content)
        logger.info(
            f"Export start (trigger={trigger_message_id}): "
            f"title={fields.document_title!r} sheet={fields.sheet_title!r}"
        )

        folder_id = await self._resolve_folder(warn)

        try:
            document_id = await self.sheets.copy_file(self.template_file_id, fields.document_title, folder_id)
        except Exception as e:
            raise ExportError(f"Template copy failed: {e}") from e

        sheet_title = await self._prepare_first_sheet(document_id, fields.sheet_title, warn)

        if self.grant_editor_permission:
            await self._grant_permission(document_id, warn)

        cells = build_cell_values(fields, content)
        if self.company_info is not None:
            cells.update(await self._company_cells(fields, warn))

        try:
            await self.sheets.write_cells(document_id, sheet_title, cells)
        except Exception as e:
            raise ExportError(f"Writing cells to {document_id} failed: {e}") from e

        url = document_url(document_id)

        if self.formatting_script_id:
            spawn_detached(
                self._run_formatting_pass(document_id, warn),
                name=f"format-{document_id[:8]}",
            )
        if self.results_sheet_id:
            spawn_detached(
                self._append_result(fields, document_id, url, warn),
                name=f"results-{document_id[:8]}",
            )

        logger.info(f"Export done: {url}")
        return ExportOutcome(document_id=document_id, document_url=url)

    # ==================== Steps ====================

    async def _resolve_folder(self, warn: "_Warner") -> Optional[str]:
        folder_id = self.destination_folder_id
        if not folder_id:
            return None
        if await self.sheets.file_exists(folder_id):
            return folder_id
        await warn(f"Destination folder {folder_id} not accessible, creating in drive root")
        return None

    async def _prepare_first_sheet(self, document_id: str, title: str, warn: "_Warner") -> str:
        """Rename the first sheet; returns the title cells should be written under."""
        try:
            sheet_id, current_title = await self.sheets.get_first_sheet(document_id)
        except Exception as e:
            raise ExportError(f"Could not read first sheet of {document_id}: {e}") from e

        if current_title == title:
            return title
        try:
            await self.sheets.rename_sheet(document_id, sheet_id, title)
            return title
        except Exception as e:
            await warn(f"Renaming sheet to {title!r} failed: {e}")
            return current_title

    async def _grant_permission(self, document_id: str, warn: "_Warner") -> None:
        try:
            if self.permission_delay:
                await asyncio.sleep(self.permission_delay)
            if not await self.sheets.file_exists(document_id):
                await warn(f"{document_id} not visible yet, skipping permission grant")
                return
            await self.sheets.grant_anyone_writer(document_id)
        except Exception as e:
            await warn(f"Granting editor permission on {document_id} failed: {e}")

    async def _company_cells(self, fields: ExportFields, warn: "_Warner") -> dict[str, str]:
        if not fields.company_name:
            return {}
        try:
            info = await self.company_info.lookup(fields.company_name, fields.company_url)
        except Exception as e:
            await warn(f"Company info lookup failed: {e}")
            return {}
        return {cell: getattr(info, name) for name, cell in COMPANY_INFO_CELLS.items()}

    async def _run_formatting_pass(self, document_id: str, warn: "_Warner") -> None:
        delay = self.formatting_delay_minutes * 60
        if delay > 0:
            logger.info(f"Formatting pass for {document_id} in {self.formatting_delay_minutes} min")
            await asyncio.sleep(delay)
        try:
            await self.sheets.run_script(self.formatting_script_id, self.formatting_function, [document_id])
            logger.info(f"Formatting pass done for {document_id}")
        except Exception as e:
            await warn(f"Formatting pass for {document_id} failed: {e}")

    async def _append_result(self, fields: ExportFields, document_id: str, url: str, warn: "_Warner") -> None:
        row = [
            format_result_time(fields.send_time),
            fields.company_name,
            result_file_label(document_id),
            url,
        ]
        try:
            row_number = await self.sheets.append_row(self.results_sheet_id, row)
            logger.info(f"Result logged at row {row_number}: {' | '.join(row)}")
        except Exception as e:
            await warn(f"Results log append failed: {e}")


class _Warner:
    """Non-fatal error channel: log, then forward to the observer if anyone listens."""

    def __init__(self, callback: Optional[WarningCallback]):
        self.callback = callback

    async def __call__(self, message: str) -> None:
        logger.warning(message)
        if self.callback is None:
            return
        try:
            await self.callback(message)
        except Exception as e:
            logger.debug(f"Warning callback failed: {e}")
