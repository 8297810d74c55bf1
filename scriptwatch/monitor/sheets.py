"""
Google Drive / Sheets / Apps Script client.

Wraps the blocking google-api-python-client calls in asyncio.to_thread so
the monitor's event loop never stalls on a spreadsheet request.
"""

import asyncio
import json
import logging
from typing import Any, Optional

from google.auth import default as google_auth_default
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/script.projects",
]


def quote_sheet_title(title: str) -> str:
    """Quote a sheet title for use in an A1 range."""
    return "'" + title.replace("'", "''") + "'"


def a1_range(sheet_title: str, cell: str) -> str:
    return f"{quote_sheet_title(sheet_title)}!{cell}"


def build_credentials(credentials_json: Optional[str] = None):
    """Service account from inline JSON, else application default credentials."""
    if credentials_json:
        info = json.loads(credentials_json)
        return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    creds, _ = google_auth_default(scopes=SCOPES)
    return creds


class SheetsClient:
    """
    Spreadsheet capability used by the export pipeline.

    Services are built lazily on first use.
    """

    def __init__(self, credentials_json: Optional[str] = None, credentials=None):
        """
        Initialize client.

        Args:
            credentials_json: Service account key JSON (GOOGLE_APPLICATION_CREDENTIALS_JSON)
            credentials: Prebuilt google-auth credentials, wins over credentials_json
        """
        self._credentials_json = credentials_json
        self._credentials = credentials
        self._drive = None
        self._sheets = None
        self._script = None

    def _creds(self):
        if self._credentials is None:
            self._credentials = build_credentials(self._credentials_json)
        return self._credentials

    @property
    def drive(self):
        if self._drive is None:
            self._drive = build("drive", "v3", credentials=self._creds(), cache_discovery=False)
        return self._drive

    @property
    def sheets(self):
        if self._sheets is None:
            self._sheets = build("sheets", "v4", credentials=self._creds(), cache_discovery=False)
        return self._sheets

    @property
    def script(self):
        if self._script is None:
            self._script = build("script", "v1", credentials=self._creds(), cache_discovery=False)
        return self._script

    @staticmethod
    async def _execute(request) -> Any:
        return await asyncio.to_thread(request.execute)

    # ==================== Drive ====================

    async def file_exists(self, file_id: str) -> bool:
        """Whether a Drive file (or folder, shared drives included) is accessible."""
        try:
            await self._execute(
                self.drive.files().get(fileId=file_id, supportsAllDrives=True)
            )
            return True
        except HttpError as e:
            logger.debug(f"Drive file {file_id} not accessible: {e}")
            return False

    async def copy_file(self, template_id: str, name: str, folder_id: Optional[str] = None) -> str:
        """
        Copy a template file.

        Args:
            template_id: File to copy
            name: Name of the new file
            folder_id: Destination folder; the drive root when None

        Returns:
            ID of the new file
        """
        body: dict[str, Any] = {"name": name}
        if folder_id:
            body["parents"] = [folder_id]

        result = await self._execute(
            self.drive.files().copy(fileId=template_id, body=body, supportsAllDrives=True)
        )
        new_id = result.get("id")
        if not new_id:
            raise ValueError("Template copy returned no file id")
        logger.info(f"Copied template {template_id} -> {new_id} ({name})")
        return new_id

    async def grant_anyone_writer(self, file_id: str) -> None:
        """Give edit access to anyone holding the link."""
        await self._execute(
            self.drive.permissions().create(
                fileId=file_id,
                body={"role": "writer", "type": "anyone"},
                supportsAllDrives=True,
            )
        )
        logger.info(f"Editor permission granted on {file_id}")

    # ==================== Sheets ====================

    async def get_first_sheet(self, spreadsheet_id: str) -> tuple[int, str]:
        """(sheetId, title) of the first sheet."""
        result = await self._execute(
            self.sheets.spreadsheets().get(spreadsheetId=spreadsheet_id)
        )
        sheets = result.get("sheets") or []
        if not sheets:
            raise ValueError(f"Spreadsheet {spreadsheet_id} has no sheets")
        props = sheets[0].get("properties", {})
        if props.get("sheetId") is None:
            raise ValueError(f"Spreadsheet {spreadsheet_id}: first sheet has no id")
        return props["sheetId"], props.get("title", "")

    async def rename_sheet(self, spreadsheet_id: str, sheet_id: int, title: str) -> None:
        await self._execute(
            self.sheets.spreadsheets().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={"requests": [{
                    "updateSheetProperties": {
                        "properties": {"sheetId": sheet_id, "title": title},
                        "fields": "title",
                    }
                }]},
            )
        )

    async def write_cells(self, spreadsheet_id: str, sheet_title: str, cells: dict[str, str]) -> None:
        """Write raw values to single cells, e.g. {"C1": "..."}."""
        data = [
            {"range": a1_range(sheet_title, cell), "values": [[value]]}
            for cell, value in cells.items()
        ]
        for cell, value in cells.items():
            preview = value[:50] + ("..." if len(value) > 50 else "")
            logger.debug(f"{spreadsheet_id} {cell} = {preview!r}")

        await self._execute(
            self.sheets.spreadsheets().values().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={"data": data, "valueInputOption": "RAW"},
            )
        )
        logger.info(f"Wrote {len(cells)} cells to {spreadsheet_id}")

    async def append_row(self, spreadsheet_id: str, row: list[str], columns: str = "A:D") -> int:
        """
        Write a row after the last non-empty row of `columns`.

        Returns:
            1-based row number written
        """
        existing = await self._execute(
            self.sheets.spreadsheets().values().get(spreadsheetId=spreadsheet_id, range=columns)
        )
        next_row = len(existing.get("values") or []) + 1
        first, last = columns.split(":")
        await self._execute(
            self.sheets.spreadsheets().values().update(
                spreadsheetId=spreadsheet_id,
                range=f"{first}{next_row}:{last}{next_row}",
                valueInputOption="RAW",
                body={"values": [row]},
            )
        )
        return next_row

    # ==================== Apps Script ====================

    async def run_script(self, script_id: str, function: str, parameters: list) -> dict:
        """
        Run an Apps Script function (dev mode, latest saved code).

        Raises:
            RuntimeError: If the script reported an error
        """
        result = await self._execute(
            self.script.scripts().run(
                scriptId=script_id,
                body={"function": function, "parameters": parameters, "devMode": True},
            )
        )
        if result.get("error"):
            raise RuntimeError(f"Apps Script {function} returned error: {result['error']}")
        return result
