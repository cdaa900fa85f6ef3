"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a cloud backend because:
1. Non-technical users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

The sheet is used as a key-value table:

    key | value_json | updated_at

TRADEOFFS:
- A single cell holds at most 50,000 characters, which bounds
  the size of one ledger (plenty for personal use)
- gspread is synchronous, so calls run on a worker thread
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from money_manager.config import GoogleSheetsSettings, get_settings
from money_manager.services.storage.interface import (
    CorruptDataError,
    KeyValueStorageInterface,
    StorageConnectionError,
    StorageError,
)


STORE_COLUMNS = ["key", "value_json", "updated_at"]

MAX_CELL_CHARS = 50_000


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key-value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.store_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.store_sheet_name,
                rows=100,
                cols=len(STORE_COLUMNS),
            )
            sheet.append_row(STORE_COLUMNS)
        return sheet


class GoogleSheetsKeyValueStorage(KeyValueStorageInterface):
    """
    Google Sheets implementation of key-value storage.

    One row per key; the value is the JSON-encoded record list.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(rows: list[list[str]], key: str) -> Optional[int]:
        """1-based sheet row number for a key (row 1 is the header)."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == key:
                return idx
        return None

    def _load_sync(self, key: str) -> Optional[list[dict]]:
        sheet = self._client.get_store_sheet()
        rows = sheet.get_all_values()
        idx = self._find_row(rows, key)
        if idx is None:
            return None

        row = rows[idx - 1]
        raw = row[1] if len(row) > 1 else ""
        if not raw:
            return None

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as e:
            raise CorruptDataError(f"Invalid JSON stored under {key!r}: {e}")

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise CorruptDataError(f"Expected a list of records under {key!r}")
        return data

    def _save_sync(self, key: str, payload: str) -> None:
        sheet = self._client.get_store_sheet()
        rows = sheet.get_all_values()
        idx = self._find_row(rows, key)
        row = [key, payload, datetime.now(timezone.utc).isoformat()]

        if idx is None:
            sheet.append_row(row, value_input_option="RAW")
        else:
            sheet.update(
                values=[row],
                range_name=f"A{idx}:C{idx}",
                value_input_option="RAW",
            )

    async def load(self, key: str) -> Optional[list[dict]]:
        """Load the record list stored under a key."""
        try:
            return await asyncio.to_thread(self._load_sync, key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageConnectionError(f"Failed to load {key!r}: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _write_row(self, key: str, payload: str) -> None:
        try:
            await asyncio.to_thread(self._save_sync, key, payload)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {key!r}: {e}")

    async def save(self, key: str, records: list[dict]) -> bool:
        """Overwrite the row for a key, creating it if needed."""
        payload = json.dumps(records, ensure_ascii=False, separators=(",", ":"))
        if len(payload) > MAX_CELL_CHARS:
            raise StorageError(
                f"Value for {key!r} is {len(payload)} characters; "
                f"a sheet cell holds at most {MAX_CELL_CHARS}"
            )

        await self._write_row(key, payload)
        return True
