"""Google Sheets worksheet used as the booking store.

Only two operations are needed: read every row (minus the header) and
append one row. The googleapiclient calls are synchronous; async callers
wrap them in asyncio.to_thread.

Rows are written RAW so dates and times stay the text the API received,
and read back UNFORMATTED so cells a person typed as real dates come back
as serial numbers instead of locale-formatted strings.
"""

import logging
import threading
import time
from typing import Any, Protocol

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from agent_api.core.config import Settings
from agent_api.core.logging import elapsed_ms, log_external_call

logger = logging.getLogger(__name__)

# Transport failures (DNS, refused connections) raise HttpLib2Error, not OSError
SHEETS_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class BookingStoreError(Exception):
    """The booking sheet could not be read or written."""


class BookingStore(Protocol):
    def read_rows(self) -> list[list[Any]]: ...

    def append_row(self, values: list[str]) -> None: ...


def column_letter(n: int) -> str:
    """1 -> "A", 9 -> "I", 27 -> "AA"."""
    letters = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


class SheetsBookingStore:
    """Booking rows in one worksheet of a Google spreadsheet."""

    def __init__(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        column_count: int,
        credentials_info: dict[str, Any],
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.range = f"{sheet_name}!A:{column_letter(column_count)}"
        self._credentials_info = credentials_info
        self._service: Any = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SheetsBookingStore":
        if not settings.sheets_configured:
            raise BookingStoreError(
                "Booking sheet not configured. Set SHEET_ID_CITAS and the GOOGLE_* credentials."
            )
        return cls(
            spreadsheet_id=settings.sheet_id_citas,
            sheet_name=settings.sheet_name_citas,
            column_count=len(settings.booking_columns),
            credentials_info=settings.google_credentials_info,
        )

    def _values(self) -> Any:
        if self._service is None:
            with self._lock:
                if self._service is None:
                    try:
                        creds = service_account.Credentials.from_service_account_info(
                            self._credentials_info, scopes=SCOPES
                        )
                    except ValueError as e:
                        raise BookingStoreError(f"Invalid service account credentials: {e}") from e
                    self._service = build("sheets", "v4", credentials=creds, cache_discovery=False)
        return self._service.spreadsheets().values()

    def read_rows(self) -> list[list[Any]]:
        """All booking rows, header excluded.

        Cells are strings, or numbers for numeric and date/time cells.
        """
        start = time.perf_counter()
        try:
            response = (
                self._values()
                .get(
                    spreadsheetId=self.spreadsheet_id,
                    range=self.range,
                    valueRenderOption="UNFORMATTED_VALUE",
                    dateTimeRenderOption="SERIAL_NUMBER",
                )
                .execute()
            )
        except SHEETS_ERRORS as e:
            log_external_call("google_sheets", "read", False, elapsed_ms(start))
            raise BookingStoreError(f"Could not read bookings: {e}") from e

        log_external_call("google_sheets", "read", True, elapsed_ms(start))
        rows = response.get("values", [])
        return rows[1:] if len(rows) > 1 else []

    def append_row(self, values: list[str]) -> None:
        start = time.perf_counter()
        try:
            (
                self._values()
                .append(
                    spreadsheetId=self.spreadsheet_id,
                    range=self.range,
                    valueInputOption="RAW",
                    insertDataOption="INSERT_ROWS",
                    body={"values": [values]},
                )
                .execute()
            )
        except SHEETS_ERRORS as e:
            log_external_call("google_sheets", "append", False, elapsed_ms(start))
            raise BookingStoreError(f"Could not append booking: {e}") from e

        log_external_call("google_sheets", "append", True, elapsed_ms(start))
        logger.info(f"Booking row appended to {self.sheet_name}")
