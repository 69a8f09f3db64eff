"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote record store because:
1. Family members can look at the raw data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (a household ledger is tiny)
- No transactions; last writer wins
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interfaces, so the ledger does
not know which backend it is talking to.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from uuid import uuid4

import gspread
import structlog
from gspread.utils import rowcol_to_a1
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from family_budget.config import GoogleSheetsSettings, get_settings
from family_budget.models.activity import ActivityLogEntry
from family_budget.models.finance import Movement, MovementType
from family_budget.models.identity import Family, Profile
from family_budget.services.storage.interface import (
    ActivityLogInterface,
    DuplicateError,
    IdentityStoreInterface,
    RecordStoreInterface,
    StorageConnectionError,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Column mappings for the Movements sheet
MOVEMENT_COLUMNS = [
    "id",
    "family_id",
    "user_id",
    "type",
    "amount",
    "date",
    "person_name",
    "name",
    "category",
    "status",
    "target_amount",
    "target_month",
    "target_year",
    "created_at",
]

# Column mappings for the ActivityLog sheet
ACTIVITY_COLUMNS = [
    "id",
    "created_at",
    "user_id",
    "family_id",
    "action_type",
    "description",
]

PROFILE_COLUMNS = [
    "id",
    "name",
    "family_id",
    "created_at",
    "updated_at",
]

FAMILY_COLUMNS = [
    "id",
    "code",
    "created_at",
]


def _safe_getter(row: list):
    """Return a getter that tolerates short rows and blank cells."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


def _optional_decimal(value: str) -> Optional[Decimal]:
    return Decimal(value) if value else None


def _optional_int(value: str) -> Optional[int]:
    return int(float(value)) if value else None


def _blank_if_none(value) -> str:
    return "" if value is None else str(value)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

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

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet, writing the header row on creation."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_movements_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.movements_sheet_name, MOVEMENT_COLUMNS)

    def get_activity_sheet(self) -> gspread.Worksheet:
        # More rows for the activity log
        return self.get_worksheet(
            self._settings.activity_sheet_name, ACTIVITY_COLUMNS, rows=5000
        )

    def get_profiles_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.profiles_sheet_name, PROFILE_COLUMNS)

    def get_families_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.families_sheet_name, FAMILY_COLUMNS)


def _replace_row(sheet: gspread.Worksheet, row_number: int, values: list) -> None:
    """Overwrite one full row in a single API call."""
    cell_range = f"{rowcol_to_a1(row_number, 1)}:{rowcol_to_a1(row_number, len(values))}"
    sheet.batch_update(
        [{"range": cell_range, "values": [values]}],
        value_input_option="RAW",
    )


def _find_row_number(all_rows: list[list], record_id: str) -> Optional[int]:
    """1-based sheet row number for a record id (row 1 is the header)."""
    for idx, row in enumerate(all_rows[1:], start=2):
        if row and row[0] == record_id:
            return idx
    return None


class GoogleSheetsRecordStore(RecordStoreInterface):
    """
    Google Sheets implementation of the movement record store.

    One movement per row. Ids are generated here on insert.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _movement_to_row(self, movement: Movement) -> list:
        """Convert a Movement to a spreadsheet row."""
        return [
            movement.id or "",
            movement.family_id,
            movement.user_id,
            movement.type.value,
            str(movement.amount),
            movement.date,
            movement.person_name,
            movement.name or "",
            movement.category or "",
            movement.status or "",
            _blank_if_none(movement.target_amount),
            _blank_if_none(movement.target_month),
            _blank_if_none(movement.target_year),
            movement.created_at.isoformat(),
        ]

    def _row_to_movement(self, row: list) -> Movement:
        """Convert a spreadsheet row to a Movement."""
        safe_get = _safe_getter(row)

        created_at = safe_get(13)
        return Movement(
            id=safe_get(0),
            family_id=safe_get(1),
            user_id=safe_get(2),
            type=MovementType(safe_get(3)),
            amount=Decimal(safe_get(4, "0")),
            date=safe_get(5),
            person_name=safe_get(6),
            name=safe_get(7) or None,
            category=safe_get(8) or None,
            status=safe_get(9) or None,
            target_amount=_optional_decimal(safe_get(10)),
            target_month=_optional_int(safe_get(11)),
            target_year=_optional_int(safe_get(12)),
            **({"created_at": datetime.fromisoformat(created_at)} if created_at else {}),
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def insert(self, movement: Movement) -> Movement:
        """Append a movement row with a freshly generated id."""
        stored = movement.model_copy(update={"id": uuid4().hex})
        try:
            sheet = self._client.get_movements_sheet()
            sheet.append_row(self._movement_to_row(stored), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to insert movement: {e}")
        return stored

    async def update(self, movement_id: str, changes: dict[str, Any]) -> bool:
        """Merge the changes into the stored row and rewrite it."""
        try:
            sheet = self._client.get_movements_sheet()
            all_rows = sheet.get_all_values()
            row_number = _find_row_number(all_rows, movement_id)
            if row_number is None:
                return False
            current = self._row_to_movement(all_rows[row_number - 1])
            merged = Movement.model_validate({**current.model_dump(), **changes})
            _replace_row(sheet, row_number, self._movement_to_row(merged))
            return True
        except Exception as e:
            raise StorageError(f"Failed to update movement: {e}")

    async def delete(self, movement_id: str) -> bool:
        """Delete the row with this id."""
        try:
            sheet = self._client.get_movements_sheet()
            row_number = _find_row_number(sheet.get_all_values(), movement_id)
            if row_number is None:
                return False
            sheet.delete_rows(row_number)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete movement: {e}")

    async def list_by_family(self, family_id: str) -> list[Movement]:
        """All movement rows for a family; malformed rows are skipped."""
        try:
            sheet = self._client.get_movements_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list movements: {e}")

        movements = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            if len(row) < 2 or row[1] != family_id:
                continue
            try:
                movements.append(self._row_to_movement(row))
            except (ValueError, TypeError, InvalidOperation) as e:
                logger.warning("movement_row_skipped", row_id=row[0], error=str(e))
        return movements


class GoogleSheetsIdentityStore(IdentityStoreInterface):
    """Profiles and families, one worksheet each."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _profile_to_row(self, profile: Profile) -> list:
        return [
            profile.id,
            profile.name,
            profile.family_id or "",
            profile.created_at.isoformat(),
            profile.updated_at.isoformat(),
        ]

    def _row_to_profile(self, row: list) -> Profile:
        safe_get = _safe_getter(row)
        return Profile(
            id=safe_get(0),
            name=safe_get(1),
            family_id=safe_get(2) or None,
            created_at=datetime.fromisoformat(safe_get(3)),
            updated_at=datetime.fromisoformat(safe_get(4)),
        )

    def _row_to_family(self, row: list) -> Family:
        safe_get = _safe_getter(row)
        return Family(
            id=safe_get(0),
            code=safe_get(1),
            created_at=datetime.fromisoformat(safe_get(2)),
        )

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            sheet = self._client.get_profiles_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == user_id:
                    return self._row_to_profile(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get profile: {e}")

    async def save_profile(self, profile: Profile) -> Profile:
        try:
            sheet = self._client.get_profiles_sheet()
            row_number = _find_row_number(sheet.get_all_values(), profile.id)
            values = self._profile_to_row(profile)
            if row_number is None:
                sheet.append_row(values, value_input_option="RAW")
            else:
                _replace_row(sheet, row_number, values)
            return profile
        except Exception as e:
            raise StorageError(f"Failed to save profile: {e}")

    async def list_profiles_by_family(self, family_id: str) -> list[Profile]:
        try:
            sheet = self._client.get_profiles_sheet()
            return [
                self._row_to_profile(row)
                for row in sheet.get_all_values()[1:]
                if len(row) > 2 and row[2] == family_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to list profiles: {e}")

    async def get_family(self, family_id: str) -> Optional[Family]:
        return await self._find_family(0, family_id)

    async def find_family_by_code(self, code: str) -> Optional[Family]:
        return await self._find_family(1, code)

    async def _find_family(self, column: int, value: str) -> Optional[Family]:
        try:
            sheet = self._client.get_families_sheet()
            for row in sheet.get_all_values()[1:]:
                if len(row) > column and row[column] == value:
                    return self._row_to_family(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get family: {e}")

    async def create_family(self, code: str) -> Family:
        if await self.find_family_by_code(code):
            raise DuplicateError(f"Family code already in use: {code}")
        family = Family(id=uuid4().hex, code=code)
        try:
            sheet = self._client.get_families_sheet()
            sheet.append_row(
                [family.id, family.code, family.created_at.isoformat()],
                value_input_option="RAW",
            )
        except Exception as e:
            raise StorageError(f"Failed to create family: {e}")
        return family


class GoogleSheetsActivityLog(ActivityLogInterface):
    """
    Google Sheets implementation of the activity log.

    Entries are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_entry(self, row: list) -> ActivityLogEntry:
        """Convert a spreadsheet row to an ActivityLogEntry."""
        safe_get = _safe_getter(row)
        return ActivityLogEntry(
            id=safe_get(0),
            created_at=datetime.fromisoformat(safe_get(1)),
            user_id=safe_get(2),
            family_id=safe_get(3),
            action_type=safe_get(4),
            description=safe_get(5),
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append(self, entry: ActivityLogEntry) -> bool:
        """Append an activity entry."""
        try:
            sheet = self._client.get_activity_sheet()
            sheet.append_row(entry.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to append activity entry: {e}")

    async def list_by_family(self, family_id: str) -> list[ActivityLogEntry]:
        """Entries for a family, newest first. Malformed rows are skipped."""
        try:
            sheet = self._client.get_activity_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get activity entries: {e}")

        entries = []
        for row in all_rows:
            if len(row) > 3 and row[3] == family_id:
                try:
                    entries.append(self._row_to_entry(row))
                except (ValueError, TypeError):
                    continue

        entries.reverse()
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries
