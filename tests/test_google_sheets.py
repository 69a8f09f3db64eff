"""
Tests for the Google Sheets backends against mocked worksheets.

No network: the client is a MagicMock returning MagicMock worksheets
whose get_all_values() is primed with rows.
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from family_budget.models.activity import ActivityLogEntry
from family_budget.models.finance import Movement, MovementType
from family_budget.models.identity import Profile
from family_budget.services.storage import (
    DuplicateError,
    GoogleSheetsActivityLog,
    GoogleSheetsIdentityStore,
    GoogleSheetsRecordStore,
    StorageError,
)
from family_budget.services.storage.google_sheets import (
    ACTIVITY_COLUMNS,
    FAMILY_COLUMNS,
    MOVEMENT_COLUMNS,
    PROFILE_COLUMNS,
)


CREATED = "2024-03-01T10:00:00+00:00"


def expense_row(movement_id: str = "mov-1", family_id: str = "fam-1", **overrides) -> list:
    row = {
        "id": movement_id,
        "family_id": family_id,
        "user_id": "user-leo",
        "type": "expense",
        "amount": "300.0",
        "date": "2024-03-05",
        "person_name": "Léo",
        "name": "Aluguel",
        "category": "fixed",
        "status": "pending",
        "target_amount": "",
        "target_month": "",
        "target_year": "",
        "created_at": CREATED,
    }
    row.update(overrides)
    return [row[column] for column in MOVEMENT_COLUMNS]


@pytest.fixture
def sheet():
    return MagicMock()


@pytest.fixture
def client(sheet):
    client = MagicMock()
    client.get_movements_sheet.return_value = sheet
    client.get_profiles_sheet.return_value = sheet
    client.get_families_sheet.return_value = sheet
    client.get_activity_sheet.return_value = sheet
    return client


class TestMovementRows:
    """Tests for the movement <-> row mapping."""

    def test_row_round_trip(self, client):
        store = GoogleSheetsRecordStore(client)
        movement = Movement(
            id="mov-9",
            family_id="fam-1",
            user_id="user-leo",
            type=MovementType.GOAL,
            amount=200.0,
            date="2024-07-01",
            person_name="Léo",
            name="Viagem",
            target_amount=5000.0,
            target_month=11,
            target_year=2024,
            created_at=datetime(2024, 7, 1, 9, tzinfo=timezone.utc),
        )

        row = store._movement_to_row(movement)

        assert len(row) == len(MOVEMENT_COLUMNS)
        assert row[MOVEMENT_COLUMNS.index("type")] == "goal"
        assert row[MOVEMENT_COLUMNS.index("category")] == ""
        assert store._row_to_movement(row) == movement

    def test_short_row_uses_defaults(self, client):
        """gspread drops trailing empty cells; missing columns read as blank."""
        store = GoogleSheetsRecordStore(client)

        movement = store._row_to_movement(expense_row()[:10])

        assert movement.target_amount is None
        assert movement.status == "pending"

    def test_amount_cells_read_as_decimal(self, client):
        store = GoogleSheetsRecordStore(client)

        movement = store._row_to_movement(expense_row(amount="0.10"))

        assert movement.amount == Decimal("0.10")
        assert isinstance(movement.amount, Decimal)


class TestGoogleSheetsRecordStore:
    """Tests for the movement worksheet operations."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id(self, client, sheet):
        store = GoogleSheetsRecordStore(client)
        movement = Movement(
            family_id="fam-1", user_id="user-leo", type=MovementType.INCOME,
            amount=1000, date="2024-03-01", person_name="Léo", category="payment",
        )

        stored = await store.insert(movement)

        assert stored.id
        written = sheet.append_row.call_args.args[0]
        assert written[0] == stored.id
        assert written[MOVEMENT_COLUMNS.index("category")] == "payment"

    @pytest.mark.asyncio
    async def test_list_by_family_filters_and_skips_bad_rows(self, client, sheet):
        sheet.get_all_values.return_value = [
            MOVEMENT_COLUMNS,
            expense_row("mov-1"),
            expense_row("mov-2", family_id="fam-2"),
            expense_row("mov-3", type="bogus"),
            [],
            expense_row("mov-4", amount="abc"),
            expense_row("mov-5", name="Luz"),
        ]
        store = GoogleSheetsRecordStore(client)

        movements = await store.list_by_family("fam-1")

        assert [m.id for m in movements] == ["mov-1", "mov-5"]

    @pytest.mark.asyncio
    async def test_update_merges_changes(self, client, sheet):
        sheet.get_all_values.return_value = [MOVEMENT_COLUMNS, expense_row("mov-1")]
        store = GoogleSheetsRecordStore(client)

        changed = await store.update("mov-1", {"status": "paid", "amount": Decimal("320.00")})

        assert changed is True
        [request] = sheet.batch_update.call_args.args[0]
        assert request["range"] == "A2:N2"
        values = request["values"][0]
        assert values[MOVEMENT_COLUMNS.index("status")] == "paid"
        assert values[MOVEMENT_COLUMNS.index("amount")] == "320.00"
        assert values[MOVEMENT_COLUMNS.index("family_id")] == "fam-1"
        assert values[MOVEMENT_COLUMNS.index("date")] == "2024-03-05"

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, client, sheet):
        sheet.get_all_values.return_value = [MOVEMENT_COLUMNS, expense_row("mov-1")]
        store = GoogleSheetsRecordStore(client)

        assert await store.update("mov-404", {"status": "paid"}) is False
        sheet.batch_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete(self, client, sheet):
        sheet.get_all_values.return_value = [
            MOVEMENT_COLUMNS, expense_row("mov-1"), expense_row("mov-2"),
        ]
        store = GoogleSheetsRecordStore(client)

        assert await store.delete("mov-2") is True
        sheet.delete_rows.assert_called_once_with(3)
        assert await store.delete("mov-404") is False

    @pytest.mark.asyncio
    async def test_read_failure_becomes_storage_error(self, client, sheet):
        sheet.get_all_values.side_effect = Exception("quota exceeded")
        store = GoogleSheetsRecordStore(client)

        with pytest.raises(StorageError):
            await store.list_by_family("fam-1")


class TestGoogleSheetsIdentityStore:
    """Tests for profiles and families."""

    @pytest.mark.asyncio
    async def test_save_new_profile_appends(self, client, sheet):
        sheet.get_all_values.return_value = [PROFILE_COLUMNS]
        store = GoogleSheetsIdentityStore(client)

        await store.save_profile(Profile(id="user-leo", name="Léo", family_id="fam-1"))

        written = sheet.append_row.call_args.args[0]
        assert written[:3] == ["user-leo", "Léo", "fam-1"]

    @pytest.mark.asyncio
    async def test_save_existing_profile_replaces_row(self, client, sheet):
        sheet.get_all_values.return_value = [
            PROFILE_COLUMNS, ["user-leo", "Léo", "fam-1", CREATED, CREATED],
        ]
        store = GoogleSheetsIdentityStore(client)

        await store.save_profile(Profile(id="user-leo", name="Leonardo", family_id="fam-1"))

        sheet.append_row.assert_not_called()
        [request] = sheet.batch_update.call_args.args[0]
        assert request["range"] == "A2:E2"

    @pytest.mark.asyncio
    async def test_get_profile(self, client, sheet):
        sheet.get_all_values.return_value = [
            PROFILE_COLUMNS, ["user-leo", "Léo", "", CREATED, CREATED],
        ]
        store = GoogleSheetsIdentityStore(client)

        profile = await store.get_profile("user-leo")

        assert profile.name == "Léo"
        assert profile.family_id is None
        assert await store.get_profile("user-ana") is None

    @pytest.mark.asyncio
    async def test_find_family_by_code(self, client, sheet):
        sheet.get_all_values.return_value = [FAMILY_COLUMNS, ["fam-1", "CASA01", CREATED]]
        store = GoogleSheetsIdentityStore(client)

        family = await store.find_family_by_code("CASA01")

        assert family.id == "fam-1"
        assert (await store.get_family("fam-1")).code == "CASA01"

    @pytest.mark.asyncio
    async def test_create_family_rejects_taken_code(self, client, sheet):
        sheet.get_all_values.return_value = [FAMILY_COLUMNS, ["fam-1", "CASA01", CREATED]]
        store = GoogleSheetsIdentityStore(client)

        with pytest.raises(DuplicateError):
            await store.create_family("CASA01")
        sheet.append_row.assert_not_called()


class TestGoogleSheetsActivityLog:
    """Tests for the activity worksheet."""

    @pytest.mark.asyncio
    async def test_append_writes_sheets_row(self, client, sheet):
        log = GoogleSheetsActivityLog(client)
        entry = ActivityLogEntry(
            user_id="user-leo", family_id="fam-1",
            action_type="login", description="Login realizado",
        )

        assert await log.append(entry) is True
        written = sheet.append_row.call_args.args[0]
        assert len(written) == len(ACTIVITY_COLUMNS)
        assert written == entry.to_sheets_row()

    @pytest.mark.asyncio
    async def test_list_newest_first(self, client, sheet):
        sheet.get_all_values.return_value = [
            ACTIVITY_COLUMNS,
            ["a-1", "2024-03-01T10:00:00+00:00", "user-leo", "fam-1", "login", "Login realizado"],
            ["a-2", "2024-03-02T10:00:00+00:00", "user-leo", "fam-1", "logout", "Logout realizado"],
            ["a-3", "2024-03-03T10:00:00+00:00", "user-ana", "fam-2", "login", "Login realizado"],
            ["a-4", "not a date", "user-leo", "fam-1", "login", "Login realizado"],
        ]
        log = GoogleSheetsActivityLog(client)

        entries = await log.list_by_family("fam-1")

        assert [e.id for e in entries] == ["a-2", "a-1"]
