"""
Tests for the best-effort activity logger.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from family_budget.activity.logger import ActivityLogger, action_types
from family_budget.models.activity import ActivityAction, ActivityLogEntry
from family_budget.services.storage import InMemoryActivityLog, StorageError


class FailingActivityLog(InMemoryActivityLog):
    async def append(self, entry):
        raise StorageError("sheet is read-only")


def entry(action: str, description: str, minutes_ago: int) -> ActivityLogEntry:
    return ActivityLogEntry(
        user_id="user-leo",
        family_id="fam-1",
        action_type=action,
        description=description,
        created_at=datetime(2024, 3, 15, 12, tzinfo=timezone.utc) - timedelta(minutes=minutes_ago),
    )


class TestLogAction:
    """Tests for writing entries."""

    @pytest.mark.asyncio
    async def test_writes_entry(self, activity_logger, activity_log):
        ok = await activity_logger.log_action(
            "user-leo", "fam-1", ActivityAction.ADD_EXPENSE, "Adicionou despesa Luz"
        )

        assert ok is True
        [written] = activity_log.entries
        assert written.action_type == "add_expense"
        assert written.family_id == "fam-1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id,family_id", [(None, "fam-1"), ("user-leo", None)])
    async def test_skipped_without_user_or_family(self, activity_logger, activity_log, user_id, family_id):
        ok = await activity_logger.log_action(user_id, family_id, "login", "Login realizado")

        assert ok is False
        assert activity_log.entries == []

    @pytest.mark.asyncio
    async def test_long_description_is_truncated(self, activity_logger, activity_log):
        await activity_logger.log_action("user-leo", "fam-1", "update_profile", "x" * 800)

        assert len(activity_log.entries[0].description) == 500

    @pytest.mark.asyncio
    async def test_storage_failure_is_swallowed(self):
        logger = ActivityLogger(FailingActivityLog())

        ok = await logger.log_action("user-leo", "fam-1", "logout", "Logout realizado")

        assert ok is False

    @pytest.mark.asyncio
    async def test_local_only_logger(self):
        """Without storage the entry is only logged locally."""
        assert await ActivityLogger().log_action("user-leo", "fam-1", "login", "Login") is True


class TestRecentActivity:
    """Tests for reading the family log."""

    @pytest_asyncio.fixture
    async def filled_log(self):
        log = InMemoryActivityLog()
        for item in [
            entry("add_income", "Adicionou receita de Léo", minutes_ago=30),
            entry("add_expense", "Adicionou despesa Mercado", minutes_ago=20),
            entry("delete_expense", "Removeu despesa Mercado", minutes_ago=10),
        ]:
            await log.append(item)
        return log

    @pytest.mark.asyncio
    async def test_newest_first(self, filled_log):
        entries = await ActivityLogger(filled_log).recent_activity("fam-1")

        assert [e.action_type for e in entries] == ["delete_expense", "add_expense", "add_income"]

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, filled_log):
        entries = await ActivityLogger(filled_log).recent_activity("fam-1", search="MERCADO")

        assert len(entries) == 2

    @pytest.mark.asyncio
    async def test_filter_by_action_and_limit(self, filled_log):
        logger = ActivityLogger(filled_log)

        by_action = await logger.recent_activity("fam-1", action_type=ActivityAction.ADD_INCOME)
        limited = await logger.recent_activity("fam-1", limit=1)

        assert [e.action_type for e in by_action] == ["add_income"]
        assert len(limited) == 1

    @pytest.mark.asyncio
    async def test_default_limit(self, filled_log):
        """The configured default applies unless the caller passes a limit."""
        logger = ActivityLogger(filled_log, default_limit=2)

        assert len(await logger.recent_activity("fam-1")) == 2
        assert len(await logger.recent_activity("fam-1", limit=3)) == 3

    @pytest.mark.asyncio
    async def test_other_family_is_invisible(self, filled_log):
        assert await ActivityLogger(filled_log).recent_activity("fam-2") == []

    @pytest.mark.asyncio
    async def test_action_types_in_first_seen_order(self, filled_log):
        entries = await ActivityLogger(filled_log).recent_activity("fam-1")

        assert action_types(entries) == ["delete_expense", "add_expense", "add_income"]
