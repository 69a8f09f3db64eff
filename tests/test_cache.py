"""
Tests for the local ledger cache and restoring from it.
"""

import json
import math
from datetime import date

import pytest

from family_budget.ledger.cache import CACHE_KEY, LocalLedgerCache
from family_budget.ledger.store import LedgerStore
from family_budget.models.finance import (
    ExpenseCategory,
    Income,
    IncomeType,
    MonthData,
    NewExpense,
)


TODAY = date(2024, 3, 15)


@pytest.fixture
def cache(tmp_path):
    return LocalLedgerCache(tmp_path / "data" / "ledger_cache.json")


@pytest.fixture
def cached_ledger(identity, records, activity_logger, notifier, cache):
    return LedgerStore(
        identity,
        records,
        activity_logger=activity_logger,
        notifier=notifier,
        cache=cache,
        today=TODAY,
    )


def march_with_income(amount: float = 1000.0) -> MonthData:
    return MonthData(
        month=2,
        year=2024,
        incomes=[
            Income(id="inc-1", person="Léo", type=IncomeType.PAYMENT,
                   amount=amount, date=date(2024, 3, 1)),
        ],
    )


class TestLocalLedgerCache:
    """Tests for the JSON file itself."""

    def test_missing_file_is_no_cache(self, cache):
        assert cache.load() is None

    def test_round_trip(self, cache):
        """A saved month set comes back equal, under the fixed key."""
        cache.save("fam-1", [march_with_income()])

        loaded = cache.load()

        assert loaded.family_id == "fam-1"
        assert loaded.months == [march_with_income()]
        raw = json.loads(cache.path.read_text(encoding="utf-8"))
        assert list(raw) == [CACHE_KEY]

    def test_nan_amount_survives(self, cache):
        cache.save("fam-1", [march_with_income(amount=math.nan)])

        loaded = cache.load()

        assert math.isnan(loaded.months[0].incomes[0].amount)

    def test_other_keys_are_kept(self, cache):
        cache.path.parent.mkdir(parents=True)
        cache.path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")

        cache.save("fam-1", [])

        raw = json.loads(cache.path.read_text(encoding="utf-8"))
        assert raw["theme"] == "dark"
        assert raw[CACHE_KEY]["family_id"] == "fam-1"

    @pytest.mark.parametrize("content", [
        "{not json",
        "[1, 2, 3]",
        json.dumps({CACHE_KEY: {"family_id": "fam-1", "months": [{"month": 14}]}}),
    ])
    def test_corrupt_content_is_no_cache(self, cache, content):
        """Unreadable or invalid data falls back to "nothing cached"."""
        cache.path.parent.mkdir(parents=True)
        cache.path.write_text(content, encoding="utf-8")

        assert cache.load() is None

    def test_clear(self, cache):
        cache.save("fam-1", [march_with_income()])

        cache.clear()

        assert cache.load() is None


class TestLedgerWithCache:
    """Tests for the ledger writing and restoring its cache."""

    @pytest.mark.asyncio
    async def test_mutation_rewrites_cache(self, identity, cached_ledger, cache):
        await identity.register("user-leo", "Léo")

        expense = await cached_ledger.add_expense(
            NewExpense(name="Internet", category=ExpenseCategory.FIXED,
                       amount=120, date=date(2024, 3, 10))
        )

        cached = cache.load()
        assert cached.family_id == identity.family_id
        march = next(m for m in cached.months if (m.month, m.year) == (2, 2024))
        assert march.expenses == [expense]

    @pytest.mark.asyncio
    async def test_restore_for_same_family(self, identity, cached_ledger, cache, records):
        """A fresh ledger for the same family starts from the cached months."""
        await identity.register("user-leo", "Léo")
        await cached_ledger.add_expense(
            NewExpense(name="Internet", category=ExpenseCategory.FIXED,
                       amount=120, date=date(2024, 3, 10))
        )

        restarted = LedgerStore(identity, records, cache=cache, today=TODAY)

        assert restarted.restore_from_cache() is True
        assert restarted.get_month_data(2, 2024).expenses[0].name == "Internet"

    @pytest.mark.asyncio
    async def test_restore_ignores_other_family(self, identity, cached_ledger, cache):
        await identity.register("user-leo", "Léo")
        cache.save("someone-else", [march_with_income()])

        assert cached_ledger.restore_from_cache() is False
        assert cached_ledger.get_month_data(2, 2024).is_empty

    def test_restore_from_corrupt_cache(self, cached_ledger, cache):
        """Corrupt data leaves an empty, seeded ledger."""
        cache.path.parent.mkdir(parents=True)
        cache.path.write_text("garbage", encoding="utf-8")

        assert cached_ledger.restore_from_cache() is False
        assert len(cached_ledger.months()) == 12
        assert all(m.is_empty for m in cached_ledger.months())
