"""
Ledger Store

Owns the in-process set of MonthData containers for the active family
and exposes add/update/delete per entity type plus monthly and annual
summaries.

CRITICAL RULES:
1. Every mutation writes to the remote record store FIRST. Local state
   only changes after the remote call succeeded, so a failure never
   leaves a partial write behind.
2. Adds land in the month of the active cursor, NOT in the month of the
   entity's own date. A March-dated income added while February is
   selected shows up in February until the next bulk load re-buckets
   it by date.
3. Updates and deletes only look at the active month. An id that is not
   there yields MutationResult.NOT_FOUND; it is not an error.
4. Switching family discards the previous family's months entirely.
   A mutation still waiting on the remote store when the family changes
   is written remotely but never applied to the new family's ledger.
"""

from collections.abc import Callable
from datetime import date
from enum import Enum
from typing import Any, NamedTuple, Optional

import structlog

from family_budget.activity.logger import ActivityLogger
from family_budget.identity.context import (
    IdentityContext,
    IdentityError,
    NotAuthenticatedError,
)
from family_budget.ledger import aggregation
from family_budget.ledger.cache import LocalLedgerCache
from family_budget.ledger.movements import (
    Entity,
    allowance_changes,
    expense_changes,
    goal_changes,
    income_changes,
    movement_to_entity,
    new_allowance_movement,
    new_expense_movement,
    new_goal_movement,
    new_income_movement,
)
from family_budget.models.activity import ActivityAction
from family_budget.models.finance import (
    Expense,
    FoodAllowance,
    Income,
    MonthData,
    MonthKey,
    MonthSummary,
    Movement,
    MovementType,
    NewExpense,
    NewFoodAllowance,
    NewIncome,
    NewSavingsGoal,
    SavingsGoal,
    YearSummary,
)
from family_budget.models.identity import Family, IdentitySnapshot
from family_budget.services.notifications import LoggingNotifier, NotifierInterface
from family_budget.services.storage import RecordStoreInterface
from family_budget.utils.formatters import format_currency


logger = structlog.get_logger(__name__)


class MutationResult(str, Enum):
    """Outcome of an update or delete against the active month."""
    APPLIED = "applied"
    NOT_FOUND = "not_found"


class _Collection(NamedTuple):
    """How one entity type is stored, logged and described."""
    attribute: str
    label: str
    noun: str
    entity_type: type
    added: ActivityAction
    updated: ActivityAction
    deleted: ActivityAction
    describe: Callable[[Any], str]


INCOMES = _Collection(
    attribute="incomes",
    label="income",
    noun="receita",
    entity_type=Income,
    added=ActivityAction.ADD_INCOME,
    updated=ActivityAction.UPDATE_INCOME,
    deleted=ActivityAction.DELETE_INCOME,
    describe=lambda i: f"receita de {i.person} ({format_currency(i.amount)})",
)

EXPENSES = _Collection(
    attribute="expenses",
    label="expense",
    noun="despesa",
    entity_type=Expense,
    added=ActivityAction.ADD_EXPENSE,
    updated=ActivityAction.UPDATE_EXPENSE,
    deleted=ActivityAction.DELETE_EXPENSE,
    describe=lambda e: f"despesa {e.name} ({format_currency(e.amount)})",
)

SAVINGS_GOALS = _Collection(
    attribute="savings_goals",
    label="savings_goal",
    noun="meta",
    entity_type=SavingsGoal,
    added=ActivityAction.ADD_SAVINGS_GOAL,
    updated=ActivityAction.UPDATE_SAVINGS_GOAL,
    deleted=ActivityAction.DELETE_SAVINGS_GOAL,
    describe=lambda g: f"meta {g.name} ({format_currency(g.target_amount)})",
)

FOOD_ALLOWANCES = _Collection(
    attribute="food_allowances",
    label="food_allowance",
    noun="vale alimentação",
    entity_type=FoodAllowance,
    added=ActivityAction.ADD_FOOD_ALLOWANCE,
    updated=ActivityAction.UPDATE_FOOD_ALLOWANCE,
    deleted=ActivityAction.DELETE_FOOD_ALLOWANCE,
    describe=lambda a: f"vale alimentação de {a.person} ({format_currency(a.total_amount)})",
)

COLLECTIONS_BY_TYPE = {
    MovementType.INCOME: INCOMES,
    MovementType.EXPENSE: EXPENSES,
    MovementType.GOAL: SAVINGS_GOALS,
    MovementType.ALLOWANCE: FOOD_ALLOWANCES,
}


class LedgerStore:
    """
    Month-indexed ledger of one family.

    Containers are keyed by ``MonthKey.ordinal`` (year * 12 + month) and
    created on first access. On every reset (startup, family change,
    clear) the twelve months of the current calendar year are seeded.

    Usage:
        store = LedgerStore(identity, records)
        await store.load()
        store.set_cursor(2, 2024)
        await store.add_income(NewIncome(...))
        store.get_month_summary(2, 2024)
    """

    def __init__(
        self,
        identity: IdentityContext,
        records: RecordStoreInterface,
        activity_logger: Optional[ActivityLogger] = None,
        notifier: Optional[NotifierInterface] = None,
        cache: Optional[LocalLedgerCache] = None,
        today: Optional[date] = None,
    ):
        self._identity = identity
        self._records = records
        self._activity = activity_logger or ActivityLogger()
        self._notifier = notifier or LoggingNotifier()
        self._cache = cache
        self._today = today or date.today()

        self._current_month = self._today.month - 1
        self._current_year = self._today.year
        self._months: dict[int, MonthData] = {}
        self._family_id: Optional[str] = identity.family_id
        self._loading = False
        # Bumped on every reset so a slow bulk load cannot land in a
        # ledger that was cleared while it was in flight
        self._generation = 0

        self._reset()
        identity.add_listener(self._on_family_changed)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def family_id(self) -> Optional[str]:
        return self._family_id

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def current_month(self) -> int:
        return self._current_month

    @property
    def current_year(self) -> int:
        return self._current_year

    @property
    def cursor(self) -> MonthKey:
        return MonthKey(month=self._current_month, year=self._current_year)

    def set_cursor(self, month: int, year: int) -> None:
        """
        Select the active (month, year). Months are zero-based.

        Raises:
            ValueError: If month is outside 0-11
        """
        if not 0 <= month <= 11:
            raise ValueError(f"Month must be between 0 and 11, got {month}")
        self._current_month = month
        self._current_year = year

    def _reset(self) -> None:
        self._generation += 1
        self._loading = False
        self._months = {}
        for month in range(12):
            self.get_month_data(month, self._today.year)

    def clear(self) -> None:
        """Discard every container and reseed the current year."""
        self._reset()
        logger.info("ledger_cleared", family_id=self._family_id)

    # =========================================================================
    # MONTH ACCESS
    # =========================================================================

    def get_month_data(self, month: int, year: int) -> MonthData:
        """
        The container for (month, year), created empty if absent.

        Repeated calls return the same object.
        """
        key = MonthKey(month=month, year=year)
        month_data = self._months.get(key.ordinal)
        if month_data is None:
            month_data = MonthData(month=key.month, year=key.year)
            self._months[key.ordinal] = month_data
        return month_data

    def get_current_month_data(self) -> MonthData:
        return self.get_month_data(self._current_month, self._current_year)

    def months(self) -> list[MonthData]:
        """All containers, oldest first."""
        return [self._months[ordinal] for ordinal in sorted(self._months)]

    # =========================================================================
    # SUMMARIES
    # =========================================================================

    def get_month_summary(self, month: int, year: int) -> MonthSummary:
        """Totals for (month, year). Does not create the container."""
        key = MonthKey(month=month, year=year)
        return aggregation.summarize_month(self._months.get(key.ordinal))

    def get_year_summary(self, year: int) -> YearSummary:
        return aggregation.summarize_year(
            year,
            [self.get_month_summary(month, year) for month in range(12)],
        )

    # =========================================================================
    # BULK LOAD
    # =========================================================================

    async def _on_family_changed(self, family: Optional[Family]) -> None:
        await self.activate_family(family)

    async def activate_family(self, family: Optional[Family]) -> int:
        """
        Switch to another family's ledger.

        The previous family's months are dropped before anything else.
        A None family leaves the ledger cleared without querying.
        """
        self._family_id = family.id if family else None
        self.clear()
        if family is None:
            return 0
        return await self.load()

    async def load(self) -> int:
        """
        Replace the ledger with every movement of the active family.

        Returns the number of movements placed. On a remote failure the
        ledger stays empty, the user is notified, and load() may simply
        be called again.
        """
        family_id = self._family_id
        self._reset()
        generation = self._generation

        if not family_id:
            logger.info("ledger_load_skipped", reason="no_family")
            return 0

        self._loading = True
        try:
            movements = await self._records.list_by_family(family_id)
        except Exception as e:
            logger.error("ledger_load_failed", family_id=family_id, error=str(e))
            self._notifier.error("Erro ao carregar dados. Por favor, tente novamente.")
            return 0
        finally:
            if generation == self._generation:
                self._loading = False

        if generation != self._generation:
            logger.info("ledger_load_discarded", family_id=family_id)
            return 0

        placed = self._place_movements(movements)
        logger.info(
            "ledger_loaded",
            family_id=family_id,
            movements=len(movements),
            placed=placed,
        )
        self._persist()
        return placed

    def _place_movements(self, movements: list[Movement]) -> int:
        placed = 0
        for movement in movements:
            try:
                key, entity = movement_to_entity(movement)
            except ValueError as e:
                logger.warning(
                    "movement_skipped",
                    movement_id=movement.id,
                    type=movement.type.value,
                    error=str(e),
                )
                continue

            collection = COLLECTIONS_BY_TYPE[movement.type]
            month_data = self.get_month_data(key.month, key.year)
            getattr(month_data, collection.attribute).append(entity)
            placed += 1
        return placed

    # =========================================================================
    # LOCAL CACHE
    # =========================================================================

    def _persist(self) -> None:
        if self._cache is None or not self._family_id:
            return
        try:
            self._cache.save(self._family_id, self.months())
        except OSError as e:
            logger.warning("ledger_cache_write_failed", error=str(e))

    def restore_from_cache(self) -> bool:
        """
        Load the cached month set if it belongs to the active family.

        Returns False (and leaves an empty seeded ledger) when there is
        no cache, the cache is corrupt, or it belongs to another family.
        """
        self._reset()
        if self._cache is None or not self._family_id:
            return False

        cached = self._cache.load()
        if cached is None:
            return False
        if cached.family_id != self._family_id:
            logger.info(
                "ledger_cache_ignored",
                cached_family_id=cached.family_id,
                family_id=self._family_id,
            )
            return False

        for month_data in cached.months:
            self._months[month_data.key.ordinal] = month_data
        logger.info("ledger_cache_restored", family_id=self._family_id, months=len(cached.months))
        return True

    # =========================================================================
    # GENERIC MUTATIONS
    # =========================================================================

    def _require_author(self) -> IdentitySnapshot:
        snapshot = self._identity.snapshot
        if not snapshot.is_authenticated:
            raise NotAuthenticatedError("Usuário não autenticado")
        if not snapshot.profile.family_id:
            raise IdentityError("Usuário não pertence a nenhuma família")
        return snapshot

    def _fail(self, verb: str, collection: _Collection, error: Exception) -> None:
        logger.error(
            f"{collection.label}_{verb}_failed",
            family_id=self._family_id,
            error=str(error),
        )
        message = {
            "add": "salvar",
            "update": "atualizar",
            "delete": "remover",
        }[verb]
        self._notifier.error(f"Erro ao {message} {collection.noun}. Por favor, tente novamente.")

    async def _record_activity(self, action: ActivityAction, description: str) -> None:
        snapshot = self._identity.snapshot
        family_id = snapshot.profile.family_id if snapshot.profile else None
        await self._activity.log_action(snapshot.user_id, family_id, action, description)

    def _superseded(self, generation: int, collection: _Collection, verb: str, entity_id: str) -> bool:
        """True if the ledger was reset while a remote call was in flight."""
        if generation == self._generation:
            return False
        logger.info(
            f"{collection.label}_{verb}_discarded",
            id=entity_id,
            family_id=self._family_id,
        )
        return True

    async def _add(
        self,
        collection: _Collection,
        draft: Any,
        to_movement: Callable[[IdentitySnapshot, MonthKey], Movement],
    ) -> Entity:
        key = self.cursor
        generation = self._generation
        try:
            snapshot = self._require_author()
            stored = await self._records.insert(to_movement(snapshot, key))
        except Exception as e:
            self._fail("add", collection, e)
            raise

        entity = collection.entity_type.model_validate({**draft.model_dump(), "id": stored.id})
        if self._superseded(generation, collection, "add", entity.id):
            return entity

        getattr(self.get_month_data(key.month, key.year), collection.attribute).append(entity)

        logger.info(
            f"{collection.label}_added",
            id=entity.id,
            month=key.month,
            year=key.year,
        )
        self._persist()
        await self._record_activity(
            collection.added, f"Adicionou {collection.describe(entity)}"
        )
        return entity

    async def _update(
        self,
        collection: _Collection,
        entity: Entity,
        changes: dict[str, Any],
    ) -> MutationResult:
        key = self.cursor
        generation = self._generation
        try:
            changed = await self._records.update(entity.id, changes)
        except Exception as e:
            self._fail("update", collection, e)
            raise

        if self._superseded(generation, collection, "update", entity.id):
            return MutationResult.NOT_FOUND
        if not changed:
            logger.info(f"{collection.label}_missing_remotely", id=entity.id)

        items = getattr(self.get_month_data(key.month, key.year), collection.attribute)
        for index, existing in enumerate(items):
            if existing.id == entity.id:
                items[index] = collection.entity_type.model_validate(entity.model_dump())
                break
        else:
            logger.info(
                f"{collection.label}_not_in_active_month",
                id=entity.id,
                month=key.month,
                year=key.year,
            )
            return MutationResult.NOT_FOUND

        logger.info(f"{collection.label}_updated", id=entity.id)
        self._persist()
        await self._record_activity(
            collection.updated, f"Atualizou {collection.describe(entity)}"
        )
        return MutationResult.APPLIED

    async def _delete(self, collection: _Collection, entity_id: str) -> MutationResult:
        key = self.cursor
        generation = self._generation
        try:
            deleted = await self._records.delete(entity_id)
        except Exception as e:
            self._fail("delete", collection, e)
            raise

        if self._superseded(generation, collection, "delete", entity_id):
            return MutationResult.NOT_FOUND
        if not deleted:
            logger.info(f"{collection.label}_missing_remotely", id=entity_id)

        items = getattr(self.get_month_data(key.month, key.year), collection.attribute)
        for index, existing in enumerate(items):
            if existing.id == entity_id:
                removed = items.pop(index)
                break
        else:
            logger.info(
                f"{collection.label}_not_in_active_month",
                id=entity_id,
                month=key.month,
                year=key.year,
            )
            return MutationResult.NOT_FOUND

        logger.info(f"{collection.label}_deleted", id=entity_id)
        self._persist()
        await self._record_activity(
            collection.deleted, f"Removeu {collection.describe(removed)}"
        )
        return MutationResult.APPLIED

    # =========================================================================
    # INCOMES
    # =========================================================================

    async def add_income(self, income: NewIncome) -> Income:
        """
        Record an income in the active month.

        Raises:
            NotAuthenticatedError: If no user with a profile is signed in
            StorageError: If the remote insert fails
        """
        return await self._add(
            INCOMES,
            income,
            lambda who, key: new_income_movement(
                income, who.profile.family_id, who.user_id
            ),
        )

    async def update_income(self, income: Income) -> MutationResult:
        return await self._update(INCOMES, income, income_changes(income))

    async def delete_income(self, income_id: str) -> MutationResult:
        return await self._delete(INCOMES, income_id)

    # =========================================================================
    # EXPENSES
    # =========================================================================

    async def add_expense(self, expense: NewExpense) -> Expense:
        """Record an expense in the active month, attributed to the current user."""
        return await self._add(
            EXPENSES,
            expense,
            lambda who, key: new_expense_movement(
                expense, who.profile.family_id, who.user_id, who.profile.name
            ),
        )

    async def update_expense(self, expense: Expense) -> MutationResult:
        return await self._update(EXPENSES, expense, expense_changes(expense))

    async def delete_expense(self, expense_id: str) -> MutationResult:
        return await self._delete(EXPENSES, expense_id)

    # =========================================================================
    # SAVINGS GOALS
    # =========================================================================

    async def add_savings_goal(self, goal: NewSavingsGoal) -> SavingsGoal:
        """
        Record a savings goal in the active month.

        Goals have no date of their own; the stored row is dated on the
        first day of the active month so a reload puts it back there.
        """
        return await self._add(
            SAVINGS_GOALS,
            goal,
            lambda who, key: new_goal_movement(
                goal, who.profile.family_id, who.user_id, who.profile.name, key.first_day()
            ),
        )

    async def update_savings_goal(self, goal: SavingsGoal) -> MutationResult:
        return await self._update(SAVINGS_GOALS, goal, goal_changes(goal))

    async def delete_savings_goal(self, goal_id: str) -> MutationResult:
        return await self._delete(SAVINGS_GOALS, goal_id)

    # =========================================================================
    # FOOD ALLOWANCES
    # =========================================================================

    async def add_food_allowance(self, allowance: NewFoodAllowance) -> FoodAllowance:
        return await self._add(
            FOOD_ALLOWANCES,
            allowance,
            lambda who, key: new_allowance_movement(
                allowance, who.profile.family_id, who.user_id, key.first_day()
            ),
        )

    async def update_food_allowance(self, allowance: FoodAllowance) -> MutationResult:
        return await self._update(FOOD_ALLOWANCES, allowance, allowance_changes(allowance))

    async def delete_food_allowance(self, allowance_id: str) -> MutationResult:
        return await self._delete(FOOD_ALLOWANCES, allowance_id)
