"""
Core Data Models for Family Budget

These models define the shapes of everything the ledger holds:
incomes, expenses, savings goals and food allowances, grouped into
one MonthData container per (month, year).

DESIGN DECISION: Amounts are Decimal and the models do NOT enforce
sign, upper bounds or used <= total. The household enters whatever it
enters; derived percentages are clamped, stored values never are.
A malformed amount arrives as Decimal NaN and is kept as NaN.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class IncomeType(str, Enum):
    """Kind of income received."""
    ALLOWANCE = "allowance"
    PAYMENT = "payment"      # Salary payment
    EXTRA = "extra"
    OTHER = "other"


class ExpenseCategory(str, Enum):
    """Expense categories used for grouping."""
    FIXED = "fixed"
    VARIABLE = "variable"
    INSTALLMENT = "installment"
    LEISURE = "leisure"
    HEALTH = "health"
    TRANSPORT = "transport"
    OTHER = "other"


class PaymentStatus(str, Enum):
    """Payment status for an expense."""
    PENDING = "pending"
    PAID = "paid"


class MovementType(str, Enum):
    """
    Discriminator stored on each remote record.

    Decides which MonthData collection a record lands in and which
    field mapping applies.
    """
    INCOME = "income"
    EXPENSE = "expense"
    GOAL = "goal"
    ALLOWANCE = "allowance"


# Money. NaN and infinity are accepted; JSON writes them as "NaN"/"Infinity".
Amount = Annotated[Decimal, Field(allow_inf_nan=True)]

ZERO = Decimal(0)


class LedgerModel(BaseModel):
    """Base for ledger models."""
    model_config = ConfigDict(str_strip_whitespace=True)


# =============================================================================
# MONTH KEY
# =============================================================================

class MonthKey(LedgerModel):
    """
    Composite (month, year) key.

    Months are zero-based (0 = January). ``ordinal`` encodes the pair
    as ``year * 12 + month`` so keys sort chronologically.
    """
    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=0, le=11)
    year: int

    @property
    def ordinal(self) -> int:
        return self.year * 12 + self.month

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "MonthKey":
        year, month = divmod(ordinal, 12)
        return cls(month=month, year=year)

    @classmethod
    def from_date(cls, value: date) -> "MonthKey":
        return cls(month=value.month - 1, year=value.year)

    def first_day(self) -> date:
        return date(self.year, self.month + 1, 1)


# =============================================================================
# ENTITIES
# =============================================================================

class NewIncome(LedgerModel):
    """Income fields as entered, before the store assigns an id."""

    person: str = Field(
        ...,
        description="Who received the income (free text)"
    )
    type: IncomeType
    amount: Amount
    date: date


class Income(NewIncome):
    id: str = Field(..., min_length=1)


class NewExpense(LedgerModel):
    """Expense fields as entered, before the store assigns an id."""

    name: str = Field(
        ...,
        description="What the money was spent on"
    )
    category: ExpenseCategory
    amount: Amount
    date: date
    status: PaymentStatus = PaymentStatus.PENDING


class Expense(NewExpense):
    id: str = Field(..., min_length=1)


class NewSavingsGoal(LedgerModel):
    """Savings goal fields as entered, before the store assigns an id."""

    name: str
    target_amount: Amount
    saved_amount: Amount = ZERO
    target_month: int = Field(..., ge=0, le=11)
    target_year: int


class SavingsGoal(NewSavingsGoal):
    id: str = Field(..., min_length=1)


class NewFoodAllowance(LedgerModel):
    """Food allowance (meal voucher) balance, before the store assigns an id."""

    person: str
    total_amount: Amount
    used_amount: Amount = ZERO


class FoodAllowance(NewFoodAllowance):
    id: str = Field(..., min_length=1)


# =============================================================================
# MONTH CONTAINER AND DERIVED FIGURES
# =============================================================================

class MonthData(LedgerModel):
    """
    Everything recorded for one (month, year).

    Created lazily by the ledger store the first time a month is
    requested; never destroyed while the family stays active.
    """

    month: int = Field(..., ge=0, le=11)
    year: int
    incomes: list[Income] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    savings_goals: list[SavingsGoal] = Field(default_factory=list)
    food_allowances: list[FoodAllowance] = Field(default_factory=list)

    @property
    def key(self) -> MonthKey:
        return MonthKey(month=self.month, year=self.year)

    @property
    def is_empty(self) -> bool:
        return not (
            self.incomes
            or self.expenses
            or self.savings_goals
            or self.food_allowances
        )


class MonthSummary(LedgerModel):
    """
    Derived totals for one month. Never persisted.

    CRITICAL: balance = total_income - total_expenses.
    Savings are tracked but deliberately NOT subtracted from the balance.
    """

    total_income: Amount = ZERO
    total_expenses: Amount = ZERO
    total_saved: Amount = ZERO
    balance: Amount = ZERO


class MonthlyBreakdown(MonthSummary):
    """One row of the annual overview."""

    month: int = Field(..., ge=0, le=11)


class YearSummary(LedgerModel):
    """Annual aggregation over the twelve months of a calendar year."""

    year: int
    months: list[MonthlyBreakdown] = Field(default_factory=list)

    total_income: Amount = ZERO
    total_expenses: Amount = ZERO
    total_saved: Amount = ZERO
    balance: Amount = ZERO

    # Averages always divide by 12; empty months count as zero
    average_income: Amount = ZERO
    average_expenses: Amount = ZERO
    average_saved: Amount = ZERO
    average_balance: Amount = ZERO


# =============================================================================
# REMOTE RECORD
# =============================================================================

class Movement(LedgerModel):
    """
    A row of the remote record store.

    All four entity types share one table, told apart by ``type``.
    ``date`` is kept as the ISO-8601 string found on the wire; the
    ledger parses it when bucketing rows into months.
    """

    id: Optional[str] = Field(
        default=None,
        description="Assigned by the record store on insert"
    )
    family_id: str
    user_id: str
    type: MovementType
    amount: Amount
    date: str = Field(
        ...,
        description="ISO-8601 date or datetime"
    )
    person_name: str = ""

    name: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    target_amount: Optional[Amount] = None
    target_month: Optional[int] = None
    target_year: Optional[int] = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
