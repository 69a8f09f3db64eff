"""
Data Models Package

This package contains all Pydantic models used by Family Budget.
"""

from family_budget.models.finance import (
    Expense,
    ExpenseCategory,
    FoodAllowance,
    Income,
    IncomeType,
    MonthData,
    MonthKey,
    MonthlyBreakdown,
    MonthSummary,
    Movement,
    MovementType,
    NewExpense,
    NewFoodAllowance,
    NewIncome,
    NewSavingsGoal,
    PaymentStatus,
    SavingsGoal,
    YearSummary,
)
from family_budget.models.identity import (
    Family,
    IdentitySnapshot,
    Profile,
)
from family_budget.models.activity import (
    ActivityAction,
    ActivityEntryBuilder,
    ActivityLogEntry,
)

__all__ = [
    # Ledger models
    "Expense",
    "ExpenseCategory",
    "FoodAllowance",
    "Income",
    "IncomeType",
    "MonthData",
    "MonthKey",
    "MonthlyBreakdown",
    "MonthSummary",
    "Movement",
    "MovementType",
    "NewExpense",
    "NewFoodAllowance",
    "NewIncome",
    "NewSavingsGoal",
    "PaymentStatus",
    "SavingsGoal",
    "YearSummary",
    # Identity models
    "Family",
    "IdentitySnapshot",
    "Profile",
    # Activity models
    "ActivityAction",
    "ActivityEntryBuilder",
    "ActivityLogEntry",
]
