"""
Aggregation over MonthData.

Pure functions: no I/O, no mutation. Everything the dashboard, the
category breakdowns and the annual overview show is computed here.

IMPORTANT: Grouping keys are compared exactly as typed. "Léo" and "Leo"
are two different people as far as these functions are concerned.
"""

import math
from collections.abc import Iterable, Sequence
from decimal import Decimal, InvalidOperation, localcontext
from typing import Optional

from family_budget.models.finance import (
    Expense,
    FoodAllowance,
    Income,
    MonthData,
    MonthlyBreakdown,
    MonthSummary,
    PaymentStatus,
    SavingsGoal,
    YearSummary,
    ZERO,
)
from family_budget.utils.formatters import Number, to_decimal

MONTHS_PER_YEAR = 12


def _key(value) -> str:
    return getattr(value, "value", value)


def _sum(values: Iterable[Decimal]) -> Decimal:
    # Infinite amounts of opposite sign add up to NaN, not an error
    with localcontext() as ctx:
        ctx.traps[InvalidOperation] = False
        return sum(values, ZERO)


# =============================================================================
# TOTALS
# =============================================================================

def total_income(incomes: Iterable[Income]) -> Decimal:
    return _sum(income.amount for income in incomes)


def total_expenses(expenses: Iterable[Expense]) -> Decimal:
    """Sum of all expenses, paid or not."""
    return _sum(expense.amount for expense in expenses)


def total_saved(goals: Iterable[SavingsGoal]) -> Decimal:
    return _sum(goal.saved_amount for goal in goals)


def total_by_status(expenses: Iterable[Expense], status: PaymentStatus) -> Decimal:
    """Subtotal of expenses with the given payment status."""
    return _sum(expense.amount for expense in expenses if expense.status == status)


def summarize_month(month_data: Optional[MonthData]) -> MonthSummary:
    """
    Totals for one month.

    A missing month summarizes to all zeros. The balance is income minus
    expenses; savings are reported but never subtracted.
    """
    if month_data is None:
        return MonthSummary()

    income = total_income(month_data.incomes)
    expenses = total_expenses(month_data.expenses)
    return MonthSummary(
        total_income=income,
        total_expenses=expenses,
        total_saved=total_saved(month_data.savings_goals),
        balance=_sum((income, -expenses)),
    )


# =============================================================================
# GROUPING
# =============================================================================

def group_expenses_by_category(expenses: Iterable[Expense]) -> dict[str, list[Expense]]:
    """Expenses per category, categories in first-seen order."""
    groups: dict[str, list[Expense]] = {}
    for expense in expenses:
        groups.setdefault(_key(expense.category), []).append(expense)
    return groups


def group_incomes_by_person(incomes: Iterable[Income]) -> dict[str, list[Income]]:
    """Incomes per person, people in first-seen order."""
    groups: dict[str, list[Income]] = {}
    for income in incomes:
        groups.setdefault(income.person, []).append(income)
    return groups


def sum_expenses_by_category(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    return {
        category: total_expenses(items)
        for category, items in group_expenses_by_category(expenses).items()
    }


def sum_incomes_by_person(incomes: Iterable[Income]) -> dict[str, Decimal]:
    return {
        person: total_income(items)
        for person, items in group_incomes_by_person(incomes).items()
    }


# =============================================================================
# PERCENTAGES AND REMAINDERS
# =============================================================================

def percentage(part: Number, whole: Number) -> int:
    """
    ``part`` as a whole-number percentage of ``whole``, clamped to [0, 100].

    A zero (or NaN) ``whole`` counts as 0%. Only the displayed figure is
    clamped; the underlying amounts are left alone.
    """
    part, whole = to_decimal(part), to_decimal(whole)
    if part.is_nan() or whole.is_nan() or whole.is_infinite() or whole == 0:
        return 0
    if part.is_infinite():
        return 100 if (part > 0) == (whole > 0) else 0
    ratio = part / whole * 100
    # Half rounds up (62.5 -> 63), not to even
    return max(0, min(100, math.floor(ratio + Decimal("0.5"))))


def remaining_amount(total: Number, used: Number) -> Decimal:
    """What is left of ``total`` after ``used``, never below zero."""
    remaining = _sum((to_decimal(total), -to_decimal(used)))
    if remaining.is_nan():
        return ZERO
    return max(remaining, ZERO)


def allowance_usage_percentage(allowance: FoodAllowance) -> int:
    return percentage(allowance.used_amount, allowance.total_amount)


def allowance_remaining(allowance: FoodAllowance) -> Decimal:
    return remaining_amount(allowance.total_amount, allowance.used_amount)


def goal_progress_percentage(goal: SavingsGoal) -> int:
    return percentage(goal.saved_amount, goal.target_amount)


def goal_remaining(goal: SavingsGoal) -> Decimal:
    return remaining_amount(goal.target_amount, goal.saved_amount)


def allowance_totals(month_data: MonthData) -> tuple[Decimal, Decimal]:
    """(total granted, total used) across all food allowances of a month."""
    total = _sum(a.total_amount for a in month_data.food_allowances)
    used = _sum(a.used_amount for a in month_data.food_allowances)
    return total, used


# =============================================================================
# ANNUAL
# =============================================================================

def summarize_year(year: int, summaries: Sequence[MonthSummary]) -> YearSummary:
    """
    Aggregate twelve monthly summaries (index = month).

    Averages divide by 12 no matter how many months have data: an empty
    month contributes zero, it is not skipped.
    """
    if len(summaries) != MONTHS_PER_YEAR:
        raise ValueError(
            f"Expected {MONTHS_PER_YEAR} monthly summaries, got {len(summaries)}"
        )

    rows = [
        MonthlyBreakdown(month=month, **summary.model_dump())
        for month, summary in enumerate(summaries)
    ]

    income = _sum(row.total_income for row in rows)
    expenses = _sum(row.total_expenses for row in rows)
    saved = _sum(row.total_saved for row in rows)
    balance = _sum(row.balance for row in rows)

    return YearSummary(
        year=year,
        months=rows,
        total_income=income,
        total_expenses=expenses,
        total_saved=saved,
        balance=balance,
        average_income=income / MONTHS_PER_YEAR,
        average_expenses=expenses / MONTHS_PER_YEAR,
        average_saved=saved / MONTHS_PER_YEAR,
        average_balance=balance / MONTHS_PER_YEAR,
    )
