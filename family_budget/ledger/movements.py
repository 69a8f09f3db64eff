"""
Mapping between ledger entities and remote movement rows.

Every entity type is stored in the same relation. The ``type`` column
says which entity a row is, and the generic columns are reused:

    income     amount, date, person_name, category=income type
    expense    amount, date, name, category, status
    goal       amount=saved, name, target_amount/month/year
    allowance  amount=used, person_name, target_amount=total
"""

from datetime import date, datetime
from typing import Any, Union

from family_budget.models.finance import (
    Expense,
    ExpenseCategory,
    FoodAllowance,
    Income,
    IncomeType,
    MonthKey,
    Movement,
    MovementType,
    NewExpense,
    NewFoodAllowance,
    NewIncome,
    NewSavingsGoal,
    PaymentStatus,
    SavingsGoal,
    ZERO,
)

Entity = Union[Income, Expense, SavingsGoal, FoodAllowance]


def parse_movement_date(value: str) -> date:
    """
    Day of an ISO-8601 date or datetime string.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text).date()


# =============================================================================
# ENTITY -> ROW
# =============================================================================

def new_income_movement(income: NewIncome, family_id: str, user_id: str) -> Movement:
    return Movement(
        family_id=family_id,
        user_id=user_id,
        type=MovementType.INCOME,
        amount=income.amount,
        date=income.date.isoformat(),
        person_name=income.person,
        category=income.type.value,
    )


def new_expense_movement(
    expense: NewExpense,
    family_id: str,
    user_id: str,
    person_name: str,
) -> Movement:
    return Movement(
        family_id=family_id,
        user_id=user_id,
        type=MovementType.EXPENSE,
        name=expense.name,
        amount=expense.amount,
        date=expense.date.isoformat(),
        person_name=person_name,
        category=expense.category.value,
        status=expense.status.value,
    )


def new_goal_movement(
    goal: NewSavingsGoal,
    family_id: str,
    user_id: str,
    person_name: str,
    on: date,
) -> Movement:
    return Movement(
        family_id=family_id,
        user_id=user_id,
        type=MovementType.GOAL,
        name=goal.name,
        amount=goal.saved_amount,
        date=on.isoformat(),
        person_name=person_name,
        target_amount=goal.target_amount,
        target_month=goal.target_month,
        target_year=goal.target_year,
    )


def new_allowance_movement(
    allowance: NewFoodAllowance,
    family_id: str,
    user_id: str,
    on: date,
) -> Movement:
    return Movement(
        family_id=family_id,
        user_id=user_id,
        type=MovementType.ALLOWANCE,
        amount=allowance.used_amount,
        date=on.isoformat(),
        person_name=allowance.person,
        target_amount=allowance.total_amount,
    )


# Column changes sent on update. Ownership columns (family, user) and the
# bucketing date of goals and allowances are never rewritten.

def income_changes(income: Income) -> dict[str, Any]:
    return {
        "amount": income.amount,
        "date": income.date.isoformat(),
        "person_name": income.person,
        "category": income.type.value,
    }


def expense_changes(expense: Expense) -> dict[str, Any]:
    return {
        "name": expense.name,
        "amount": expense.amount,
        "date": expense.date.isoformat(),
        "category": expense.category.value,
        "status": expense.status.value,
    }


def goal_changes(goal: SavingsGoal) -> dict[str, Any]:
    return {
        "name": goal.name,
        "amount": goal.saved_amount,
        "target_amount": goal.target_amount,
        "target_month": goal.target_month,
        "target_year": goal.target_year,
    }


def allowance_changes(allowance: FoodAllowance) -> dict[str, Any]:
    return {
        "person_name": allowance.person,
        "amount": allowance.used_amount,
        "target_amount": allowance.total_amount,
    }


# =============================================================================
# ROW -> ENTITY
# =============================================================================

def movement_to_entity(movement: Movement) -> tuple[MonthKey, Entity]:
    """
    Turn a stored row back into the entity it represents.

    Returns the (month, year) the row belongs to, taken from its date,
    and the entity.

    Raises:
        ValueError: If the date, the id or an enum column is invalid
    """
    if not movement.id:
        raise ValueError("Movement has no id")

    day = parse_movement_date(movement.date)
    key = MonthKey.from_date(day)

    if movement.type == MovementType.INCOME:
        entity = Income(
            id=movement.id,
            person=movement.person_name,
            type=IncomeType(movement.category),
            amount=movement.amount,
            date=day,
        )
    elif movement.type == MovementType.EXPENSE:
        entity = Expense(
            id=movement.id,
            name=movement.name or "",
            category=ExpenseCategory(movement.category),
            amount=movement.amount,
            date=day,
            status=PaymentStatus(movement.status or PaymentStatus.PENDING.value),
        )
    elif movement.type == MovementType.GOAL:
        entity = SavingsGoal(
            id=movement.id,
            name=movement.name or "",
            target_amount=movement.target_amount or ZERO,
            saved_amount=movement.amount,
            target_month=(
                key.month if movement.target_month is None else movement.target_month
            ),
            target_year=(
                key.year if movement.target_year is None else movement.target_year
            ),
        )
    else:
        entity = FoodAllowance(
            id=movement.id,
            person=movement.person_name,
            total_amount=movement.target_amount or ZERO,
            used_amount=movement.amount,
        )

    return key, entity
