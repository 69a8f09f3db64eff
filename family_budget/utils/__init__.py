"""Display and input helpers."""

from family_budget.utils.formatters import (
    EXPENSE_CATEGORY_LABELS,
    INCOME_TYPE_LABELS,
    MONTH_NAMES,
    PAYMENT_STATUS_LABELS,
    format_currency,
    format_date,
    get_label,
    get_month_name,
    parse_amount,
    to_decimal,
)

__all__ = [
    "EXPENSE_CATEGORY_LABELS",
    "INCOME_TYPE_LABELS",
    "MONTH_NAMES",
    "PAYMENT_STATUS_LABELS",
    "format_currency",
    "format_date",
    "get_label",
    "get_month_name",
    "parse_amount",
    "to_decimal",
]
