"""
Formatting utilities for currency, dates and month names.

All display strings follow the Brazilian Portuguese conventions the
household uses (R$, day/month/year, Portuguese month names).
No state lives here.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CURRENCY_SYMBOL = "R$"
CENT = Decimal("0.01")

# Intl.NumberFormat('pt-BR') separates symbol and amount with a no-break space
_SYMBOL_SEPARATOR = "\u00a0"

MONTH_NAMES = [
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
]

INCOME_TYPE_LABELS = {
    "payment": "Pagamento",
    "allowance": "Vale",
    "extra": "Extra",
    "other": "Outros",
}

EXPENSE_CATEGORY_LABELS = {
    "fixed": "Fixa",
    "variable": "Variável",
    "installment": "Parcelada",
    "leisure": "Lazer",
    "health": "Saúde",
    "transport": "Transporte",
    "other": "Outros",
}

PAYMENT_STATUS_LABELS = {
    "pending": "Pendente",
    "paid": "Paga",
}

Number = Union[Decimal, float, int]


def to_decimal(value: Number) -> Decimal:
    """Decimal for any number; floats go through str to drop binary noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_currency(value: Number) -> str:
    """Format a number as Brazilian Real.

    Args:
        value: The amount to format

    Returns:
        Formatted string, e.g. ``R$ 1.234,56`` (no-break space after the symbol)

    Example:
        >>> format_currency(Decimal("-1234.5"))
        '-R$\\xa01.234,50'
    """
    amount = to_decimal(value)
    if amount.is_nan():
        return f"{CURRENCY_SYMBOL}{_SYMBOL_SEPARATOR}NaN"
    if amount.is_infinite():
        sign = "-" if amount < 0 else ""
        return f"{sign}{CURRENCY_SYMBOL}{_SYMBOL_SEPARATOR}∞"

    cents = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    # -0.00 is not negative, so a balance that rounds to zero has no sign
    sign = "-" if cents < 0 else ""
    # Format with US separators, then swap them for pt-BR
    digits = f"{abs(cents):,.2f}"
    digits = digits.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}{CURRENCY_SYMBOL}{_SYMBOL_SEPARATOR}{digits}"


def format_date(value: Union[date, datetime]) -> str:
    """Format a date as day/month/year (``01/03/2024``)."""
    return value.strftime("%d/%m/%Y")


def get_month_name(month: int) -> str:
    """Portuguese name for a zero-based month index (0 = Janeiro)."""
    if not 0 <= month <= 11:
        raise ValueError(f"Month index must be between 0 and 11, got {month}")
    return MONTH_NAMES[month]


def get_label(labels: dict[str, str], value) -> str:
    """Look up a display label, falling back to the raw value."""
    key = getattr(value, "value", value)
    return labels.get(key, str(key))


def parse_amount(raw: Union[str, Number, None]) -> Decimal:
    """
    Parse user-typed amount input.

    Malformed input becomes Decimal NaN rather than raising; the ledger
    stores whatever it is given, so callers decide what to do with NaN.
    Accepts a comma as decimal separator (``"12,50"``).
    """
    if raw is None:
        return Decimal("NaN")
    if isinstance(raw, (Decimal, int, float)):
        return to_decimal(raw)

    text = raw.strip().replace(",", ".")
    if not text:
        return Decimal("NaN")
    try:
        return Decimal(text)
    except InvalidOperation:
        return Decimal("NaN")
