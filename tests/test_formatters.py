"""
Tests for display formatting and amount parsing.
"""

import math
from datetime import date
from decimal import Decimal

import pytest

from family_budget.models.finance import ExpenseCategory, IncomeType
from family_budget.utils.formatters import (
    EXPENSE_CATEGORY_LABELS,
    INCOME_TYPE_LABELS,
    format_currency,
    format_date,
    get_label,
    get_month_name,
    parse_amount,
)

NBSP = "\N{NO-BREAK SPACE}"


class TestFormatCurrency:
    """Tests for Brazilian Real formatting."""

    @pytest.mark.parametrize("value,expected", [
        (0, f"R${NBSP}0,00"),
        (1234.56, f"R${NBSP}1.234,56"),
        (1000000, f"R${NBSP}1.000.000,00"),
        (-1234.5, f"-R${NBSP}1.234,50"),
    ])
    def test_values(self, value, expected):
        assert format_currency(value) == expected

    def test_nan(self):
        assert format_currency(math.nan) == f"R${NBSP}NaN"
        assert format_currency(Decimal("NaN")) == f"R${NBSP}NaN"

    def test_decimal_rounds_half_up(self):
        assert format_currency(Decimal("2.345")) == f"R${NBSP}2,35"

    def test_rounded_zero_has_no_sign(self):
        """A tiny negative balance prints as zero, not minus zero."""
        assert format_currency(Decimal("-0.001")) == f"R${NBSP}0,00"
        assert format_currency(Decimal("-0.00")) == f"R${NBSP}0,00"


class TestDatesAndMonths:
    def test_format_date(self):
        assert format_date(date(2024, 3, 1)) == "01/03/2024"

    def test_month_names_are_zero_based(self):
        assert get_month_name(0) == "Janeiro"
        assert get_month_name(2) == "Março"
        assert get_month_name(11) == "Dezembro"

    @pytest.mark.parametrize("month", [-1, 12])
    def test_month_out_of_range(self, month):
        with pytest.raises(ValueError):
            get_month_name(month)


class TestLabels:
    def test_enum_and_plain_values(self):
        assert get_label(INCOME_TYPE_LABELS, IncomeType.PAYMENT) == "Pagamento"
        assert get_label(EXPENSE_CATEGORY_LABELS, "health") == "Saúde"
        assert get_label(EXPENSE_CATEGORY_LABELS, ExpenseCategory.OTHER) == "Outros"

    def test_unknown_value_falls_back(self):
        assert get_label(EXPENSE_CATEGORY_LABELS, "pets") == "pets"


class TestParseAmount:
    """Tests for lenient amount parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("1000", Decimal("1000")),
        (" 12,50 ", Decimal("12.50")),
        ("3.75", Decimal("3.75")),
        (42, Decimal(42)),
        (0.1, Decimal("0.1")),
    ])
    def test_valid(self, raw, expected):
        assert parse_amount(raw) == expected
        assert isinstance(parse_amount(raw), Decimal)

    @pytest.mark.parametrize("raw", [None, "", "   ", "mil", "1.000,50"])
    def test_malformed_becomes_nan(self, raw):
        assert math.isnan(parse_amount(raw))
