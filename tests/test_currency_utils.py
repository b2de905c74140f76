"""Tests for currency_utils - integer cents math, parsing and formatting.

Test Categories:
- Boundary conversions (dollars <-> cents)
- Display formatting
- Lenient parsing of typed amounts
- Amount validation
- Arithmetic and breakdown helpers
"""

from decimal import Decimal

import pytest

from custom_components.family_economy.utils.currency_utils import (
    add_cents,
    calculate_bill_count,
    calculate_coins,
    can_afford,
    cents_to_dollars,
    dollars_to_cents,
    format_cents,
    format_cents_short,
    is_valid_cents_amount,
    multiply_cents,
    parse_dollar_string,
    percentage_of,
    subtract_cents,
)

# =============================================================================
# CONVERSIONS
# =============================================================================


class TestConversions:
    """Dollars at the boundary, cents everywhere else."""

    @pytest.mark.parametrize(
        ("dollars", "cents"),
        [
            (12.34, 1234),
            (0.1, 10),
            (0.125, 13),
            (1.005, 101),
            ("7.5", 750),
            (Decimal("19.99"), 1999),
            (3, 300),
        ],
    )
    def test_dollars_to_cents(self, dollars, cents) -> None:
        """Rounding happens on the decimal representation, half up."""
        assert dollars_to_cents(dollars) == cents

    def test_float_sums_do_not_drift(self) -> None:
        """0.1 + 0.2 dollars is exactly 30 cents."""
        assert dollars_to_cents(0.1) + dollars_to_cents(0.2) == 30

    def test_cents_to_dollars(self) -> None:
        """Display conversion back to dollars."""
        assert cents_to_dollars(1234) == 12.34
        assert cents_to_dollars(0) == 0

    def test_round_trip_for_whole_cents(self) -> None:
        """Every cent value survives a trip through dollars."""
        for cents in (0, 1, 99, 100, 12345, 999_999):
            assert dollars_to_cents(cents_to_dollars(cents)) == cents


# =============================================================================
# FORMATTING
# =============================================================================


class TestFormatting:
    """Currency display strings."""

    def test_format_cents(self) -> None:
        assert format_cents(1234) == "$12.34"
        assert format_cents(5) == "$0.05"
        assert format_cents(150000) == "$1,500.00"

    def test_format_negative(self) -> None:
        assert format_cents(-75) == "-$0.75"

    def test_format_with_sign(self) -> None:
        assert format_cents(500, show_sign=True) == "+$5.00"
        assert format_cents(0, show_sign=True) == "$0.00"

    def test_format_short(self) -> None:
        """Whole dollars drop the decimals."""
        assert format_cents_short(500) == "$5"
        assert format_cents_short(550) == "$5.50"

    @pytest.mark.parametrize(
        ("cents", "expected"),
        [(-500, "-$5"), (-550, "-$5.50"), (150000, "$1,500"), (0, "$0")],
    )
    def test_format_short_sign_and_grouping(self, cents, expected) -> None:
        assert format_cents_short(cents) == expected


# =============================================================================
# PARSING AND VALIDATION
# =============================================================================


class TestParsing:
    """User-typed amounts."""

    @pytest.mark.parametrize(
        ("text", "cents"),
        [
            ("$12.50", 1250),
            ("3", 300),
            ("1,234.56", 123456),
            (" $0.99 ", 99),
            ("abc", 0),
            ("", 0),
            (None, 0),
        ],
    )
    def test_parse_dollar_string(self, text, cents) -> None:
        assert parse_dollar_string(text) == cents


class TestValidation:
    """is_valid_cents_amount bounds and types."""

    def test_valid_range(self) -> None:
        assert is_valid_cents_amount(1)
        assert is_valid_cents_amount(1_000_000)

    def test_out_of_range(self) -> None:
        assert not is_valid_cents_amount(0)
        assert not is_valid_cents_amount(-5)
        assert not is_valid_cents_amount(1_000_001)

    def test_non_integers_rejected(self) -> None:
        """Floats, strings and bools are never valid cent amounts."""
        assert not is_valid_cents_amount(1.5)
        assert not is_valid_cents_amount("100")
        assert not is_valid_cents_amount(True)

    def test_custom_bounds(self) -> None:
        assert is_valid_cents_amount(0, min_cents=0)
        assert not is_valid_cents_amount(50, max_cents=10)


# =============================================================================
# ARITHMETIC AND BREAKDOWN
# =============================================================================


class TestArithmetic:
    """None-safe arithmetic helpers."""

    def test_add_and_subtract(self) -> None:
        assert add_cents(100, None) == 100
        assert subtract_cents(None, 25) == -25

    def test_multiply(self) -> None:
        assert multiply_cents(250, 3) == 750
        assert multiply_cents(333, 0.5) == 167

    def test_can_afford(self) -> None:
        assert can_afford(500, 500)
        assert not can_afford(499, 500)

    def test_percentage_of(self) -> None:
        assert percentage_of(25, 100) == 25
        assert percentage_of(1, 3) == 33
        assert percentage_of(5, 0) == 0

    def test_bills_and_coins(self) -> None:
        assert calculate_bill_count(0) == 1
        assert calculate_bill_count(250) == 3
        assert calculate_coins(291) == {
            "quarters": 3,
            "dimes": 1,
            "nickels": 1,
            "pennies": 1,
        }
