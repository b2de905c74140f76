# File: utils/currency_utils.py
"""Currency utilities for Family Economy.

Pure Python money helpers with ZERO Home Assistant dependencies.
All amounts are integer cents; floats only appear at the dollar boundary
(user input and display).

Functions:
    - dollars_to_cents / cents_to_dollars: Boundary conversions
    - format_cents / format_cents_short: Display strings ("$12.34", "$5")
    - parse_dollar_string: Lenient parsing of user-typed amounts
    - is_valid_cents_amount: Range and type check for amounts
    - add_cents / subtract_cents / multiply_cents: None-safe arithmetic
    - can_afford / percentage_of: Balance helpers
    - calculate_bill_count / calculate_coins: Breakdown for display
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import logging
import math
import re

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

CENTS_PER_DOLLAR = 100
CURRENCY_SYMBOL = "$"
MIN_CENTS_AMOUNT = 1
MAX_CENTS_AMOUNT = 1_000_000

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"^-?(\d+\.?\d*|\.\d+)")


# ==============================================================================
# Conversions
# ==============================================================================


def dollars_to_cents(dollars: float | int | str | Decimal) -> int:
    """Convert a dollar amount to integer cents, rounding half away from zero.

    The value is rounded on its decimal representation, so 1.005 becomes 101
    rather than the 100 that binary float arithmetic would give.

    Examples:
        dollars_to_cents(12.34) → 1234
        dollars_to_cents(0.125) → 13
    """
    amount = Decimal(str(dollars)) * CENTS_PER_DOLLAR
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def cents_to_dollars(cents: int) -> float:
    """Convert integer cents to a float dollar amount (display only)."""
    return cents / CENTS_PER_DOLLAR


# ==============================================================================
# Formatting
# ==============================================================================


def format_cents(cents: int, show_sign: bool = False) -> str:
    """Format cents as a US dollar string.

    Args:
        cents: Signed amount in cents
        show_sign: Prefix positive amounts with "+"

    Examples:
        format_cents(1234) → "$12.34"
        format_cents(150000) → "$1,500.00"
        format_cents(500, show_sign=True) → "+$5.00"
        format_cents(-75) → "-$0.75"
    """
    dollars, remainder = divmod(abs(int(cents)), CENTS_PER_DOLLAR)
    formatted = f"{CURRENCY_SYMBOL}{dollars:,}.{remainder:02d}"

    if show_sign and cents > 0:
        return f"+{formatted}"
    if cents < 0:
        return f"-{formatted}"
    return formatted


def format_cents_short(cents: int) -> str:
    """Format cents without decimals when the amount is whole dollars."""
    if cents % CENTS_PER_DOLLAR == 0:
        formatted = f"{CURRENCY_SYMBOL}{abs(int(cents)) // CENTS_PER_DOLLAR:,}"
        return f"-{formatted}" if cents < 0 else formatted
    return format_cents(cents)


# ==============================================================================
# Parsing and Validation
# ==============================================================================


def parse_dollar_string(dollar_string: str | None) -> int:
    """Parse a user-typed dollar string ("$12.50", "3") into cents.

    Anything that is not a digit, dot or minus sign is dropped. Unparsable
    input yields 0.
    """
    if not dollar_string:
        return 0

    cleaned = _NON_NUMERIC.sub("", str(dollar_string))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        _LOGGER.debug("Unparsable dollar string '%s', using 0", dollar_string)
        return 0

    try:
        return dollars_to_cents(Decimal(match.group(0)))
    except InvalidOperation:
        return 0


def is_valid_cents_amount(
    cents: object,
    min_cents: int = MIN_CENTS_AMOUNT,
    max_cents: int = MAX_CENTS_AMOUNT,
) -> bool:
    """Return True when cents is an integer inside [min_cents, max_cents]."""
    if isinstance(cents, bool) or not isinstance(cents, int):
        return False
    return min_cents <= cents <= max_cents


# ==============================================================================
# Arithmetic
# ==============================================================================


def add_cents(a: int | None, b: int | None) -> int:
    """Add two amounts, treating a missing operand as 0."""
    return (a or 0) + (b or 0)


def subtract_cents(a: int | None, b: int | None) -> int:
    """Subtract b from a, treating a missing operand as 0. May go negative."""
    return (a or 0) - (b or 0)


def multiply_cents(cents: int, count: int | float) -> int:
    """Multiply an amount by a count, rounding back to whole cents."""
    return dollars_to_cents(Decimal(str(cents)) * Decimal(str(count)) / 100)


def can_afford(balance: int, cost: int) -> bool:
    """Return True when the balance covers the cost."""
    return balance >= cost


def percentage_of(amount: int, total: int) -> int:
    """Return amount as a whole-number percentage of total (0 when total is 0)."""
    if total == 0:
        return 0
    return int(
        (Decimal(amount) * 100 / Decimal(total)).quantize(
            Decimal(1), rounding=ROUND_HALF_UP
        )
    )


# ==============================================================================
# Breakdown helpers
# ==============================================================================


def calculate_bill_count(cents: int) -> int:
    """Number of dollar bills to show for an amount (at least one)."""
    return max(1, math.ceil(cents / CENTS_PER_DOLLAR))


def calculate_coins(cents: int) -> dict[str, int]:
    """Break the sub-dollar part of an amount into US coins."""
    remaining = cents % CENTS_PER_DOLLAR
    coins: dict[str, int] = {}
    for name, size in (("quarters", 25), ("dimes", 10), ("nickels", 5)):
        coins[name], remaining = divmod(remaining, size)
    coins["pennies"] = remaining
    return coins
