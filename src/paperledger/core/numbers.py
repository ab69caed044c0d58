"""Decimal helpers shared by the ledger and its normalizers."""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP
from typing import Optional

SHARE_QUANTUM = Decimal("0.01")
CENTS = Decimal("0.01")

# Positions at or below this size are treated as closed
DUST_THRESHOLD = Decimal("0.005")

# Tolerance when comparing a cost against available cash
CASH_EPSILON = Decimal("0.000001")

# Largest magnitude accepted for any quantity, price or amount; keeps
# quantize and trade arithmetic inside the default 28-digit context
MAX_MAGNITUDE = Decimal("1000000000000")


def to_decimal(value: object) -> Optional[Decimal]:
    """
    Convert a raw value to a finite Decimal.

    Floats go through str() so 0.1 stays 0.1. Returns None for booleans,
    garbage strings, NaN, infinities and anything beyond MAX_MAGNITUDE.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not result.is_finite() or abs(result) > MAX_MAGNITUDE:
        return None
    return result


def normalize_shares(value: Optional[Decimal], rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round a share count to 2 places; dust rounds to zero."""
    if value is None or not value.is_finite():
        return Decimal("0")
    rounded = value.quantize(SHARE_QUANTUM, rounding=rounding)
    if abs(rounded) <= DUST_THRESHOLD:
        return Decimal("0")
    return rounded


def round_cents(value: Decimal) -> Decimal:
    """Round a monetary value to cents."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def shares_for_dollars(amount: Decimal, price: Decimal) -> Decimal:
    """Shares purchasable for a dollar amount, rounded down to 2 places."""
    return normalize_shares(amount / price, rounding=ROUND_DOWN)


def normalize_symbol(symbol: Optional[str]) -> str:
    """Strip whitespace and uppercase; None becomes an empty string."""
    if not isinstance(symbol, str):
        return ""
    return symbol.strip().upper()


def parse_whole_amount(value: object) -> Optional[Decimal]:
    """Return value as a positive whole Decimal, or None if it is not one."""
    amount = to_decimal(value)
    if amount is None or amount <= 0:
        return None
    if amount != amount.to_integral_value():
        return None
    return amount.quantize(Decimal("1"))
