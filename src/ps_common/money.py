"""Decimal amount utilities.

All amounts are decimal.Decimal end to end (no float). Amounts are serialized as
JSON strings so the digits a caller supplied survive a round trip.
"""

from decimal import Decimal, InvalidOperation

from src.ps_common.errors import ValidationError

_BPS_DENOMINATOR = Decimal(10000)


def parse_amount(value: object, field: str = "amount") -> Decimal:
    """Parse a non-negative finite decimal from str/int/float/Decimal."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a decimal number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a decimal number, got {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0, got {amount}")
    return amount


def normalize_currency(symbol: str) -> str:
    """Currency symbols are compared upper-cased and stripped."""
    cleaned = (symbol or "").strip().upper()
    if not cleaned or not cleaned.isalnum() or len(cleaned) > 10:
        raise ValidationError(f"invalid currency symbol {symbol!r}")
    return cleaned


def meets_amount(received: Decimal, expected: Decimal, tolerance_bps: int) -> bool:
    """True when received >= expected * (1 - tolerance).

    The tolerance absorbs conversion rounding; overpayment is always accepted.
    """
    floor = expected * (1 - Decimal(tolerance_bps) / _BPS_DENOMINATOR)
    return received >= floor
