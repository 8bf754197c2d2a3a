"""Tolerant number parsing for form input and catalog price fields."""
import math
import re
from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP
from typing import Any, Optional

# 1.234,56 (European) or 1234.56 / 1234,56
EU_NUMBER_PATTERN = re.compile(r"^-?(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")

CENT = Decimal('0.01')


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a catalog or form value to Decimal.

    Accepts Decimal, int, float and strings in either ``1234.56`` or the
    European ``1.234,56`` notation. Returns None for anything unusable
    (None, empty strings, booleans, NaN, infinities, garbage) so callers
    can fall through to the next price source instead of failing.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        result = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        if EU_NUMBER_PATTERN.match(cleaned) and ',' in cleaned:
            cleaned = cleaned.replace('.', '').replace(',', '.')
        try:
            result = Decimal(cleaned)
        except (InvalidOperation, ValueError):
            return None
    else:
        return None

    if not result.is_finite():
        return None
    return result


def to_percentage(value: Any) -> Optional[Decimal]:
    """Like ``to_decimal`` but only accepts values within 0-100."""
    result = to_decimal(value)
    if result is None or result < 0 or result > 100:
        return None
    return result


def parse_quantity(value: Any) -> Optional[int]:
    """
    Parse a requested quantity from form state.

    Fractions are truncated toward zero ("2.9" -> 2). Returns None when the
    value is not a number at all; negative numbers are returned as is so the
    normalizer can clamp them.
    """
    result = to_decimal(value)
    if result is None:
        return None
    return int(result.to_integral_value(rounding=ROUND_DOWN))


def quantize_money(value: Decimal) -> Decimal:
    """Round a money amount to cents (half-up)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
