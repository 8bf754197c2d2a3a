"""
Formatting helpers for prices shown to shoppers and in CLI output.
European notation: thousands separator "." and decimal separator ",".
"""
from decimal import Decimal, InvalidOperation
from typing import Union, Optional

CURRENCY_SYMBOLS = {'EUR': '€', 'USD': '$', 'GBP': '£'}


def num_eu(value: Union[int, float, Decimal, str, None], decimals: Optional[int] = None) -> str:
    """
    Format a number European style.

    Examples:
        num_eu(1500) -> "1.500"
        num_eu(1500.5, 2) -> "1.500,50"
        num_eu(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals)

    negative = num < 0
    num_str = f"{abs(num):f}"
    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
    else:
        integer_part, decimal_part = num_str, ''

    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)

    result = '.'.join(groups)
    if decimal_part:
        result = f"{result},{decimal_part}"
    return f"-{result}" if negative else result


def money_eu(value: Union[int, float, Decimal, str, None], currency: str = 'EUR') -> str:
    """
    Format a money amount with two decimals and a currency symbol.

    Examples:
        money_eu(Decimal('1234.5')) -> "€1.234,50"
        money_eu(9) -> "€9,00"
    """
    formatted = num_eu(value, 2)
    if formatted == "-":
        return formatted
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    return f"{symbol}{formatted}"


def percent(value: Union[int, Decimal, None]) -> str:
    """Format a savings percentage, e.g. "-20%"."""
    if not value:
        return ""
    return f"-{value}%"
