"""Volume tier resolution (staffelprijzen)."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence

from app.utils.number_format import parse_quantity, to_decimal, to_percentage, quantize_money

logger = logging.getLogger(__name__)

HUNDRED = Decimal('100')


def resolve_tier_index(tiers: Sequence, quantity: int) -> Optional[int]:
    """
    Index (in declared order) of the tier that applies to ``quantity``.

    Tiers are scanned from the last declared one backwards and the first
    tier whose ``min_quantity`` is satisfied wins. ``max_quantity`` is not
    consulted. Returns None when the quantity is below every threshold.
    """
    for index in range(len(tiers) - 1, -1, -1):
        min_quantity = parse_quantity(tiers[index].min_quantity)
        if min_quantity is None:
            logger.warning(f"[TIER] Skipping tier without min_quantity: {tiers[index]!r}")
            continue
        if min_quantity <= quantity:
            return index
    return None


def resolve_tier(tiers: Sequence, quantity: int):
    """Tier that applies to ``quantity`` or None (see ``resolve_tier_index``)."""
    index = resolve_tier_index(tiers, quantity)
    return tiers[index] if index is not None else None


def tier_unit_price(tier, base_price: Decimal) -> Decimal:
    """
    Unit price granted by a tier.

    A fixed ``discount_price`` wins over ``discount_percentage``; a tier
    with neither (or only malformed values) prices at ``base_price``.
    """
    discount_price = to_decimal(tier.discount_price)
    if discount_price is not None:
        if discount_price >= 0:
            return discount_price
        logger.warning(f"[TIER] Ignoring negative discount_price on {tier!r}")

    percentage = to_percentage(tier.discount_percentage)
    if percentage is not None:
        return base_price * (1 - percentage / HUNDRED)
    if tier.discount_percentage is not None:
        logger.warning(f"[TIER] Ignoring discount_percentage outside 0-100 on {tier!r}")

    return base_price


def tier_discount_percent(tier, base_price: Decimal) -> Optional[int]:
    """Whole-number discount a tier shows next to its price ("-10%")."""
    percentage = to_percentage(tier.discount_percentage)
    if percentage is not None and to_decimal(tier.discount_price) is None:
        return int(percentage.to_integral_value(rounding=ROUND_HALF_UP))

    if base_price <= 0:
        return None
    price = tier_unit_price(tier, base_price)
    if price >= base_price:
        return None
    return int(((base_price - price) / base_price * HUNDRED).to_integral_value(rounding=ROUND_HALF_UP))


def tier_table(tiers: Sequence, base_price: Decimal, quantity: Optional[int] = None) -> List[Dict[str, Any]]:
    """Display rows for every tier, flagging the one active at ``quantity``."""
    active = resolve_tier_index(tiers, quantity) if quantity is not None else None
    rows = []
    for index, tier in enumerate(tiers):
        rows.append({
            'index': index,
            'min_quantity': tier.min_quantity,
            'max_quantity': tier.max_quantity,
            'unit_price': quantize_money(tier_unit_price(tier, base_price)),
            'discount_percent': tier_discount_percent(tier, base_price),
            'active': index == active,
            'is_last': index == len(tiers) - 1,
        })
    return rows
