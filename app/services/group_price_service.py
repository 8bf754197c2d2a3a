"""Customer group (B2B contract) price overlay."""

import logging
from typing import Any, Optional, Sequence

from app.utils.number_format import parse_quantity, to_decimal

logger = logging.getLogger(__name__)


def _matches_group(row, group: Any) -> bool:
    """A row matches by group id or, when the group is loaded, by slug."""
    if row.group_id is not None and str(row.group_id) == str(group):
        return True
    customer_group = getattr(row, 'group', None)
    return customer_group is not None and customer_group.slug == group


def resolve_group_price(rows: Sequence, group: Any, quantity: int):
    """
    Best group price row for a customer group at ``quantity``.

    Among the rows of the group, the one with the largest ``min_quantity``
    not above ``quantity`` wins. Returns None for anonymous customers, for
    groups without rows, and when the quantity is below every breakpoint;
    pricing then falls through to tiers / sale / base price.
    """
    if group is None or group == '':
        return None

    best = None
    best_min = None
    for row in rows:
        if not _matches_group(row, group):
            continue

        price = to_decimal(row.price)
        if price is None or price < 0:
            logger.warning(f"[GROUP] Ignoring group price row with unusable price: {row!r}")
            continue

        min_quantity = parse_quantity(row.min_quantity)
        if min_quantity is None:
            min_quantity = 1

        if min_quantity <= quantity and (best_min is None or min_quantity > best_min):
            best = row
            best_min = min_quantity

    return best


def group_unit_price(rows: Sequence, group: Any, quantity: int):
    """Unit price from the matching group row, or None when no row applies."""
    row = resolve_group_price(rows, group, quantity)
    if row is None:
        return None
    return to_decimal(row.price)
