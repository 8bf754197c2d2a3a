"""Quantity normalization: minimum order quantity, order multiple and max/stock bounds."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.exceptions import OutOfRangeError
from app.utils.number_format import parse_quantity

logger = logging.getLogger(__name__)


def _positive_int(value: Any, default: int) -> int:
    parsed = parse_quantity(value)
    if parsed is None or parsed < 1:
        return default
    return parsed


@dataclass(frozen=True)
class QuantityRules:
    """
    Ordering bounds of one product.

    ``max_quantity`` of None means unbounded.
    """
    min_quantity: int = 1
    multiple: int = 1
    max_quantity: Optional[int] = None
    label: str = 'This product'

    @property
    def orderable(self) -> bool:
        return self.max_quantity is None or self.min_quantity <= self.max_quantity

    def ensure_orderable(self) -> None:
        """Raise OutOfRangeError when no quantity satisfies both bounds."""
        if not self.orderable:
            logger.info(
                f"[QTY] {self.label} not orderable: MOQ {self.min_quantity} > max {self.max_quantity}"
            )
            raise OutOfRangeError(self.label, self.min_quantity, self.max_quantity)


def effective_max_quantity(product, stock: Optional[int] = None) -> Optional[int]:
    """
    Upper bound for a product: explicit ``max_order_quantity`` when set,
    else the stock level when stock is tracked, else unbounded (None).

    ``stock`` overrides ``product.stock`` (e.g. a variant value's stock level).
    """
    max_order = parse_quantity(product.max_order_quantity)
    if max_order is not None and max_order > 0:
        return max_order

    if product.track_stock is False:
        return None

    level = stock if stock is not None else product.stock
    level = parse_quantity(level)
    # Unknown stock on a tracked product counts as nothing on hand
    return max(level or 0, 0)


def rules_for(product, stock: Optional[int] = None) -> QuantityRules:
    """Build the quantity rules of a product."""
    return QuantityRules(
        min_quantity=_positive_int(product.min_order_quantity, 1),
        multiple=_positive_int(product.order_multiple, 1),
        max_quantity=effective_max_quantity(product, stock),
        label=product.title or 'This product',
    )


def clamp_quantity(quantity: int, rules: QuantityRules) -> int:
    rules.ensure_orderable()
    quantity = max(quantity, rules.min_quantity)
    if rules.max_quantity is not None:
        quantity = min(quantity, rules.max_quantity)
    return quantity


def normalize_quantity(requested: Any, rules: QuantityRules) -> int:
    """
    Turn a requested quantity (raw form input) into an orderable one.

    Non-numeric input becomes the MOQ; the result is clamped to
    [MOQ, max]. Intermediate values are not snapped to the order multiple.

    Raises:
        OutOfRangeError: if the MOQ exceeds the max (e.g. stock below MOQ).
    """
    quantity = parse_quantity(requested)
    if quantity is None:
        quantity = rules.min_quantity
    return clamp_quantity(quantity, rules)


def step_quantity(current: Any, direction: int, rules: QuantityRules) -> int:
    """Increment (direction > 0) or decrement the quantity by one order multiple."""
    quantity = normalize_quantity(current, rules)
    if direction > 0:
        quantity += rules.multiple
    elif direction < 0:
        quantity -= rules.multiple
    return clamp_quantity(quantity, rules)
