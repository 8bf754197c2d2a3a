"""Session cart operations (the cart lives in the Flask session)."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, MutableMapping, Optional

from app.exceptions import NotFoundError
from app.services.cart_service import CartLineItem
from app.utils.number_format import parse_quantity, quantize_money

logger = logging.getLogger(__name__)


def empty_cart() -> Dict[str, Any]:
    return {'items': {}}


def _cap(quantity: int, line: Dict[str, Any]) -> int:
    """
    Apply the line's max order quantity. The composer already resolved it
    (explicit max, else tracked stock), so the stock snapshot is not a cap.
    """
    max_quantity = line.get('max_order_quantity')
    if max_quantity is not None:
        quantity = min(quantity, max_quantity)
    return quantity


def _round_up(quantity: int, multiple: int) -> int:
    if multiple > 1:
        return -(-quantity // multiple) * multiple
    return quantity


def merged_quantity(existing: int, added: int, line: Dict[str, Any]) -> int:
    """
    Quantity after adding ``added`` units to a line holding ``existing``:
    at least the MOQ, rounded up to the order multiple, capped by the max order quantity.
    """
    quantity = max(existing + added, line.get('min_order_quantity') or 1)
    quantity = _round_up(quantity, line.get('order_multiple') or 1)
    return _cap(quantity, line)


def updated_quantity(requested: int, line: Dict[str, Any]) -> int:
    """
    Quantity after the shopper edits a line: at least the MOQ, rounded to
    the nearest order multiple (never below the MOQ), capped by the max order quantity.
    """
    min_quantity = line.get('min_order_quantity') or 1
    multiple = line.get('order_multiple') or 1

    quantity = max(requested, min_quantity)
    if multiple > 1:
        quantity = int((Decimal(quantity) / multiple).to_integral_value(rounding=ROUND_HALF_UP)) * multiple
        if quantity < min_quantity:
            quantity = _round_up(min_quantity, multiple)
    return _cap(quantity, line)


def add_lines(cart: MutableMapping[str, Any], lines: Iterable[CartLineItem]) -> List[str]:
    """
    Merge composed line items into the cart.

    Lines with the same key (product + selection) are merged by quantity;
    new lines are appended as composed. Returns the keys touched.
    """
    items = cart.setdefault('items', {})
    keys = []
    for line in lines:
        data = line.to_dict()
        existing = items.get(line.key)
        if existing:
            quantity = merged_quantity(existing['quantity'], line.quantity, data)
            logger.info(f"[SESSION_CART] Merging {line.key}: {existing['quantity']} + {line.quantity} -> {quantity}")
            if quantity <= 0:
                remove_line(cart, line.key)
                continue
            data['quantity'] = quantity
        data['line_total'] = str(quantize_money(Decimal(data['unit_price']) * data['quantity']))
        items[line.key] = data
        keys.append(line.key)
    return keys


def update_quantity(cart: MutableMapping[str, Any], key: str, requested: Any) -> Optional[Dict[str, Any]]:
    """
    Set the quantity of a cart line. A quantity of zero or less removes it.

    Returns the updated line, or None when it was removed.

    Raises:
        NotFoundError: if the line is not in the cart.
    """
    items = cart.setdefault('items', {})
    line = items.get(key)
    if line is None:
        raise NotFoundError('This product is not in the cart.', {'key': key})

    quantity = parse_quantity(requested)
    if quantity is None:
        quantity = line['quantity']
    if quantity <= 0:
        remove_line(cart, key)
        return None

    quantity = updated_quantity(quantity, line)
    if quantity <= 0:
        remove_line(cart, key)
        return None

    line['quantity'] = quantity
    line['line_total'] = str(quantize_money(Decimal(line['unit_price']) * quantity))
    return line


def remove_line(cart: MutableMapping[str, Any], key: str) -> None:
    items = cart.setdefault('items', {})
    if items.pop(key, None) is not None:
        logger.info(f"[SESSION_CART] Removed {key}")


def clear_cart(cart: MutableMapping[str, Any]) -> None:
    cart['items'] = {}


def cart_totals(cart: MutableMapping[str, Any]) -> Dict[str, Any]:
    """Lines, item count and total of the cart."""
    lines = list(cart.get('items', {}).values())
    total = sum((CartLineItem.from_dict(line).line_total for line in lines), Decimal('0'))
    return {
        'lines': lines,
        'item_count': sum(line['quantity'] for line in lines),
        'total': str(quantize_money(total)),
    }
