"""Variant price composition for configurable and subscription products."""

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from app.exceptions import IncompleteSelectionError
from app.utils.number_format import to_decimal, to_percentage

logger = logging.getLogger(__name__)

HUNDRED = Decimal('100')


def selected_values(options: Sequence, selection: Optional[Mapping[str, str]]) -> List[Tuple]:
    """(option, value) pairs of a selection, in option order. Unknown keys are skipped."""
    selection = selection or {}
    pairs = []
    for option in options:
        key = selection.get(option.option_name)
        if key is None:
            continue
        value = option.find_value(str(key))
        if value is not None:
            pairs.append((option, value))
    return pairs


def missing_options(options: Sequence, selection: Optional[Mapping[str, str]]) -> List[str]:
    """Names of options without a valid chosen value."""
    chosen = {option.option_name for option, _ in selected_values(options, selection)}
    return [option.option_name for option in options if option.option_name not in chosen]


def find_plan_value(options: Sequence, selection: Optional[Mapping[str, str]]):
    """
    Subscription plan among the selected values: the first one that is
    marked with a subscription type, else the first one carrying a discount.
    """
    pairs = selected_values(options, selection)
    for _, value in pairs:
        if value.subscription_type is not None:
            return value
    for _, value in pairs:
        if value.discount_percentage is not None:
            return value
    return None


def compose_variant_price(
    base_price: Decimal,
    selection: Optional[Mapping[str, str]],
    options: Sequence,
    subscription: bool = False
) -> Decimal:
    """
    Configured unit price: base price plus the modifiers of the selected values.

    Partial selections yield the partial sum; callers must check
    ``missing_options`` before adding to the cart. For subscriptions the
    chosen plan's discount percentage is applied on top of the sum.
    """
    price = base_price
    for option, value in selected_values(options, selection):
        modifier = to_decimal(value.price_modifier)
        if modifier is None:
            if value.price_modifier is not None:
                logger.warning(f"[VARIANT] Ignoring malformed price modifier on {value!r}")
            continue
        price += modifier

    if subscription:
        plan = find_plan_value(options, selection)
        if plan is not None:
            percentage = to_percentage(plan.discount_percentage)
            if percentage is not None:
                price = price * (1 - percentage / HUNDRED)

    return price


def selection_labels(options: Sequence, selection: Optional[Mapping[str, str]]) -> List[str]:
    """Human-readable labels of the selected values, e.g. ['Red', 'L']."""
    return [value.label for _, value in selected_values(options, selection)]


def selection_key(options: Sequence, selection: Optional[Mapping[str, str]]) -> Tuple[Tuple[str, str], ...]:
    """Canonical (option_name, value) pairs used to tell cart lines apart."""
    return tuple((option.option_name, value.value) for option, value in selected_values(options, selection))


def selection_stock(options: Sequence, selection: Optional[Mapping[str, str]]) -> Optional[int]:
    """Lowest stock level among the selected values (None when none is set)."""
    levels = [value.stock_level for _, value in selected_values(options, selection) if value.stock_level is not None]
    return min(levels) if levels else None


def annotate_title(title: str, labels: Sequence[str]) -> str:
    """"Product" + ['Red', 'L'] -> "Product (Red, L)"."""
    if not labels:
        return title
    return f"{title} ({', '.join(labels)})"


def as_selection(raw, product_name: str = 'This product') -> Dict[str, str]:
    """Coerce request data into an option_name -> value mapping."""
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise IncompleteSelectionError(
            product_name, ['selection'],
            message=f'The selection for {product_name} must map option names to values.'
        )
    return {str(name): str(value) for name, value in raw.items() if value not in (None, '')}
