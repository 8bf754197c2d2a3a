"""
Price chain for a single product (group -> tier -> sale -> base) and the
display breakdown handed to the storefront ("you save X%").
"""

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional, Tuple

from app.exceptions import InvalidProductError
from app.services.group_price_service import group_unit_price
from app.services.tier_service import resolve_tier_index, tier_unit_price
from app.utils.number_format import to_decimal, quantize_money

logger = logging.getLogger(__name__)

HUNDRED = Decimal('100')

DEFAULT_TAX_RATES = {
    'standard': Decimal('21'),
    'reduced': Decimal('9'),
    'zero': Decimal('0'),
}


class PriceSource(str, enum.Enum):
    """Which rule produced a unit price."""
    GROUP = 'group'
    TIER = 'tier'
    SALE = 'sale'
    BASE = 'base'
    VARIANT = 'variant'
    BOX = 'box'


@dataclass(frozen=True)
class PriceBreakdown:
    """Display-ready price facts for one product at one quantity."""
    unit_price: Decimal
    source: PriceSource
    quantity: int
    old_price: Optional[Decimal] = None
    savings_percent: int = 0
    active_tier_index: Optional[int] = None
    tax_class: str = 'standard'
    tax_rate: Decimal = DEFAULT_TAX_RATES['standard']

    @property
    def total(self) -> Decimal:
        return quantize_money(self.unit_price * self.quantity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'unit_price': str(self.unit_price),
            'source': self.source.value,
            'quantity': self.quantity,
            'total': str(self.total),
            'old_price': str(self.old_price) if self.old_price is not None else None,
            'savings_percent': self.savings_percent,
            'active_tier_index': self.active_tier_index,
            'tax_class': self.tax_class,
            'tax_rate': str(self.tax_rate),
        }


def require_base_price(product) -> Decimal:
    """
    Base price of a product.

    Raises:
        InvalidProductError: if the base price is missing or unusable.
    """
    base_price = to_decimal(product.base_price)
    if base_price is None or base_price < 0:
        logger.error(f"[PRICE] Product {product.id} ({product.title}) has no usable base price")
        raise InvalidProductError(
            f'"{product.title}" cannot be sold: it has no price.',
            product_id=product.id
        )
    return base_price


def effective_sale_price(product, base_price: Decimal) -> Optional[Decimal]:
    """Sale price when it is set and not above the base price."""
    sale_price = to_decimal(product.sale_price)
    if sale_price is None:
        return None
    if sale_price < 0 or sale_price > base_price:
        logger.warning(
            f"[PRICE] Ignoring sale price {product.sale_price} on product {product.id} "
            f"(base price {base_price})"
        )
        return None
    return sale_price


def tax_class_of(product) -> str:
    tax_class = product.tax_class
    if tax_class is None:
        return 'standard'
    return getattr(tax_class, 'value', tax_class)


def tax_rate_for(tax_class: str, rates: Optional[Mapping[str, Decimal]] = None) -> Decimal:
    """Configured rate for a tax class; unknown classes use the standard rate."""
    rates = rates or DEFAULT_TAX_RATES
    if tax_class in rates:
        return rates[tax_class]
    logger.warning(f"[PRICE] Unknown tax class '{tax_class}', using standard rate")
    return rates.get('standard', DEFAULT_TAX_RATES['standard'])


def resolve_unit_price(
    product,
    quantity: int,
    customer_group: Any = None,
    group_prices_enabled: bool = True
) -> Tuple[Decimal, PriceSource, Optional[int]]:
    """
    Walk the price chain: group price, else volume tier, else sale price,
    else base price.

    Returns (unit_price, source, active_tier_index). The tier index is
    reported even when a group price wins so the tier table can still
    highlight the quantity's tier.
    """
    base_price = require_base_price(product)
    tiers = list(product.volume_tiers or [])
    tier_index = resolve_tier_index(tiers, quantity)

    if group_prices_enabled:
        price = group_unit_price(product.group_prices or [], customer_group, quantity)
        if price is not None:
            return quantize_money(price), PriceSource.GROUP, tier_index

    if tier_index is not None:
        price = tier_unit_price(tiers[tier_index], base_price)
        return quantize_money(price), PriceSource.TIER, tier_index

    sale_price = effective_sale_price(product, base_price)
    if sale_price is not None:
        return quantize_money(sale_price), PriceSource.SALE, None

    return quantize_money(base_price), PriceSource.BASE, None


def display_prices(product, unit_price: Decimal) -> Tuple[Optional[Decimal], int]:
    """
    "Was" price and savings percentage for a unit price.

    The compare-at price is used when it is above the unit price;
    otherwise the base price, if the unit price undercuts it.
    """
    base_price = to_decimal(product.base_price)
    old_price = None

    compare_at = to_decimal(product.compare_at_price)
    if compare_at is not None and compare_at > unit_price:
        old_price = compare_at
    elif compare_at is not None and compare_at < unit_price:
        logger.warning(
            f"[PRICE] Ignoring compare-at price {compare_at} below unit price {unit_price} "
            f"on product {product.id}"
        )

    if old_price is None and base_price is not None and unit_price < base_price:
        old_price = base_price

    if old_price is None or old_price <= 0:
        return None, 0

    savings = (old_price - unit_price) / old_price * HUNDRED
    return quantize_money(old_price), int(savings.to_integral_value(rounding=ROUND_HALF_UP))


def price_breakdown(
    product,
    quantity: int,
    customer_group: Any = None,
    tax_rates: Optional[Mapping[str, Decimal]] = None,
    group_prices_enabled: bool = True
) -> PriceBreakdown:
    """Unit price plus display facts for ``quantity`` units of ``product``."""
    unit_price, source, tier_index = resolve_unit_price(
        product, quantity, customer_group, group_prices_enabled
    )
    old_price, savings_percent = display_prices(product, unit_price)
    tax_class = tax_class_of(product)
    return PriceBreakdown(
        unit_price=unit_price,
        source=source,
        quantity=quantity,
        old_price=old_price,
        savings_percent=savings_percent,
        active_tier_index=tier_index,
        tax_class=tax_class,
        tax_rate=tax_rate_for(tax_class, tax_rates),
    )
