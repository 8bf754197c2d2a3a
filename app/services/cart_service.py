"""
Cart composition service.

Turns a product, the shopper's selection and a requested quantity into cart
line items for each product mode:

- simple: one line priced by the group -> tier -> sale -> base chain
- grouped: one line per child, all priced once from the parent's tiers at
  the aggregate quantity
- variable: one line for the configured variant (base + modifiers)
- subscription: one line, quantity 1, plan discount applied
- mix & match: one line for the box at its flat price

The composer never touches storage; the session cart merges its output.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from app.exceptions import InvalidProductError, IncompleteSelectionError, OutOfRangeError
from app.models.product import ProductMode
from app.services import quantity_service
from app.services.price_service import (
    DEFAULT_TAX_RATES, PriceSource, require_base_price, resolve_unit_price,
    tax_class_of, tax_rate_for
)
from app.services.variant_price_service import (
    annotate_title, as_selection, compose_variant_price, find_plan_value,
    missing_options, selection_key, selection_labels, selection_stock
)
from app.utils.number_format import parse_quantity, quantize_money, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_UNLIMITED_STOCK = 999999
SUBSCRIPTION_MODE = 'subscription'
DEFAULT_MODES = frozenset({
    ProductMode.SIMPLE.value, ProductMode.GROUPED.value, ProductMode.VARIABLE.value
})


@dataclass(frozen=True)
class PricingConfig:
    """Feature flags of the pricing engine (built from app config)."""
    enabled_modes: frozenset = DEFAULT_MODES
    group_prices_enabled: bool = True
    mix_and_match_enabled: bool = False
    unlimited_stock: int = DEFAULT_UNLIMITED_STOCK
    currency: str = 'EUR'
    tax_rates: Mapping[str, Decimal] = field(default_factory=lambda: dict(DEFAULT_TAX_RATES))

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'PricingConfig':
        """Build from a Flask config (or any mapping of PRICING_* / TAX_RATE_* keys)."""
        modes = config.get('PRICING_ENABLED_MODES', ','.join(sorted(DEFAULT_MODES)))
        if isinstance(modes, str):
            modes = [mode.strip() for mode in modes.split(',') if mode.strip()]

        tax_rates = dict(DEFAULT_TAX_RATES)
        for tax_class in DEFAULT_TAX_RATES:
            rate = to_decimal(config.get(f'TAX_RATE_{tax_class.upper()}'))
            if rate is not None:
                tax_rates[tax_class] = rate

        unlimited = parse_quantity(config.get('PRICING_UNLIMITED_STOCK'))
        return cls(
            enabled_modes=frozenset(modes),
            group_prices_enabled=bool(config.get('PRICING_GROUP_PRICES_ENABLED', True)),
            mix_and_match_enabled=bool(config.get('PRICING_MIX_AND_MATCH_ENABLED', False)),
            unlimited_stock=unlimited if unlimited and unlimited > 0 else DEFAULT_UNLIMITED_STOCK,
            currency=config.get('PRICING_CURRENCY', 'EUR'),
            tax_rates=tax_rates,
        )

    def is_enabled(self, mode: ProductMode) -> bool:
        if mode == ProductMode.MIX_AND_MATCH:
            return self.mix_and_match_enabled
        return mode.value in self.enabled_modes


def build_line_key(product_id: Any, selection: Sequence = (), components: Sequence = ()) -> str:
    """Identity of a cart line: product plus variant choices plus box contents."""
    parts = [str(product_id)]
    if selection:
        parts.append(';'.join(f"{name}={value}" for name, value in selection))
    if components:
        parts.append('+'.join(f"{item_id}x{quantity}" for item_id, quantity in components))
    return '|'.join(parts)


@dataclass(frozen=True)
class CartLineItem:
    """One cart line. Created fresh per add-to-cart call, never mutated."""
    product_id: Any
    title: str
    quantity: int
    unit_price: Decimal
    stock_snapshot: int
    parent_product_id: Any = None
    parent_product_title: Optional[str] = None
    sku: Optional[str] = None
    ean: Optional[str] = None
    selection: Tuple[Tuple[str, str], ...] = ()
    components: Tuple[Tuple[Any, int], ...] = ()
    tax_class: str = 'standard'
    tax_rate: Decimal = DEFAULT_TAX_RATES['standard']
    min_order_quantity: int = 1
    order_multiple: int = 1
    max_order_quantity: Optional[int] = None
    price_source: str = PriceSource.BASE.value

    @property
    def line_total(self) -> Decimal:
        return quantize_money(self.unit_price * self.quantity)

    @property
    def key(self) -> str:
        return build_line_key(self.product_id, self.selection, self.components)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe representation (money as strings)."""
        return {
            'key': self.key,
            'product_id': self.product_id,
            'title': self.title,
            'quantity': self.quantity,
            'unit_price': str(self.unit_price),
            'line_total': str(self.line_total),
            'stock': self.stock_snapshot,
            'parent_product_id': self.parent_product_id,
            'parent_product_title': self.parent_product_title,
            'sku': self.sku,
            'ean': self.ean,
            'selection': [list(pair) for pair in self.selection],
            'components': [list(pair) for pair in self.components],
            'tax_class': self.tax_class,
            'tax_rate': str(self.tax_rate),
            'min_order_quantity': self.min_order_quantity,
            'order_multiple': self.order_multiple,
            'max_order_quantity': self.max_order_quantity,
            'price_source': self.price_source,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CartLineItem':
        return cls(
            product_id=data['product_id'],
            title=data['title'],
            quantity=int(data['quantity']),
            unit_price=Decimal(str(data['unit_price'])),
            stock_snapshot=int(data['stock']),
            parent_product_id=data.get('parent_product_id'),
            parent_product_title=data.get('parent_product_title'),
            sku=data.get('sku'),
            ean=data.get('ean'),
            selection=tuple(tuple(pair) for pair in data.get('selection') or ()),
            components=tuple(tuple(pair) for pair in data.get('components') or ()),
            tax_class=data.get('tax_class', 'standard'),
            tax_rate=Decimal(str(data.get('tax_rate', DEFAULT_TAX_RATES['standard']))),
            min_order_quantity=int(data.get('min_order_quantity') or 1),
            order_multiple=int(data.get('order_multiple') or 1),
            max_order_quantity=data.get('max_order_quantity'),
            price_source=data.get('price_source', PriceSource.BASE.value),
        )


@dataclass(frozen=True)
class CartResult:
    """Output of one add-to-cart composition."""
    mode: str
    lines: Tuple[CartLineItem, ...] = ()
    unit_price: Optional[Decimal] = None
    aggregate_quantity: int = 0
    currency: str = 'EUR'

    @property
    def total(self) -> Decimal:
        return quantize_money(sum((line.line_total for line in self.lines), Decimal('0')))

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode,
            'lines': [line.to_dict() for line in self.lines],
            'unit_price': str(self.unit_price) if self.unit_price is not None else None,
            'aggregate_quantity': self.aggregate_quantity,
            'total': str(self.total),
            'currency': self.currency,
        }


def product_mode(product) -> ProductMode:
    """Mode of a product; rows without a mode are simple products."""
    raw = getattr(product.mode, 'value', product.mode) or ProductMode.SIMPLE.value
    try:
        return ProductMode(raw)
    except ValueError:
        raise InvalidProductError(f'"{product.title}" has an unknown product type.', product_id=product.id)


def _require_mapping(product, raw, field_name: str) -> Mapping[Any, Any]:
    """Request values keyed by product id must arrive as a mapping."""
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise IncompleteSelectionError(
            product.title, [field_name],
            message=f'"{field_name}" for {product.title} must map product ids to quantities.'
        )
    return raw


class CartComposer:
    """Composes cart line items for any product mode."""

    def __init__(self, config: Optional[PricingConfig] = None):
        self.config = config or PricingConfig()

    def ensure_sellable(self, product) -> ProductMode:
        """
        Mode of a product that can be sold online.

        Raises:
            InvalidProductError: product is inactive or its mode is disabled
        """
        if product.active is False:
            raise InvalidProductError(f'"{product.title}" is no longer available.', product_id=product.id)

        mode = product_mode(product)
        if not self.config.is_enabled(mode):
            logger.info(f"[CART] Mode '{mode.value}' disabled, rejecting product {product.id}")
            raise InvalidProductError(f'"{product.title}" cannot be ordered online.', product_id=product.id)
        return mode

    def compose(
        self,
        product,
        quantity: Any = None,
        quantities: Optional[Mapping[Any, Any]] = None,
        selection: Any = None,
        box: Any = None,
        items: Optional[Mapping[Any, Any]] = None,
        customer_group: Any = None
    ) -> CartResult:
        """
        Compose the line items for adding ``product`` to the cart.

        Args:
            quantity: requested quantity (simple, variable, boxes for mix & match)
            quantities: child product id -> quantity (grouped)
            selection: option name -> value key (variable / subscription)
            box: box size id or name (mix & match)
            items: product id -> quantity placed in the box (mix & match)
            customer_group: customer group id or slug, None for anonymous

        Raises:
            InvalidProductError, OutOfRangeError, IncompleteSelectionError
        """
        mode = self.ensure_sellable(product)

        if mode == ProductMode.GROUPED:
            result = self.compose_grouped(product, quantities, customer_group)
        elif mode == ProductMode.VARIABLE and product.is_subscription:
            result = self.compose_subscription(product, selection)
        elif mode == ProductMode.VARIABLE:
            result = self.compose_variable(product, selection, quantity)
        elif mode == ProductMode.MIX_AND_MATCH:
            result = self.compose_mix_and_match(product, box, items, quantity)
        else:
            result = self.compose_simple(product, quantity, customer_group)

        logger.info(
            f"[CART] Composed {len(result.lines)} line(s) for product {product.id} "
            f"({result.mode}), total {result.total}"
        )
        return result

    def compose_simple(self, product, quantity: Any = None, customer_group: Any = None) -> CartResult:
        require_base_price(product)
        rules = quantity_service.rules_for(product)
        qty = quantity_service.normalize_quantity(quantity, rules)
        unit_price, source, _ = resolve_unit_price(
            product, qty, customer_group, self.config.group_prices_enabled
        )
        line = self._line(product, qty, unit_price, source, rules=rules)
        return self._result(ProductMode.SIMPLE, (line,), unit_price, qty)

    def compose_grouped(
        self,
        product,
        quantities: Optional[Mapping[Any, Any]],
        customer_group: Any = None
    ) -> CartResult:
        """
        Children are priced together: the unit price comes once from the
        parent's price chain at the aggregate quantity of all children.
        An empty selection composes nothing.
        """
        require_base_price(product)
        quantities = _require_mapping(product, quantities, 'quantities')
        requested = {str(key): value for key, value in quantities.items()}
        children = product.children

        unknown = set(requested) - {str(child.id) for child in children}
        if unknown:
            logger.warning(f"[CART] Ignoring unknown children {sorted(unknown)} for grouped product {product.id}")

        picked = []
        for child in children:
            qty = parse_quantity(requested.get(str(child.id))) or 0
            if qty <= 0:
                continue
            if child.active is False:
                logger.warning(f"[CART] Skipping inactive child {child.id} of grouped product {product.id}")
                continue
            max_quantity = quantity_service.effective_max_quantity(child)
            if max_quantity is not None and qty > max_quantity:
                logger.info(f"[CART] Clamping child {child.id} from {qty} to {max_quantity}")
                qty = max_quantity
            if qty > 0:
                picked.append((child, qty))

        aggregate = sum(qty for _, qty in picked)
        if aggregate == 0:
            return self._result(ProductMode.GROUPED, (), None, 0)

        unit_price, source, _ = resolve_unit_price(
            product, aggregate, customer_group, self.config.group_prices_enabled
        )
        lines = tuple(
            self._line(child, qty, unit_price, source, parent=product)
            for child, qty in picked
        )
        return self._result(ProductMode.GROUPED, lines, unit_price, aggregate)

    def compose_variable(self, product, selection: Any, quantity: Any = None) -> CartResult:
        base_price = require_base_price(product)
        options = list(product.variant_options or [])
        selection = as_selection(selection, product.title)

        missing = missing_options(options, selection)
        if missing:
            raise IncompleteSelectionError(product.title, missing)

        stock = selection_stock(options, selection)
        rules = quantity_service.rules_for(product, stock=stock)
        qty = quantity_service.normalize_quantity(quantity, rules)
        unit_price = quantize_money(compose_variant_price(base_price, selection, options))

        line = self._line(
            product, qty, unit_price, PriceSource.VARIANT,
            title=annotate_title(product.title, selection_labels(options, selection)),
            selection=selection_key(options, selection),
            stock=stock,
            rules=rules,
        )
        return self._result(ProductMode.VARIABLE, (line,), unit_price, qty)

    def compose_subscription(self, product, selection: Any) -> CartResult:
        """Subscriptions are never multiplied: the line quantity is always 1."""
        base_price = require_base_price(product)
        options = list(product.variant_options or [])
        selection = as_selection(selection, product.title)

        missing = missing_options(options, selection)
        if missing:
            raise IncompleteSelectionError(product.title, missing)

        plan = find_plan_value(options, selection)
        if plan is not None and plan.stock_level is not None:
            stock = plan.stock_level
        else:
            stock = self.config.unlimited_stock
        if stock <= 0:
            raise OutOfRangeError(product.title, 1, 0)

        unit_price = quantize_money(
            compose_variant_price(base_price, selection, options, subscription=True)
        )
        rules = quantity_service.QuantityRules(min_quantity=1, multiple=1, max_quantity=1, label=product.title)
        line = self._line(
            product, 1, unit_price, PriceSource.VARIANT,
            title=annotate_title(product.title, selection_labels(options, selection)),
            selection=selection_key(options, selection),
            stock=stock,
            rules=rules,
        )
        return self._result(SUBSCRIPTION_MODE, (line,), unit_price, 1)

    def compose_mix_and_match(
        self,
        product,
        box: Any,
        items: Optional[Mapping[Any, Any]],
        quantity: Any = None
    ) -> CartResult:
        """
        A filled box sells at the box size's flat price. Contents must add
        up to the box's item count; no per-item prices are involved.
        """
        box_size = self._find_box(product, box)
        if box_size is None:
            raise IncompleteSelectionError(product.title, ['box'])

        box_price = to_decimal(box_size.price)
        if box_price is None or box_price < 0:
            raise InvalidProductError(f'"{product.title}" box "{box_size.name}" has no price.', product_id=product.id)

        requested = {
            str(key): parse_quantity(value) or 0
            for key, value in _require_mapping(product, items, 'items').items()
        }
        allowed = list(product.bundle_products or [])
        not_allowed = [key for key, qty in requested.items() if qty > 0 and key not in {str(p.id) for p in allowed}]
        if not_allowed:
            raise IncompleteSelectionError(
                product.title, ['items'],
                message=f'Products {", ".join(sorted(not_allowed))} cannot be added to "{product.title}".'
            )

        components = tuple(
            (item.id, requested[str(item.id)])
            for item in allowed
            if requested.get(str(item.id), 0) > 0
        )
        filled = sum(qty for _, qty in components)
        if filled != box_size.item_count:
            raise IncompleteSelectionError(
                product.title, ['items'],
                message=f'Choose exactly {box_size.item_count} items for "{box_size.name}" ({filled} chosen).'
            )

        rules = quantity_service.rules_for(product)
        qty = quantity_service.normalize_quantity(quantity, rules)
        unit_price = quantize_money(box_price)
        line = self._line(
            product, qty, unit_price, PriceSource.BOX,
            title=annotate_title(product.title, [box_size.name]),
            selection=(('box', box_size.name),),
            components=components,
            rules=rules,
        )
        return self._result(ProductMode.MIX_AND_MATCH, (line,), unit_price, qty)

    @staticmethod
    def _find_box(product, box: Any):
        if box is None or box == '':
            return None
        for box_size in product.box_sizes or []:
            if str(box_size.id) == str(box) or box_size.name == box:
                return box_size
        return None

    def _stock_snapshot(self, product, stock: Optional[int]) -> int:
        if stock is not None:
            return stock
        if product.track_stock is False:
            return self.config.unlimited_stock
        return max(parse_quantity(product.stock) or 0, 0)

    def _line(
        self,
        product,
        quantity: int,
        unit_price: Decimal,
        source: PriceSource,
        title: Optional[str] = None,
        parent=None,
        selection: Tuple = (),
        components: Tuple = (),
        stock: Optional[int] = None,
        rules: Optional[quantity_service.QuantityRules] = None
    ) -> CartLineItem:
        rules = rules or quantity_service.rules_for(product, stock=stock)
        tax_class = tax_class_of(product)
        return CartLineItem(
            product_id=product.id,
            title=title or product.title,
            quantity=quantity,
            unit_price=unit_price,
            stock_snapshot=self._stock_snapshot(product, stock),
            parent_product_id=parent.id if parent is not None else None,
            parent_product_title=parent.title if parent is not None else None,
            sku=product.sku or None,
            ean=product.ean or None,
            selection=tuple(selection),
            components=tuple(components),
            tax_class=tax_class,
            tax_rate=tax_rate_for(tax_class, self.config.tax_rates),
            min_order_quantity=rules.min_quantity,
            order_multiple=rules.multiple,
            max_order_quantity=rules.max_quantity,
            price_source=source.value,
        )

    def _result(self, mode, lines: Tuple, unit_price: Optional[Decimal], aggregate: int) -> CartResult:
        return CartResult(
            mode=getattr(mode, 'value', mode),
            lines=tuple(lines),
            unit_price=unit_price,
            aggregate_quantity=aggregate,
            currency=self.config.currency,
        )
