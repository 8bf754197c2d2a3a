"""Catalog blueprint: price quotes for product pages (JSON)."""
from flask import Blueprint, request, current_app, g, jsonify
from app.database import get_session
from app.exceptions import PricingError
from app.models import ProductMode
from app.services.cart_service import CartComposer, PricingConfig
from app.services.catalog_service import get_product
from app.services.price_service import price_breakdown, require_base_price
from app.services.quantity_service import rules_for, normalize_quantity
from app.services.tier_service import tier_table
from app.services.variant_price_service import compose_variant_price, missing_options, selection_labels
from app.blueprints.metrics import pricing_rejections_total
from app.utils.number_format import parse_quantity, quantize_money, to_decimal
from typing import Any, Dict, List

catalog_bp = Blueprint('catalog', __name__, url_prefix='/products')

OPTION_PREFIX = 'option.'


def _selection_from_args() -> Dict[str, str]:
    """?option.Color=red&option.Size=xl -> {'Color': 'red', 'Size': 'xl'}"""
    return {
        name[len(OPTION_PREFIX):]: value
        for name, value in request.args.items()
        if name.startswith(OPTION_PREFIX) and value
    }


def _variant_quote(product) -> Dict[str, Any]:
    base_price = require_base_price(product)
    options = list(product.variant_options or [])
    selection = _selection_from_args()
    configured = compose_variant_price(base_price, selection, options, subscription=bool(product.is_subscription))
    return {
        'configured_price': str(quantize_money(configured)),
        'labels': selection_labels(options, selection),
        'missing': missing_options(options, selection),
    }


def _box_quotes(product) -> List[Dict[str, Any]]:
    boxes = []
    for box_size in product.box_sizes or []:
        price = to_decimal(box_size.price)
        boxes.append({
            'id': box_size.id,
            'name': box_size.name,
            'item_count': box_size.item_count,
            'price': str(quantize_money(price)) if price is not None else None,
        })
    return boxes


@catalog_bp.route('/<int:product_id>/price', methods=['GET'])
def product_price(product_id: int):
    """
    Price breakdown for a product page.

    Query args:
        qty      requested quantity (aggregate quantity for grouped products)
        group    customer group, defaults to the logged-in shopper's group
        option.* variant selection for configurable products
    """
    product = get_product(get_session(), product_id)
    config = PricingConfig.from_mapping(current_app.config)
    group = request.args.get('group') or g.get('customer_group_id')

    try:
        mode = CartComposer(config).ensure_sellable(product)
        if mode == ProductMode.MIX_AND_MATCH:
            # Boxes sell at a flat price per size; there is no per-unit chain
            return jsonify({
                'product_id': product.id,
                'mode': mode.value,
                'currency': config.currency,
                'boxes': _box_quotes(product),
            })

        if mode == ProductMode.GROUPED:
            # Aggregate quantities start at 0; no MOQ applies to the group
            quantity = max(parse_quantity(request.args.get('qty')) or 0, 0)
        else:
            quantity = normalize_quantity(request.args.get('qty'), rules_for(product))

        breakdown = price_breakdown(
            product, quantity, group,
            tax_rates=config.tax_rates,
            group_prices_enabled=config.group_prices_enabled
        )
        body = {
            'product_id': product.id,
            'mode': mode.value,
            'currency': config.currency,
            'price': breakdown.to_dict(),
            'tiers': [
                {**row, 'unit_price': str(row['unit_price'])}
                for row in tier_table(list(product.volume_tiers or []), require_base_price(product), quantity)
            ],
        }
        if mode == ProductMode.VARIABLE:
            body['variant'] = _variant_quote(product)
        elif mode == ProductMode.GROUPED:
            # Child preselected on the product page
            default_child = product.default_child
            body['default_child_id'] = default_child.id if default_child is not None else None
    except PricingError as e:
        pricing_rejections_total.labels(reason=e.error_code).inc()
        raise

    return jsonify(body)
