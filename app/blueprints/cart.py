"""Cart blueprint: add-to-cart and session cart management (JSON)."""
from flask import Blueprint, request, session, current_app, g, jsonify
from app.database import get_session
from app.exceptions import PricingError, IncompleteSelectionError
from app.services.cart_service import CartComposer, PricingConfig
from app.services.catalog_service import get_product
from app.services.session_cart_service import (
    add_lines, update_quantity, remove_line, clear_cart, cart_totals, empty_cart
)
from app.blueprints.metrics import cart_lines_composed_total, pricing_rejections_total
from collections.abc import Mapping
import logging

logger = logging.getLogger(__name__)

cart_bp = Blueprint('cart', __name__, url_prefix='/cart')

NESTED_FIELDS = ('quantities', 'selection', 'items')


def get_cart():
    """Get cart from session."""
    if 'cart' not in session:
        session['cart'] = empty_cart()
    return session['cart']


def get_composer() -> CartComposer:
    """Cart composer configured from the app's PRICING_* settings."""
    return CartComposer(PricingConfig.from_mapping(current_app.config))


def _form_payload() -> dict:
    """
    Form posts carry mappings as dotted keys:
    quantities.12=3, selection.Color=red, items.41=2 (same as option.* on the price page).
    """
    payload = {}
    for name, value in request.form.items():
        field_name, _, key = name.partition('.')
        if key and field_name in NESTED_FIELDS:
            payload.setdefault(field_name, {})[key] = value
        else:
            payload[name] = value
    return payload


def _payload() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return _form_payload()
    if not isinstance(payload, Mapping):
        logger.info(f"[CART] Rejecting {type(payload).__name__} request body")
        raise IncompleteSelectionError(
            'This product', ['body'], message='The request body must be a JSON object.'
        )
    return payload


@cart_bp.route('/', methods=['GET'])
def view_cart():
    """Current cart lines and totals."""
    return jsonify(cart_totals(get_cart()))


@cart_bp.route('/add/<int:product_id>', methods=['POST'])
def add_to_cart(product_id: int):
    """
    Compose line items for a product and merge them into the cart.

    Body (JSON or form), depending on the product type:
        quantity    simple / variable products, number of boxes for mix & match
        quantities  {child_id: qty} for grouped products
        selection   {option_name: value} for variable / subscription products
        box, items  box size and {product_id: qty} contents for mix & match
    """
    payload = _payload()
    product = get_product(get_session(), product_id)

    try:
        result = get_composer().compose(
            product,
            quantity=payload.get('quantity'),
            quantities=payload.get('quantities'),
            selection=payload.get('selection'),
            box=payload.get('box'),
            items=payload.get('items'),
            customer_group=g.get('customer_group_id'),
        )
    except PricingError as e:
        pricing_rejections_total.labels(reason=e.error_code).inc()
        raise

    if result.is_empty:
        # Nothing selected (e.g. grouped product with all quantities at 0)
        logger.info(f"[CART] Nothing to add for product {product_id}")
        return jsonify({
            'status': 'noop',
            'message': 'Select at least one product.',
            'cart': cart_totals(get_cart()),
        })

    cart = get_cart()
    keys = add_lines(cart, result.lines)
    session.modified = True
    cart_lines_composed_total.labels(mode=result.mode).inc(len(result.lines))

    return jsonify({
        'status': 'ok',
        'added': result.to_dict(),
        'keys': keys,
        'cart': cart_totals(cart),
    })


@cart_bp.route('/update', methods=['POST'])
def update_line():
    """Change the quantity of a cart line (0 removes it)."""
    payload = _payload()
    cart = get_cart()
    line = update_quantity(cart, payload.get('key', ''), payload.get('quantity'))
    session.modified = True
    return jsonify({'status': 'ok', 'line': line, 'cart': cart_totals(cart)})


@cart_bp.route('/remove', methods=['POST'])
def remove():
    """Remove a line from the cart."""
    payload = _payload()
    cart = get_cart()
    remove_line(cart, payload.get('key', ''))
    session.modified = True
    return jsonify({'status': 'ok', 'cart': cart_totals(cart)})


@cart_bp.route('/clear', methods=['POST'])
def clear():
    """Empty the cart."""
    cart = get_cart()
    clear_cart(cart)
    session.modified = True
    return jsonify({'status': 'ok', 'cart': cart_totals(cart)})
