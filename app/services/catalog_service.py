"""Catalog lookups: load a product together with the graph the pricing engine reads."""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from app.models import Product, ProductChild, VariantOption, GroupPrice
from app.exceptions import NotFoundError


def _with_pricing_graph(query):
    return query.options(
        selectinload(Product.volume_tiers),
        selectinload(Product.group_prices).selectinload(GroupPrice.group),
        selectinload(Product.variant_options).selectinload(VariantOption.values),
        selectinload(Product.child_links).selectinload(ProductChild.child).selectinload(Product.volume_tiers),
        selectinload(Product.box_sizes),
        selectinload(Product.bundle_products),
    )


def get_product(session: Session, product_id: int) -> Product:
    """
    Load a product and everything needed to price it.

    Raises:
        NotFoundError: if the product does not exist.
    """
    product = _with_pricing_graph(session.query(Product)).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError(f'Product {product_id} not found.', {'product_id': product_id})
    return product


def find_product_by_sku(session: Session, sku: str) -> Optional[Product]:
    return _with_pricing_graph(session.query(Product)).filter(Product.sku == sku).first()
