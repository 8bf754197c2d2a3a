"""Models package - exports all SQLAlchemy models."""
# Catalog
from app.models.product import Product, ProductMode, TaxClass, mix_match_item
from app.models.volume_tier import VolumeTier
from app.models.customer_group import CustomerGroup, GroupPrice
from app.models.variant_option import VariantOption, VariantOptionValue, SubscriptionType
from app.models.product_child import ProductChild
from app.models.box_size import MixMatchBoxSize

__all__ = [
    'Product', 'ProductMode', 'TaxClass', 'mix_match_item',
    'VolumeTier',
    'CustomerGroup', 'GroupPrice',
    'VariantOption', 'VariantOptionValue', 'SubscriptionType',
    'ProductChild',
    'MixMatchBoxSize',
]
