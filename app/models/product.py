"""Product model."""
from sqlalchemy import Column, BigInteger, String, Boolean, Numeric, DateTime, Enum, Integer, ForeignKey, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigIntegerPK
import enum


class ProductMode(str, enum.Enum):
    """How a product is sold (drives the cart composition strategy)."""
    SIMPLE = 'simple'
    GROUPED = 'grouped'
    VARIABLE = 'variable'
    MIX_AND_MATCH = 'mixAndMatch'


class TaxClass(str, enum.Enum):
    """Tax class (rates are configured, see config.Config.TAX_RATE_*)."""
    STANDARD = 'standard'
    REDUCED = 'reduced'
    ZERO = 'zero'


# Products that may be put in a mix & match box
mix_match_item = Table(
    'mix_match_item',
    Base.metadata,
    Column('bundle_id', BigInteger, ForeignKey('product.id', ondelete='CASCADE'), primary_key=True),
    Column('product_id', BigInteger, ForeignKey('product.id', ondelete='CASCADE'), primary_key=True),
)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Product(Base):
    """Catalog product (read-only input of the pricing engine)."""

    __tablename__ = 'product'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    sku = Column(String(100), nullable=True, unique=True)
    ean = Column(String(20), nullable=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=True)
    mode = Column(
        Enum(ProductMode, name='product_mode', values_callable=_enum_values),
        nullable=False,
        default=ProductMode.SIMPLE
    )
    is_subscription = Column(Boolean, nullable=False, default=False, server_default='false')
    active = Column(Boolean, nullable=False, default=True, server_default='true')

    # Pricing
    base_price = Column(Numeric(10, 2), nullable=True)  # Required to sell; see price_service
    sale_price = Column(Numeric(10, 2), nullable=True)
    compare_at_price = Column(Numeric(10, 2), nullable=True)  # "Was" price shown struck through
    tax_class = Column(
        Enum(TaxClass, name='tax_class', values_callable=_enum_values),
        nullable=False,
        default=TaxClass.STANDARD
    )

    # Inventory
    stock = Column(Integer, nullable=True)
    track_stock = Column(Boolean, nullable=False, default=True, server_default='true')

    # B2B ordering rules
    min_order_quantity = Column(Integer, nullable=False, default=1, server_default='1')
    order_multiple = Column(Integer, nullable=False, default=1, server_default='1')
    max_order_quantity = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    volume_tiers = relationship(
        'VolumeTier', back_populates='product',
        order_by='VolumeTier.sort_order', cascade='all, delete-orphan'
    )
    group_prices = relationship('GroupPrice', back_populates='product', cascade='all, delete-orphan')
    variant_options = relationship(
        'VariantOption', back_populates='product',
        order_by='VariantOption.sort_order', cascade='all, delete-orphan'
    )
    child_links = relationship(
        'ProductChild', foreign_keys='ProductChild.parent_id', back_populates='parent',
        order_by='ProductChild.sort_order', cascade='all, delete-orphan'
    )
    box_sizes = relationship(
        'MixMatchBoxSize', back_populates='product',
        order_by='MixMatchBoxSize.sort_order', cascade='all, delete-orphan'
    )
    bundle_products = relationship(
        'Product',
        secondary=mix_match_item,
        primaryjoin=lambda: Product.id == mix_match_item.c.bundle_id,
        secondaryjoin=lambda: Product.id == mix_match_item.c.product_id,
    )

    def __repr__(self):
        return f"<Product(id={self.id}, title='{self.title}', sku='{self.sku}', mode='{self.mode}')>"

    @property
    def children(self):
        """Child products of a grouped product, in display order."""
        return [link.child for link in self.child_links if link.child is not None]

    @property
    def default_child(self):
        for link in self.child_links:
            if link.is_default:
                return link.child
        children = self.children
        return children[0] if children else None
