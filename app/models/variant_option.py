"""Variant option models (configurable axes of a variable product)."""
from sqlalchemy import Column, BigInteger, String, Integer, Numeric, Boolean, Enum, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, BigIntegerPK
import enum


class SubscriptionType(str, enum.Enum):
    """Subscription plan kind."""
    PERSONAL = 'personal'
    GIFT = 'gift'
    TRIAL = 'trial'


class VariantOption(Base):
    """Named axis such as "Color" or "Size"."""

    __tablename__ = 'variant_option'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False)
    option_name = Column(String(100), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0, server_default='0')

    # Relationships
    product = relationship('Product', back_populates='variant_options')
    values = relationship(
        'VariantOptionValue', back_populates='option',
        order_by='VariantOptionValue.sort_order', cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f"<VariantOption(product_id={self.product_id}, name='{self.option_name}')>"

    def find_value(self, key):
        for value in self.values:
            if value.value == key:
                return value
        return None


class VariantOptionValue(Base):
    """Selectable value of an option with an additive price modifier."""

    __tablename__ = 'variant_option_value'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    option_id = Column(BigInteger, ForeignKey('variant_option.id'), nullable=False)
    label = Column(String(100), nullable=False)
    value = Column(String(100), nullable=False)
    price_modifier = Column(Numeric(10, 2), nullable=False, default=0, server_default='0')
    stock_level = Column(Integer, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0, server_default='0')

    # Subscription plans only
    subscription_type = Column(
        Enum(SubscriptionType, name='subscription_type', values_callable=lambda e: [m.value for m in e]),
        nullable=True
    )
    issues = Column(Integer, nullable=True)  # Number of issues per period
    discount_percentage = Column(Numeric(5, 2), nullable=True)
    auto_renew = Column(Boolean, nullable=False, default=False, server_default='false')

    # Relationships
    option = relationship('VariantOption', back_populates='values')

    def __repr__(self):
        return f"<VariantOptionValue(option_id={self.option_id}, value='{self.value}', modifier={self.price_modifier})>"
