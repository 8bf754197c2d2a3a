"""Customer group and group price models."""
from sqlalchemy import Column, BigInteger, String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, BigIntegerPK


class CustomerGroup(Base):
    """Customer segment with contract pricing (e.g. Dealer, Wholesale)."""

    __tablename__ = 'customer_group'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True)

    def __repr__(self):
        return f"<CustomerGroup(id={self.id}, slug='{self.slug}')>"


class GroupPrice(Base):
    """Per-group price row; several rows per group act as quantity breakpoints."""

    __tablename__ = 'group_price'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False)
    group_id = Column(BigInteger, ForeignKey('customer_group.id'), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    min_quantity = Column(Integer, nullable=False, default=1, server_default='1')

    # Relationships
    product = relationship('Product', back_populates='group_prices')
    group = relationship('CustomerGroup')

    def __repr__(self):
        return f"<GroupPrice(product_id={self.product_id}, group_id={self.group_id}, min={self.min_quantity}, price={self.price})>"
