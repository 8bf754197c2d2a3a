"""Grouped product child link model."""
from sqlalchemy import Column, BigInteger, Integer, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, BigIntegerPK


class ProductChild(Base):
    """Link from a grouped product to one of its (simple) child products."""

    __tablename__ = 'product_child'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    parent_id = Column(BigInteger, ForeignKey('product.id'), nullable=False)
    child_id = Column(BigInteger, ForeignKey('product.id'), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False, server_default='false')
    sort_order = Column(Integer, nullable=False, default=0, server_default='0')

    # Relationships
    parent = relationship('Product', foreign_keys=[parent_id], back_populates='child_links')
    child = relationship('Product', foreign_keys=[child_id])

    def __repr__(self):
        return f"<ProductChild(parent_id={self.parent_id}, child_id={self.child_id}, default={self.is_default})>"
