"""Volume tier model."""
from sqlalchemy import Column, BigInteger, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, BigIntegerPK


class VolumeTier(Base):
    """
    Quantity breakpoint discount for a product (staffelprijs).

    Either ``discount_price`` (fixed unit price) or ``discount_percentage``
    (off the base price) is expected; ``discount_price`` wins when both are set.
    ``max_quantity`` is shown to shoppers but never used to select a tier.
    """
    __tablename__ = 'volume_tier'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False)
    min_quantity = Column(Integer, nullable=False, default=1)
    max_quantity = Column(Integer, nullable=True)
    discount_price = Column(Numeric(10, 2), nullable=True)
    discount_percentage = Column(Numeric(5, 2), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0, server_default='0')

    # Relationships
    product = relationship('Product', back_populates='volume_tiers')

    def __repr__(self):
        return (
            f"<VolumeTier(product_id={self.product_id}, min={self.min_quantity}, "
            f"max={self.max_quantity}, price={self.discount_price}, pct={self.discount_percentage})>"
        )
