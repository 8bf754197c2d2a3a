"""Mix & match box size model."""
from sqlalchemy import Column, BigInteger, String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, BigIntegerPK


class MixMatchBoxSize(Base):
    """
    Box a shopper fills with ``item_count`` products of their choice.
    Sold at the flat ``price`` regardless of which products go in.
    """
    __tablename__ = 'mix_match_box_size'

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False)
    name = Column(String(100), nullable=False)  # e.g., "Box of 6"
    item_count = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0, server_default='0')

    # Relationships
    product = relationship('Product', back_populates='box_sizes')

    def __repr__(self):
        return f"<MixMatchBoxSize(id={self.id}, name='{self.name}', items={self.item_count}, price={self.price})>"
