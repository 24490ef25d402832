"""
Product model

Read-only from the cart's point of view: existence, stock and slug.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint

from storefront.core.database import Base
from storefront.core.utils import utcnow, new_id


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, unique=True, index=True, nullable=False)

    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    image = Column(String)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Product {self.id} slug={self.slug!r} stock={self.stock}>"
