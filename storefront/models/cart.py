"""
Cart model

One row per cart. Items live in a JSON array next to the four derived
price columns so both are always written by the same UPDATE.
`version` backs the optimistic concurrency check in CartRepository.
"""
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, DateTime, JSON

from storefront.core.database import Base
from storefront.core.utils import utcnow, new_id


class Cart(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=new_id)
    # Binding keys: user_id wins when present, else session_cart_id
    user_id = Column(String, nullable=True, index=True)
    session_cart_id = Column(String, nullable=False, index=True)

    items = Column(JSON, nullable=False, default=list)

    items_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    shipping_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    tax_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Cart {self.id} items={len(self.items or [])} v{self.version}>"
