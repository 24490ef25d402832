"""
Cart schemas

LineItem is both the request payload for adding to a cart and the document
stored in Cart.items, so the same validation runs on the way in and on the
way back out of the database.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from storefront.services.money import format_money


class LineItem(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    qty: int = Field(ge=1)
    image: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def coerce_product_id(cls, v):
        # Numeric ids from older clients are accepted as their string form
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> str:
        return format_money(price)

    def to_document(self) -> dict:
        """Serialize for the Cart.items JSON column."""
        return self.model_dump(mode="json")


def items_from_documents(documents) -> List[LineItem]:
    """Rebuild typed line items from a stored Cart.items array."""
    return [LineItem.model_validate(doc) for doc in (documents or [])]


def items_to_documents(items: List[LineItem]) -> List[dict]:
    return [item.to_document() for item in items]


class CartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    items: List[LineItem]
    items_price: str
    shipping_price: str
    tax_price: str
    total_price: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("items", mode="before")
    @classmethod
    def parse_items(cls, v):
        if v is None:
            return []
        return v

    @field_validator("items_price", "shipping_price", "tax_price", "total_price", mode="before")
    @classmethod
    def format_price(cls, v):
        return format_money(v)


class CartActionResult(BaseModel):
    """Uniform outcome of add/remove cart operations."""
    success: bool
    message: str
    code: Optional[str] = None

    @classmethod
    def ok(cls, message: str) -> "CartActionResult":
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, message: str, code: Optional[str] = None) -> "CartActionResult":
        return cls(success=False, message=message, code=code)
