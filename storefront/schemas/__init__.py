from storefront.schemas.cart import (
    LineItem,
    CartResponse,
    CartActionResult,
    items_from_documents,
    items_to_documents,
)

__all__ = [
    "LineItem",
    "CartResponse",
    "CartActionResult",
    "items_from_documents",
    "items_to_documents",
]
