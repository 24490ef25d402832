from storefront.models.product import Product
from storefront.models.cart import Cart

__all__ = [
    "Product",
    "Cart",
]
