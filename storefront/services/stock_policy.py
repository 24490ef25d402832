"""
Stock policy

A cart line may never ask for more units than the product has in stock.
Callers pass the total quantity the line would hold after the change,
not the increment.
"""
from storefront.core.exceptions import InsufficientStockError


def check_availability(available: int, requested: int) -> None:
    """Raise InsufficientStockError when available < requested."""
    if available < requested:
        raise InsufficientStockError(
            requested_qty=requested,
            available_qty=available,
        )
