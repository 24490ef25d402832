"""
Storefront Exception Hierarchy

All exceptions carry a code, message and details so the cart boundary can
turn them into a uniform result and the logs keep the full context.

Exception Hierarchy:
    StorefrontError
    ├── CartError
    │   ├── SessionMissingError
    │   ├── CartValidationError
    │   ├── ProductNotFoundError
    │   ├── CartNotFoundError
    │   ├── ItemNotFoundError
    │   └── InsufficientStockError
    └── StorageError
        ├── CartConflictError
        └── CartTimeoutError
"""
from typing import Optional, Dict, Any


class StorefrontError(Exception):
    """
    Base exception for all storefront errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging/audit
        severity: P0-P3 severity level
    """

    default_code: str = "STOREFRONT_ERROR"
    default_message: str = "An error occurred"
    default_severity: str = "P2"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[str] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        self.severity = severity or self.default_severity
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# CART ERRORS
# =============================================================================

class CartError(StorefrontError):
    """Base exception for cart reconciliation errors."""
    default_code = "CART_ERROR"
    default_severity = "P3"


class SessionMissingError(CartError):
    """No session cart token on the request."""
    default_code = "SESSION_MISSING"
    default_message = "Cart session not found"


class CartValidationError(CartError):
    """Line item failed schema validation."""
    default_code = "VALIDATION_ERROR"
    default_message = "Invalid cart item"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details["errors"] = errors or []
        super().__init__(message, details=details, **kwargs)


class ProductNotFoundError(CartError):
    default_code = "PRODUCT_NOT_FOUND"
    default_message = "Product not found"

    def __init__(self, message: Optional[str] = None, product_id: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["product_id"] = product_id
        super().__init__(message, details=details, **kwargs)


class CartNotFoundError(CartError):
    default_code = "CART_NOT_FOUND"
    default_message = "Cart not found"


class ItemNotFoundError(CartError):
    default_code = "ITEM_NOT_FOUND"
    default_message = "Item not found in cart"

    def __init__(self, message: Optional[str] = None, product_id: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["product_id"] = product_id
        super().__init__(message, details=details, **kwargs)


class InsufficientStockError(CartError):
    """Requested quantity exceeds available stock."""
    default_code = "INSUFFICIENT_STOCK"
    default_message = "Not enough stock"

    def __init__(
        self,
        message: Optional[str] = None,
        requested_qty: Optional[int] = None,
        available_qty: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "requested_qty": requested_qty,
            "available_qty": available_qty,
        })
        super().__init__(message, details=details, **kwargs)


# =============================================================================
# STORAGE ERRORS
# =============================================================================

class StorageError(StorefrontError):
    """Wraps any persistence failure."""
    default_code = "STORAGE_ERROR"
    default_message = "Cart storage is unavailable. Please try again later."
    default_severity = "P1"


class CartConflictError(StorageError):
    """Cart row changed between read and conditional update."""
    default_code = "CART_CONFLICT"
    default_message = "Cart was modified concurrently"
    default_severity = "P3"

    def __init__(
        self,
        message: Optional[str] = None,
        cart_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "cart_id": cart_id,
            "expected_version": expected_version,
        })
        super().__init__(message, details=details, **kwargs)


class CartTimeoutError(StorageError):
    default_code = "CART_TIMEOUT"
    default_message = "Cart operation timed out"
    default_severity = "P2"


# HTTP status used by the API layer for failure results
ERROR_STATUS_CODES = {
    SessionMissingError.default_code: 401,
    CartValidationError.default_code: 400,
    ProductNotFoundError.default_code: 404,
    CartNotFoundError.default_code: 404,
    ItemNotFoundError.default_code: 404,
    InsufficientStockError.default_code: 400,
    CartConflictError.default_code: 409,
    CartTimeoutError.default_code: 503,
    StorageError.default_code: 503,
}
