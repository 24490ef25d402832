"""
Cart Service

Reconciles add/remove requests into the persisted cart:

    resolve identity -> validate item -> load product -> load cart
    -> apply stock policy -> mutate items -> recompute totals -> persist
    -> commit -> invalidate product page

add_item and remove_item never raise. Every failure, typed or not, comes
back as CartActionResult(success=False) with a readable message and an
error code, and the session is rolled back so nothing the failed attempt
wrote can be committed later. The page is only invalidated once the
commit has gone through. get_cart is fail-soft: errors are logged and
reported as "no cart".

Concurrent writers to the same cart are detected through the row version
(see CartRepository.update_cart_items_and_totals); the whole
load-mutate-persist attempt is replayed on conflict.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Union

from pydantic import ValidationError

from storefront.core.config import settings
from storefront.core.error_handler import format_error, format_validation_errors
from storefront.core.exceptions import (
    CartError,
    CartConflictError,
    CartNotFoundError,
    CartTimeoutError,
    CartValidationError,
    ItemNotFoundError,
    ProductNotFoundError,
    StorageError,
)
from storefront.models.cart import Cart
from storefront.models.product import Product
from storefront.schemas.cart import CartActionResult, LineItem, items_from_documents
from storefront.services.cart_identity import IdentityContext, LookupKey, cart_lookup_key, resolve
from storefront.services.cart_repository import CartRepository
from storefront.services.page_invalidation import PageInvalidator, product_page_path
from storefront.services.pricing import PricingPolicy, compute_totals
from storefront.services.stock_policy import check_availability

logger = logging.getLogger(__name__)


@dataclass
class CartMutation:
    """What a successful add/remove attempt reports back to the boundary."""
    message: str
    product_slug: str
    created: bool = False


def find_item(items: List[LineItem], product_id: str) -> Optional[LineItem]:
    return next((item for item in items if item.product_id == product_id), None)


def with_qty(items: List[LineItem], product_id: str, qty: int) -> List[LineItem]:
    """Copy of items with one line's quantity replaced, order preserved."""
    return [
        item.model_copy(update={"qty": qty}) if item.product_id == product_id else item
        for item in items
    ]


def without_item(items: List[LineItem], product_id: str) -> List[LineItem]:
    return [item for item in items if item.product_id != product_id]


class CartService:
    """
    Cart reconciliation for one request.

    Usage:
        service = CartService(CartRepository(db))
        result = await service.add_item(ctx, payload)
    """

    def __init__(
        self,
        repository: CartRepository,
        invalidator: Optional[PageInvalidator] = None,
        pricing_policy: Optional[PricingPolicy] = None,
        max_retries: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.repository = repository
        self.invalidator = invalidator or PageInvalidator()
        self.pricing_policy = pricing_policy or PricingPolicy.from_settings(settings)
        self.max_retries = settings.CART_UPDATE_MAX_RETRIES if max_retries is None else max_retries
        self.timeout_seconds = (
            settings.CART_OPERATION_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def add_item(self, ctx: IdentityContext, data: Union[LineItem, dict, Any]) -> CartActionResult:
        """Add one unit of a product to the caller's cart, creating the cart if needed."""
        return await self._run("add_item", self._add_item(ctx, data))

    async def remove_item(self, ctx: IdentityContext, product_id: str) -> CartActionResult:
        """Remove one unit of a product; the line disappears when its last unit goes."""
        return await self._run("remove_item", self._remove_item(ctx, str(product_id)))

    async def get_cart(self, ctx: IdentityContext) -> Optional[Cart]:
        """Caller's cart, or None when there is none or it cannot be loaded."""
        try:
            identity = await resolve(ctx)
            return await self.repository.find_cart(cart_lookup_key(identity))
        except Exception as e:
            logger.error(f"[CART] Error fetching cart: {type(e).__name__}: {e}", exc_info=True)
            return None

    # ------------------------------------------------------------------
    # Boundary
    # ------------------------------------------------------------------

    async def _run(self, operation: str, pipeline: Awaitable[CartMutation]) -> CartActionResult:
        try:
            mutation = await asyncio.wait_for(pipeline, timeout=self.timeout_seconds)
            await self.repository.commit()
        except asyncio.TimeoutError:
            await self._discard(operation)
            error = CartTimeoutError(details={"operation": operation, "timeout": self.timeout_seconds})
            logger.warning(f"[CART] {operation} timed out after {self.timeout_seconds}s")
            return CartActionResult.failed(error.message, error.code)
        except CartError as e:
            await self._discard(operation)
            logger.info(f"[CART] {operation} rejected: {e.code} {e.details}")
            return CartActionResult.failed(format_error(e), e.code)
        except StorageError as e:
            await self._discard(operation)
            logger.error(f"[CART] {operation} storage failure: {e.to_dict()}")
            return CartActionResult.failed(format_error(e), e.code)
        except Exception as e:
            await self._discard(operation)
            logger.exception(f"[CART] {operation} failed unexpectedly: {type(e).__name__}")
            return CartActionResult.failed(format_error(e), "INTERNAL_ERROR")

        await self.invalidator.invalidate(product_page_path(mutation.product_slug))
        return CartActionResult.ok(mutation.message)

    async def _discard(self, operation: str) -> None:
        # The failure is already being reported; a rollback error only gets logged
        try:
            await self.repository.rollback()
        except Exception as e:
            logger.error(f"[CART] {operation} rollback failed: {type(e).__name__}: {e}")

    async def _retry_on_conflict(self, operation: str, attempt: Callable[[], Awaitable[CartMutation]]) -> CartMutation:
        for attempt_number in range(1, self.max_retries + 1):
            try:
                return await attempt()
            except CartConflictError as e:
                if attempt_number >= self.max_retries:
                    raise
                logger.info(
                    f"[CART] {operation} version conflict on cart {e.details.get('cart_id')}, "
                    f"retrying ({attempt_number}/{self.max_retries})"
                )
        raise CartConflictError()

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    def _validate_item(self, data) -> LineItem:
        if isinstance(data, LineItem):
            return data
        try:
            return LineItem.model_validate(data)
        except ValidationError as e:
            raise CartValidationError(
                format_validation_errors(e),
                errors=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
            ) from e

    def _cart_items(self, cart: Cart) -> List[LineItem]:
        try:
            return items_from_documents(cart.items)
        except ValidationError as e:
            logger.error(f"[CART] Cart {cart.id} holds invalid items: {format_validation_errors(e)}")
            raise StorageError(
                details={"cart_id": cart.id, "reason": "invalid stored items"}
            ) from e

    async def _load_product(self, product_id: str) -> Product:
        product = await self.repository.find_product_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id=product_id)
        return product

    async def _add_item(self, ctx: IdentityContext, data) -> CartMutation:
        identity = await resolve(ctx)
        item = self._validate_item(data)
        product = await self._load_product(item.product_id)
        key = cart_lookup_key(identity)

        async def attempt() -> CartMutation:
            cart = await self.repository.find_cart(key)

            if cart is None:
                items = [item]
                await self.repository.create_cart(
                    session_cart_id=identity.session_token,
                    user_id=identity.user_id,
                    items=items,
                    totals=compute_totals(items, self.pricing_policy),
                )
                logger.info(f"[CART] Created {key.kind} cart with product {product.id}")
                return CartMutation(f"{product.name} added to cart", product.slug, created=True)

            items = self._cart_items(cart)
            existing = find_item(items, item.product_id)

            if existing:
                new_qty = existing.qty + 1
                check_availability(product.stock, new_qty)
                items = with_qty(items, item.product_id, new_qty)
            else:
                check_availability(product.stock, 1)
                items = items + [item]

            await self.repository.update_cart_items_and_totals(
                cart.id, items, compute_totals(items, self.pricing_policy), cart.version
            )
            logger.info(f"[CART] Added product {product.id} to {key.kind} cart {cart.id}")
            verb = "updated in" if existing else "added to"
            return CartMutation(f"{product.name} {verb} cart", product.slug)

        return await self._retry_on_conflict("add_item", attempt)

    async def _remove_item(self, ctx: IdentityContext, product_id: str) -> CartMutation:
        identity = await resolve(ctx)
        product = await self._load_product(product_id)
        key: LookupKey = cart_lookup_key(identity)

        async def attempt() -> CartMutation:
            cart = await self.repository.find_cart(key)
            if cart is None:
                raise CartNotFoundError()

            items = self._cart_items(cart)
            existing = find_item(items, product_id)
            if existing is None:
                raise ItemNotFoundError(product_id=product_id)

            if existing.qty == 1:
                items = without_item(items, product_id)
            else:
                items = with_qty(items, product_id, existing.qty - 1)

            await self.repository.update_cart_items_and_totals(
                cart.id, items, compute_totals(items, self.pricing_policy), cart.version
            )
            logger.info(f"[CART] Removed one unit of product {product.id} from {key.kind} cart {cart.id}")
            return CartMutation(f"{product.name} removed from cart", product.slug)

        return await self._retry_on_conflict("remove_item", attempt)
