"""
Cart storage

SQLAlchemy access for carts and products. Every write to a cart replaces
its items and its four totals in a single UPDATE guarded by the row
version, so a concurrent writer is detected instead of overwritten.

Writes are only flushed here. The cart service decides whether the
operation succeeded and then calls commit() or rollback().
"""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import StorageError, CartConflictError
from storefront.core.utils import utcnow, new_id
from storefront.models.cart import Cart
from storefront.models.product import Product
from storefront.schemas.cart import LineItem, items_to_documents
from storefront.services.cart_identity import LookupKey
from storefront.services.pricing import PriceBreakdown

logger = logging.getLogger(__name__)


class CartRepository:
    """Storage collaborator for the cart service."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _storage_errors(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"[CART_STORAGE] {operation} failed: {type(e).__name__}: {e}")
            await self.db.rollback()
            raise StorageError(details={"operation": operation}) from e

    async def commit(self) -> None:
        """Make the pending cart write durable."""
        async with self._storage_errors("commit"):
            await self.db.commit()

    async def rollback(self) -> None:
        """Discard whatever the failed operation wrote in this session."""
        await self.db.rollback()

    async def _first_cart(self, stmt) -> Optional[Cart]:
        # populate_existing: a retry after a version conflict must see the
        # row as it is now, not the copy cached in the identity map
        result = await self.db.execute(
            stmt.order_by(Cart.created_at).limit(1).execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def find_cart_by_user(self, user_id: str) -> Optional[Cart]:
        async with self._storage_errors("find_cart_by_user"):
            return await self._first_cart(select(Cart).where(Cart.user_id == user_id))

    async def find_cart_by_session_token(self, session_cart_id: str) -> Optional[Cart]:
        async with self._storage_errors("find_cart_by_session_token"):
            return await self._first_cart(select(Cart).where(Cart.session_cart_id == session_cart_id))

    async def find_cart(self, key: LookupKey) -> Optional[Cart]:
        if key.by_user_id is not None:
            return await self.find_cart_by_user(key.by_user_id)
        return await self.find_cart_by_session_token(key.by_session_token)

    async def find_product_by_id(self, product_id: str) -> Optional[Product]:
        async with self._storage_errors("find_product_by_id"):
            result = await self.db.execute(
                select(Product).where(Product.id == product_id)
            )
            return result.scalar_one_or_none()

    async def create_cart(
        self,
        session_cart_id: str,
        user_id: Optional[str],
        items: List[LineItem],
        totals: PriceBreakdown,
    ) -> Cart:
        """Insert a new cart row with its items and totals."""
        cart = Cart(
            id=new_id(),
            session_cart_id=session_cart_id,
            user_id=user_id,
            items=items_to_documents(items),
            version=1,
            **totals.as_decimals(),
        )
        async with self._storage_errors("create_cart"):
            self.db.add(cart)
            await self.db.flush()
        return cart

    async def update_cart_items_and_totals(
        self,
        cart_id: str,
        items: List[LineItem],
        totals: PriceBreakdown,
        expected_version: int,
    ) -> Cart:
        """
        Replace a cart's items and totals in one conditional UPDATE.

        Raises:
            CartConflictError: If the row's version is no longer expected_version
            StorageError: On any database failure
        """
        stmt = (
            update(Cart)
            .where(Cart.id == cart_id, Cart.version == expected_version)
            .values(
                items=items_to_documents(items),
                version=Cart.version + 1,
                updated_at=utcnow(),
                **totals.as_decimals(),
            )
            .execution_options(synchronize_session=False)
        )
        async with self._storage_errors("update_cart_items_and_totals"):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise CartConflictError(cart_id=cart_id, expected_version=expected_version)
            cart = await self.db.get(Cart, cart_id, populate_existing=True)

        if cart is None:
            raise StorageError(details={"operation": "update_cart_items_and_totals", "cart_id": cart_id})
        return cart
