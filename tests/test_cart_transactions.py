"""
Cart writes against a real SQLAlchemy session (SQLite via aiosqlite).

Checks what is actually durable after an operation, including when the
request's session is committed again afterwards.
"""
import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from storefront.core.database import Base
from storefront.models.cart import Cart
from storefront.models.product import Product
from storefront.schemas.cart import items_from_documents, items_to_documents
from storefront.services.cart_identity import StaticIdentityContext
from storefront.services.cart_repository import CartRepository
from storefront.services.cart_service import CartService
from storefront.services.pricing import compute_totals

from conftest import make_item

ITEM = {"product_id": "p1", "name": "Widget", "slug": "widget", "price": "50.00", "qty": 1}


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'carts.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    items = [make_item(qty=1)]
    async with factory() as session:
        session.add(Product(id="p1", name="Widget", slug="widget", price=Decimal("50.00"), stock=5))
        session.add(Cart(
            id="c1",
            session_cart_id="session-1",
            items=items_to_documents(items),
            version=1,
            **compute_totals(items).as_decimals(),
        ))
        await session.commit()

    yield factory
    await engine.dispose()


async def stored_cart(factory) -> Cart:
    async with factory() as session:
        result = await session.execute(select(Cart).where(Cart.id == "c1"))
        return result.scalar_one()


@pytest.mark.asyncio
async def test_successful_add_is_committed_before_invalidation(session_factory):
    seen = {}

    async def record_stored_qty(path):
        cart = await stored_cart(session_factory)
        seen["qty"] = items_from_documents(cart.items)[0].qty

    invalidator = AsyncMock()
    invalidator.invalidate = AsyncMock(side_effect=record_stored_qty)

    async with session_factory() as session:
        service = CartService(CartRepository(session), invalidator=invalidator)
        result = await service.add_item(StaticIdentityContext("session-1"), ITEM)

    assert result.success is True
    assert seen == {"qty": 2}
    cart = await stored_cart(session_factory)
    assert cart.version == 2
    assert f"{cart.total_price:.2f}" == "215.00"


@pytest.mark.asyncio
async def test_timed_out_add_is_not_committed(session_factory):
    invalidator = AsyncMock()

    async with session_factory() as session:
        load_cart = session.get

        async def slow_get(*args, **kwargs):
            # The version-guarded UPDATE has already run when this is awaited
            await asyncio.sleep(1)
            return await load_cart(*args, **kwargs)

        session.get = slow_get
        service = CartService(CartRepository(session), invalidator=invalidator, timeout_seconds=0.2)

        result = await service.add_item(StaticIdentityContext("session-1"), ITEM)
        # Whatever closes the request session must not be able to persist it
        await session.commit()

    assert result.success is False
    assert result.code == "CART_TIMEOUT"
    cart = await stored_cart(session_factory)
    assert items_from_documents(cart.items)[0].qty == 1
    assert cart.version == 1
    invalidator.invalidate.assert_not_awaited()


@pytest.mark.asyncio
async def test_rejected_add_leaves_nothing_pending(session_factory):
    async with session_factory() as session:
        product = await session.get(Product, "p1")
        product.stock = 1
        await session.commit()

    async with session_factory() as session:
        service = CartService(CartRepository(session), invalidator=AsyncMock())
        result = await service.add_item(StaticIdentityContext("session-1"), ITEM)
        await session.commit()

    assert result.code == "INSUFFICIENT_STOCK"
    cart = await stored_cart(session_factory)
    assert cart.version == 1


@pytest.mark.asyncio
async def test_new_cart_is_committed(session_factory):
    async with session_factory() as session:
        service = CartService(CartRepository(session), invalidator=AsyncMock())
        result = await service.add_item(StaticIdentityContext("session-new"), ITEM)

    assert result.success is True
    async with session_factory() as session:
        rows = await session.execute(select(Cart).where(Cart.session_cart_id == "session-new"))
        cart = rows.scalar_one()
    assert f"{cart.total_price:.2f}" == "157.50"
