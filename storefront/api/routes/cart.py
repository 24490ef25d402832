"""
Cart routes

Mutations always answer with the {success, message, code} result shape.
The item payload is validated by the cart service, not by FastAPI, so a
malformed item comes back as a regular failed result instead of a 422.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from storefront.api.deps import get_cart_service, get_identity_context
from storefront.core.config import settings
from storefront.core.exceptions import ERROR_STATUS_CODES
from storefront.core.rate_limit import limiter
from storefront.schemas.cart import CartActionResult, CartResponse
from storefront.services.cart_identity import RequestIdentityContext
from storefront.services.cart_service import CartService

router = APIRouter()


def _result_response(result: CartActionResult) -> JSONResponse:
    status_code = 200 if result.success else ERROR_STATUS_CODES.get(result.code, 500)
    return JSONResponse(status_code=status_code, content=result.model_dump())


@router.get("", response_model=Optional[CartResponse])
async def get_cart(
    ctx: RequestIdentityContext = Depends(get_identity_context),
    service: CartService = Depends(get_cart_service),
):
    """Current visitor's cart, or null when there is none"""
    cart = await service.get_cart(ctx)
    if cart is None:
        return None
    return CartResponse.model_validate(cart)


@router.post("/items", response_model=CartActionResult)
@limiter.limit(settings.RATE_LIMIT_CART)
async def add_to_cart(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    ctx: RequestIdentityContext = Depends(get_identity_context),
    service: CartService = Depends(get_cart_service),
):
    """Add one unit of a product to the cart"""
    result = await service.add_item(ctx, payload)
    return _result_response(result)


@router.delete("/items/{product_id}", response_model=CartActionResult)
@limiter.limit(settings.RATE_LIMIT_CART)
async def remove_from_cart(
    request: Request,
    product_id: str,
    ctx: RequestIdentityContext = Depends(get_identity_context),
    service: CartService = Depends(get_cart_service),
):
    """Remove one unit of a product from the cart"""
    result = await service.remove_item(ctx, product_id)
    return _result_response(result)
