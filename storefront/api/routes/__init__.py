from fastapi import APIRouter

from storefront.api.routes import cart

api_router = APIRouter()
api_router.include_router(cart.router, prefix="/cart", tags=["Cart"])
