"""
API dependencies

The cart service is built per request from the request's DB session.
Identity comes from the session cart cookie plus an optional bearer token;
an invalid token is treated as anonymous rather than rejected.
"""
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.services.cart_identity import RequestIdentityContext
from storefront.services.cart_repository import CartRepository
from storefront.services.cart_service import CartService

# Optional bearer - doesn't fail if no Authorization header
security = HTTPBearer(auto_error=False)


def get_identity_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> RequestIdentityContext:
    token = credentials.credentials if credentials else None
    return RequestIdentityContext(request, access_token=token)


def get_cart_service(db: AsyncSession = Depends(get_db)) -> CartService:
    return CartService(CartRepository(db))
