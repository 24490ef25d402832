"""
Session cart cookie handling

Every visitor carries an opaque session cart token in a cookie. The
middleware below provisions one on the first request; cart operations only
ever read it.
"""
import logging
from typing import Optional

from fastapi import Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from storefront.core.config import settings
from storefront.core.utils import new_id

logger = logging.getLogger(__name__)


def get_cookie_domain() -> Optional[str]:
    """Configured cookie domain, or None for a host-only cookie."""
    return settings.COOKIE_DOMAIN or None


def get_session_cart_id(request: Request) -> Optional[str]:
    """
    Session cart token for this request.

    Prefers the cookie sent by the browser and falls back to a token the
    middleware provisioned on this same request.
    """
    token = request.cookies.get(settings.SESSION_CART_COOKIE)
    if token:
        return token
    return getattr(request.state, "session_cart_id", None)


def set_session_cart_cookie(response: Response, session_cart_id: str) -> None:
    """Set the session cart cookie on response."""
    response.set_cookie(
        key=settings.SESSION_CART_COOKIE,
        value=session_cart_id,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        domain=get_cookie_domain(),
        max_age=settings.SESSION_CART_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60,
        path="/",
    )


class SessionCartMiddleware(BaseHTTPMiddleware):
    """Provision a session cart token for requests that arrive without one."""

    async def dispatch(self, request: Request, call_next):
        provisioned = None
        if not request.cookies.get(settings.SESSION_CART_COOKIE):
            provisioned = new_id()
            request.state.session_cart_id = provisioned

        response = await call_next(request)

        if provisioned:
            set_session_cart_cookie(response, provisioned)
            logger.debug(f"Provisioned session cart cookie for {request.url.path}")
        return response
