"""
Cart identity resolution

A request is identified by its session cart token and, when signed in, the
user id. The token is mandatory; the user id decides which cart is used
(user carts follow the user across sessions).

The providers are passed in explicitly through an IdentityContext so the
cart service never reaches for request-global state.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import Request

from storefront.core.cookies import get_session_cart_id
from storefront.core.exceptions import SessionMissingError
from storefront.core.security import get_user_id_from_token

logger = logging.getLogger(__name__)


class IdentityContext(Protocol):
    async def get_session_token(self) -> Optional[str]:
        ...

    async def get_authenticated_user_id(self) -> Optional[str]:
        ...


@dataclass(frozen=True)
class SessionIdentity:
    session_token: str
    user_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


@dataclass(frozen=True)
class LookupKey:
    """Exactly one of the two fields is set."""
    by_user_id: Optional[str] = None
    by_session_token: Optional[str] = None

    @property
    def kind(self) -> str:
        return "user" if self.by_user_id is not None else "session"


async def resolve(ctx: IdentityContext) -> SessionIdentity:
    """
    Resolve the identity of the current request.

    Raises:
        SessionMissingError: If no session cart token is available
    """
    token = await ctx.get_session_token()
    if not token:
        raise SessionMissingError()

    user_id = await ctx.get_authenticated_user_id()
    return SessionIdentity(session_token=token, user_id=user_id or None)


def cart_lookup_key(identity: SessionIdentity) -> LookupKey:
    if identity.user_id:
        return LookupKey(by_user_id=identity.user_id)
    return LookupKey(by_session_token=identity.session_token)


class RequestIdentityContext:
    """IdentityContext backed by the session cookie and bearer token of a request."""

    def __init__(self, request: Request, access_token: Optional[str] = None):
        self.request = request
        self.access_token = access_token

    async def get_session_token(self) -> Optional[str]:
        return get_session_cart_id(self.request)

    async def get_authenticated_user_id(self) -> Optional[str]:
        user_id = get_user_id_from_token(self.access_token)
        if self.access_token and user_id is None:
            logger.debug("Ignoring invalid or expired access token on cart request")
        return user_id


class StaticIdentityContext:
    """IdentityContext with fixed values, for jobs and scripts."""

    def __init__(self, session_token: Optional[str], user_id: Optional[str] = None):
        self.session_token = session_token
        self.user_id = user_id

    async def get_session_token(self) -> Optional[str]:
        return self.session_token

    async def get_authenticated_user_id(self) -> Optional[str]:
        return self.user_id
