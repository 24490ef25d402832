"""
Security utilities - access token verification

Tokens are issued by the auth service; this service only verifies them to
learn which user (if any) is signed in.
"""
from typing import Optional

from jose import JWTError, jwt

from storefront.core.config import settings


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate JWT token"""
    try:
        # Skip strict subject validation to allow both int and string sub claims
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_sub": False}
        )
        return payload
    except JWTError:
        return None


def get_user_id_from_token(token: Optional[str]) -> Optional[str]:
    """Return the subject of a valid access token, None otherwise."""
    if not token:
        return None
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        return None
    sub = payload.get("sub")
    return str(sub) if sub is not None else None
