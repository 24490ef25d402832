"""
Page cache invalidation

After a cart mutation the product page rendered for that product is stale
(its stock badge and cart state changed). The invalidator drops the cached
page and announces the path on a pub/sub channel for the rendering tier.

Fire-and-forget: failures are logged, never raised to the cart operation.
"""
import logging
from typing import Awaitable, Callable, Optional

from storefront.core.config import settings
from storefront.core.redis_client import get_redis

logger = logging.getLogger(__name__)


def product_page_path(slug: str) -> str:
    return settings.PRODUCT_PAGE_PATH.format(slug=slug)


class PageInvalidator:
    def __init__(
        self,
        redis_getter: Callable[[], Awaitable[Optional[object]]] = get_redis,
        channel: Optional[str] = None,
        key_prefix: Optional[str] = None,
    ):
        self._redis_getter = redis_getter
        self.channel = channel or settings.PAGE_INVALIDATION_CHANNEL
        self.key_prefix = key_prefix if key_prefix is not None else settings.PAGE_CACHE_KEY_PREFIX

    async def invalidate(self, path: str) -> None:
        """Mark a rendered page path as stale."""
        client = await self._redis_getter()
        if not client:
            logger.info(f"[PAGE_CACHE] {path} stale (no Redis configured)")
            return

        try:
            await client.delete(f"{self.key_prefix}{path}")
            await client.publish(self.channel, path)
            logger.debug(f"[PAGE_CACHE] Invalidated {path}")
        except Exception as e:
            logger.warning(f"[PAGE_CACHE] Invalidation failed for {path}: {e}")
