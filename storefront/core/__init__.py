from storefront.core.config import settings
from storefront.core.database import get_db, Base

__all__ = ["settings", "get_db", "Base"]
