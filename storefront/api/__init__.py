from storefront.api.routes import api_router

__all__ = ["api_router"]
