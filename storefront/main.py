"""
Storefront Cart API
FastAPI application entry point

- Session cart cookie provisioning
- Rate limiting with SlowAPI: RATE_LIMIT_DEFAULT everywhere, RATE_LIMIT_CART on mutations
- Error sanitization middleware
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from storefront.api import api_router
from storefront.core.config import settings
from storefront.core.cookies import SessionCartMiddleware
from storefront.core.database import engine
from storefront.core.error_handler import ErrorSanitizationMiddleware
from storefront.core.rate_limit import limiter, rate_limit_exceeded_handler
from storefront.core.redis_client import close_redis

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    yield
    await close_redis()
    await engine.dispose()
    logger.info(f"{settings.APP_NAME} shutting down")


app = FastAPI(
    title=settings.APP_NAME,
    description="Shopping cart reconciliation and pricing",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Last added runs first: sanitization wraps everything
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SessionCartMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ErrorSanitizationMiddleware)

app.include_router(api_router, prefix="/api")


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "storefront.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
