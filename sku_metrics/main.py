"""
SKU Metrics
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from sku_metrics.config import get_settings
from sku_metrics.utils.logger import log
from sku_metrics import __version__

from sku_metrics.api import analytics, debug, health

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}, store: {settings.shopify_shop_url}")
    if not settings.shopify_access_token:
        log.warning("SHOPIFY_ACCESS_TOKEN not set, analytics requests will fail until authorized")

    yield

    log.info("Shutting down application")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    Per-SKU performance analytics

    Reconciles Shopify orders with Shiprocket shipment statuses and Meta Ads
    spend to produce, for today or yesterday:
    - COD / prepaid revenue and order counts per SKU
    - Delivery outcome breakdown (delivered, RTO, cancelled, in transit)
    - Ad spend and CAC per product
    - Predictive RTO and cancellation rates from recent cohorts
    """,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(analytics.router)
app.include_router(debug.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sku_metrics.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_config=None,  # keep the loguru bridge from utils.logger
    )
