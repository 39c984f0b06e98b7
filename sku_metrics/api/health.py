"""
Health check and status endpoints
"""
from fastapi import APIRouter
from fastapi.responses import HTMLResponse
from datetime import datetime
from sku_metrics.config import get_settings
from sku_metrics import __version__

settings = get_settings()

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def root():
    return "<h1>Backend Running</h1>"


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status():
    """Which integrations are configured"""
    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "integrations": {
            "shopify": bool(settings.shopify_access_token),
            "shiprocket": bool(settings.shiprocket_email and settings.shiprocket_password),
            "meta_ads": bool(settings.meta_access_token and settings.meta_ad_account_id),
        },
        "timezone": settings.report_timezone,
        "timestamp": datetime.utcnow().isoformat()
    }
