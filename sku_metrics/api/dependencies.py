"""
Shared dependencies for API routers
"""
from functools import lru_cache

from sku_metrics.connectors.meta_ads_connector import MetaAdsConnector
from sku_metrics.connectors.shiprocket_connector import ShiprocketConnector, ShiprocketTokenProvider
from sku_metrics.connectors.shopify_connector import ShopifyOrdersConnector
from sku_metrics.services.sku_pipeline import SkuAnalyticsService


@lru_cache()
def get_shiprocket_token_provider() -> ShiprocketTokenProvider:
    """One token cache per process"""
    return ShiprocketTokenProvider()


def get_shiprocket_connector() -> ShiprocketConnector:
    return ShiprocketConnector(get_shiprocket_token_provider())


def get_analytics_service() -> SkuAnalyticsService:
    return SkuAnalyticsService(
        orders_connector=ShopifyOrdersConnector(),
        shipments_connector=get_shiprocket_connector(),
        ads_connector=MetaAdsConnector(),
    )
