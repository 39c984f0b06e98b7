"""
Configuration management for the SKU metrics service
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "SKU Metrics"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_to_file: bool = False
    log_dir: str = "logs"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # Shopify
    shopify_shop_url: str = "mummamitra.myshopify.com"
    shopify_access_token: Optional[str] = None
    shopify_api_version: str = "2024-01"
    shopify_order_limit: int = 250  # Max allowed by Shopify per page

    # Shiprocket
    shiprocket_email: Optional[str] = None
    shiprocket_password: Optional[str] = None
    shiprocket_api_base_url: str = "https://apiv2.shiprocket.in/v1/external"
    shiprocket_token_ttl_days: int = 10
    shiprocket_per_page: int = 100
    shiprocket_max_pages: int = 5

    # Meta Ads
    meta_access_token: Optional[str] = None
    meta_ad_account_id: Optional[str] = None
    meta_api_version: str = "v19.0"

    # Reporting
    report_timezone: str = "Asia/Kolkata"
    # Day offsets relative to the target date (inclusive bounds)
    rto_window_start_days: int = 14
    rto_window_end_days: int = 7
    cancel_window_start_days: int = 7
    cancel_window_end_days: int = 1

    # Per-feed timeout for the three external fetches
    feed_timeout_seconds: float = 30.0

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
