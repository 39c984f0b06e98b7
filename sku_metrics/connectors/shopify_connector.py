"""
Shopify order connector
Fetches the most recent orders (any status) for the SKU pipeline
"""
from typing import Any, Dict, List
from datetime import date
import asyncio
import shopify
from pyactiveresource.connection import UnauthorizedAccess
from sku_metrics.connectors.base_connector import BaseConnector
from sku_metrics.connectors.exceptions import CommerceNotAuthorizedError, OrderFeedError
from sku_metrics.config import get_settings
from sku_metrics.utils.logger import log

settings = get_settings()


class ShopifyOrdersConnector(BaseConnector):
    """Connector for Shopify orders"""

    def __init__(self, access_token: str = None):
        super().__init__("Shopify")
        self.access_token = access_token or settings.shopify_access_token

    async def validate_connection(self) -> bool:
        return bool(self.access_token)

    async def fetch_data(self, start_date: date, end_date: date) -> List[Dict[str, Any]]:
        return await self.fetch_orders()

    async def fetch_orders(self) -> List[Dict[str, Any]]:
        """
        Fetch up to `shopify_order_limit` most recent orders of any status.

        Raises:
            CommerceNotAuthorizedError: no access token, or Shopify rejected it
            OrderFeedError: any other failure after retries
        """
        if not self.access_token:
            raise CommerceNotAuthorizedError("Not authenticated with Shopify")

        try:
            orders = await self._retry_operation(
                lambda: asyncio.to_thread(self._fetch_recent_orders),
                operation_name="fetch_orders",
            )
        except CommerceNotAuthorizedError:
            raise
        except Exception as e:
            log.error(f"Error fetching Shopify orders: {str(e)}")
            raise OrderFeedError(f"Failed to fetch Shopify orders: {e}") from e

        log.info(f"Fetched {len(orders)} Shopify orders from {settings.shopify_shop_url}")
        return orders

    def _fetch_recent_orders(self) -> List[Dict[str, Any]]:
        """Blocking SDK call; run in a worker thread."""
        session = shopify.Session(
            settings.shopify_shop_url,
            settings.shopify_api_version,
            self.access_token
        )
        shopify.ShopifyResource.activate_session(session)
        try:
            orders = shopify.Order.find(
                status='any',  # open, closed and cancelled
                limit=settings.shopify_order_limit
            )
            return [order.to_dict() for order in orders]
        except UnauthorizedAccess as e:
            raise CommerceNotAuthorizedError("Shopify rejected the access token") from e
        finally:
            shopify.ShopifyResource.clear_session()
