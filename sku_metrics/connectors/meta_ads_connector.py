"""
Meta (Facebook) Ads connector.
Fetches campaign-level spend from the Graph API insights endpoint.
"""
from typing import Any, Dict, List
from datetime import date
import json
import aiohttp
from sku_metrics.connectors.base_connector import BaseConnector
from sku_metrics.config import get_settings
from sku_metrics.models.records import AdCampaignSpend, spend_by_campaign
from sku_metrics.utils.logger import log

settings = get_settings()

GRAPH_API_URL = "https://graph.facebook.com"


class MetaAdsConnector(BaseConnector):
    """Connector for Meta Ads campaign spend"""

    def __init__(self, access_token: str = None, ad_account_id: str = None):
        super().__init__("MetaAds")
        self.access_token = access_token or settings.meta_access_token
        self.ad_account_id = ad_account_id or settings.meta_ad_account_id

    @property
    def account_path(self) -> str:
        account = str(self.ad_account_id or "")
        return account if account.startswith("act_") else f"act_{account}"

    async def validate_connection(self) -> bool:
        if not self.access_token or not self.ad_account_id:
            log.warning("Meta Ads token or ad account not configured, skipping")
            return False
        return True

    async def fetch_data(self, start_date: date, end_date: date) -> Dict[str, float]:
        """{campaign_name: spend} for the inclusive date range."""
        rows = await self._fetch_campaign_insights(start_date, end_date)
        spend = spend_by_campaign(rows)
        log.info(
            f"Fetched Meta spend for {len(spend)} campaigns "
            f"({start_date} to {end_date}): {sum(spend.values()):.2f}"
        )
        return spend

    async def _fetch_campaign_insights(self, start_date: date, end_date: date) -> List[AdCampaignSpend]:
        url = f"{GRAPH_API_URL}/{settings.meta_api_version}/{self.account_path}/insights"
        params: Dict[str, Any] = {
            "access_token": self.access_token,
            "level": "campaign",
            "fields": "campaign_name,spend",
            "time_range": json.dumps({"since": start_date.isoformat(), "until": end_date.isoformat()}),
            "limit": 500,
        }

        rows: List[AdCampaignSpend] = []
        async with aiohttp.ClientSession() as session:
            next_url, next_params = url, params
            while next_url:
                async with session.get(next_url, params=next_params) as response:
                    response.raise_for_status()
                    payload = await response.json()

                rows.extend(AdCampaignSpend.from_meta(row) for row in payload.get("data", []))
                # The `next` link already carries every query parameter
                next_url = (payload.get("paging") or {}).get("next")
                next_params = None

        return rows
