"""
Shiprocket connector.
Fetches shipment status, status codes and pickup timestamps from the
Shiprocket external API (v1).

Auth: email/password login returns a bearer token valid for 10 days.
The token lives in `ShiprocketTokenProvider`, which refreshes it on expiry.
"""
from typing import Any, Dict, List, Optional
from datetime import date, datetime, timedelta
import asyncio
import aiohttp
import pytz
from sku_metrics.connectors.base_connector import BaseConnector
from sku_metrics.config import get_settings
from sku_metrics.models.records import ShipmentRecord
from sku_metrics.utils.logger import log

settings = get_settings()


class ShiprocketTokenProvider:
    """Caches the Shiprocket session token until it expires."""

    def __init__(
        self,
        email: Optional[str] = None,
        password: Optional[str] = None,
        base_url: Optional[str] = None,
        ttl: Optional[timedelta] = None,
    ):
        self.email = email or settings.shiprocket_email
        self.password = password or settings.shiprocket_password
        self.base_url = (base_url or settings.shiprocket_api_base_url).rstrip("/")
        self.ttl = ttl or timedelta(days=settings.shiprocket_token_ttl_days)
        self._token: Optional[str] = None
        self._expires_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.email and self.password)

    def _is_valid(self) -> bool:
        return bool(self._token and self._expires_at and datetime.utcnow() < self._expires_at)

    async def get_valid_token(self) -> Optional[str]:
        """
        Return a cached token, logging in again when it has expired.

        Returns None when credentials are missing or login fails.
        """
        if self._is_valid():
            return self._token
        if not self.configured:
            return None

        async with self._lock:
            # Another task may have refreshed while we waited
            if self._is_valid():
                return self._token
            try:
                async with aiohttp.ClientSession() as session:
                    async with session.post(
                        f"{self.base_url}/auth/login",
                        json={"email": self.email, "password": self.password},
                    ) as response:
                        if response.status != 200:
                            body = await response.text()
                            log.error(f"Shiprocket auth error ({response.status}): {body[:200]}")
                            return None
                        data = await response.json()
            except aiohttp.ClientError as e:
                log.error(f"Shiprocket auth error: {e}")
                return None

            token = data.get("token")
            if not token:
                log.error("Shiprocket auth response had no token")
                return None

            self._token = token
            self._expires_at = datetime.utcnow() + self.ttl
            log.info("Shiprocket authenticated")
            return self._token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = None


class ShiprocketConnector(BaseConnector):
    """Connector for Shiprocket shipment status data."""

    # Date filter styles accepted by the /orders endpoint
    DATE_FILTER_PARAMS = {
        "filter_by_date": lambda start, end: {"filter_by_date": "1", "from_date": start, "to_date": end},
        "created_from/to": lambda start, end: {"created_from": start, "created_to": end},
        "pickup_from/to": lambda start, end: {"pickup_from": start, "pickup_to": end},
    }

    def __init__(self, token_provider: Optional[ShiprocketTokenProvider] = None):
        super().__init__("Shiprocket")
        self.token_provider = token_provider or ShiprocketTokenProvider()
        self.base_url = settings.shiprocket_api_base_url.rstrip("/")
        self.local_tz = pytz.timezone(settings.report_timezone)

    async def _headers(self) -> Optional[Dict[str, str]]:
        token = await self.token_provider.get_valid_token()
        if not token:
            return None
        return {"Authorization": f"Bearer {token}", "Accept": "application/json"}

    async def validate_connection(self) -> bool:
        if not self.token_provider.configured:
            log.warning("Shiprocket credentials not configured, skipping")
            return False
        return await self._headers() is not None

    async def fetch_data(self, start_date: date, end_date: date) -> List[ShipmentRecord]:
        """Shipment records for orders in [start_date, end_date]."""
        raw_orders = await self._fetch_orders({
            "from": start_date.isoformat(),
            "to": end_date.isoformat(),
        })

        records = []
        for raw in raw_orders:
            record = ShipmentRecord.from_shiprocket(raw, self.local_tz)
            if record.order_reference:
                records.append(record)

        log.info(f"Fetched {len(records)} Shiprocket shipments for {start_date} to {end_date}")
        return records

    async def _fetch_orders(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        headers = await self._headers()
        if headers is None:
            raise ConnectionError("No Shiprocket token")

        orders: List[Dict[str, Any]] = []
        async with aiohttp.ClientSession() as session:
            for page in range(1, settings.shiprocket_max_pages + 1):
                query = {**params, "per_page": settings.shiprocket_per_page, "page": page}
                async with session.get(f"{self.base_url}/orders", headers=headers, params=query) as response:
                    if response.status == 401:
                        # Token revoked server-side; force a fresh login next time
                        self.token_provider.invalidate()
                    response.raise_for_status()
                    payload = await response.json()

                batch = payload.get("data") or []
                orders.extend(o for o in batch if isinstance(o, dict))
                if len(batch) < settings.shiprocket_per_page:
                    break

        return orders

    async def check_date_filters(self, start_date: date, end_date: date) -> List[Dict[str, Any]]:
        """
        Try each date filter style against /orders and report what happens.

        Used to find out which filter the account's API version honours.
        """
        headers = await self._headers()
        if headers is None:
            raise ConnectionError("No Shiprocket token")

        start, end = start_date.isoformat(), end_date.isoformat()
        tests = []
        async with aiohttp.ClientSession() as session:
            for name, build in self.DATE_FILTER_PARAMS.items():
                params = {"per_page": 50, **build(start, end)}
                try:
                    async with session.get(f"{self.base_url}/orders", headers=headers, params=params) as response:
                        payload = await response.json(content_type=None)
                        if response.status != 200:
                            message = payload.get("message") if isinstance(payload, dict) else None
                            tests.append({"name": name, "success": False, "error": message or f"HTTP {response.status}"})
                            continue
                    tests.append({"name": name, "success": True, "count": len(payload.get("data") or [])})
                except (aiohttp.ClientError, ValueError) as e:
                    tests.append({"name": name, "success": False, "error": str(e)})
        return tests
