"""
Connector plumbing tests: retry behaviour, token caching, config guards.

No network access: only the paths that short-circuit before any HTTP call.
"""
import asyncio
from datetime import date, datetime, timedelta

import pytest

from sku_metrics.connectors.base_connector import BaseConnector
from sku_metrics.connectors.exceptions import CommerceNotAuthorizedError
from sku_metrics.connectors.meta_ads_connector import MetaAdsConnector
from sku_metrics.connectors.shiprocket_connector import ShiprocketConnector, ShiprocketTokenProvider
from sku_metrics.connectors.shopify_connector import ShopifyOrdersConnector
from sku_metrics.utils.retry import calculate_backoff, is_retryable_error


def _run(coro):
    return asyncio.run(coro)


class FlakyConnector(BaseConnector):
    RETRY_BASE_DELAY = 0.0
    RETRY_MAX_DELAY = 0.0

    def __init__(self, failures, error=ConnectionError("connection reset")):
        super().__init__("Flaky")
        self.failures = failures
        self.error = error
        self.calls = 0

    async def validate_connection(self) -> bool:
        return True

    async def fetch_data(self, start_date, end_date):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return ["ok"]


# ---------------------------------------------------------------------------
# BaseConnector.sync
# ---------------------------------------------------------------------------

def test_sync_retries_transient_errors():
    connector = FlakyConnector(failures=2)
    result = _run(connector.sync(date(2024, 3, 1), date(2024, 3, 8)))
    assert result["success"] is True
    assert result["data"] == ["ok"]
    assert result["retry_stats"]["retries"] == 2
    assert connector.retry_count == 2


def test_sync_reports_failure_instead_of_raising():
    connector = FlakyConnector(failures=5)
    result = _run(connector.sync(date(2024, 3, 1), date(2024, 3, 8)))
    assert result["success"] is False
    assert "connection reset" in result["error"]
    assert connector.calls == FlakyConnector.RETRY_MAX_ATTEMPTS
    assert connector.get_status()["error_count"] == 1


def test_sync_does_not_retry_permanent_errors():
    connector = FlakyConnector(failures=5, error=KeyError("data"))
    result = _run(connector.sync(date(2024, 3, 1), date(2024, 3, 8)))
    assert result["success"] is False
    assert connector.calls == 1


# ---------------------------------------------------------------------------
# Retry helpers
# ---------------------------------------------------------------------------

def test_backoff_grows_and_caps():
    assert calculate_backoff(1, base_delay=1.0, jitter=False) == 1.0
    assert calculate_backoff(3, base_delay=1.0, jitter=False) == 4.0
    assert calculate_backoff(10, base_delay=1.0, max_delay=5.0, jitter=False) == 5.0
    assert 8.0 <= calculate_backoff(4, base_delay=1.0) <= 10.0


def test_retryable_errors():
    assert is_retryable_error(TimeoutError())
    assert is_retryable_error(RuntimeError("429 Too Many Requests"))
    assert not is_retryable_error(ValueError("bad payload"))
    assert not is_retryable_error(CommerceNotAuthorizedError("Not authenticated"))


# ---------------------------------------------------------------------------
# Shiprocket token provider
# ---------------------------------------------------------------------------

def test_token_provider_without_credentials_returns_none():
    provider = ShiprocketTokenProvider(email="", password="")
    provider.email = provider.password = None
    assert _run(provider.get_valid_token()) is None
    assert not _run(ShiprocketConnector(provider).validate_connection())


def test_token_provider_reuses_unexpired_token():
    provider = ShiprocketTokenProvider(email="ops@example.com", password="secret")
    provider._token = "cached"
    provider._expires_at = datetime.utcnow() + timedelta(days=1)
    assert _run(provider.get_valid_token()) == "cached"


def test_token_provider_invalidate():
    provider = ShiprocketTokenProvider(email="ops@example.com", password="secret")
    provider._token = "cached"
    provider._expires_at = datetime.utcnow() + timedelta(days=1)
    provider.invalidate()
    assert not provider._is_valid()


def test_expired_token_is_not_valid():
    provider = ShiprocketTokenProvider(email="ops@example.com", password="secret")
    provider._token = "old"
    provider._expires_at = datetime.utcnow() - timedelta(seconds=1)
    assert not provider._is_valid()


# ---------------------------------------------------------------------------
# Shopify / Meta guards
# ---------------------------------------------------------------------------

def test_shopify_without_token_is_not_authorized():
    connector = ShopifyOrdersConnector()
    connector.access_token = None
    with pytest.raises(CommerceNotAuthorizedError):
        _run(connector.fetch_orders())


def test_meta_without_credentials_degrades():
    connector = MetaAdsConnector()
    connector.access_token = None
    result = _run(connector.sync(date(2024, 3, 15), date(2024, 3, 15)))
    assert result["success"] is False


def test_meta_account_path():
    assert MetaAdsConnector(access_token="t", ad_account_id="123").account_path == "act_123"
    assert MetaAdsConnector(access_token="t", ad_account_id="act_123").account_path == "act_123"
