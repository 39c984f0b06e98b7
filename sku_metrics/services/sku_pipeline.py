"""
SKU Performance Pipeline

Composes the analytics stages over one batch of orders:

    DateWindows -> ProductAttributor -> target-day filter -> [PredictiveRateCalculator]
                -> SkuAggregator -> [AdSpendMatcher] -> AnalyticsResult

Stages in brackets are optional; leaving one out keeps its fields at zero.
Orders are attributed once per run and both the rate and SKU stages read
that attribution.
`SkuAnalyticsService` adds the async fetch step in front of the pipeline.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from sku_metrics.config import get_settings
from sku_metrics.connectors.exceptions import OrderFeedError
from sku_metrics.models.records import Order, ShipmentRecord
from sku_metrics.models.results import AnalyticsResult
from sku_metrics.services.ad_spend_matching import AdSpendMatcher
from sku_metrics.services.date_windows import DateWindows, resolve_date_windows
from sku_metrics.services.order_classification import OrderClassifier
from sku_metrics.services.predictive_rates import PredictiveRateCalculator
from sku_metrics.services.product_attribution import ProductAttributor
from sku_metrics.services.shipment_status import ShipmentIndex
from sku_metrics.services.sku_aggregation import SkuAggregator
from sku_metrics.utils.logger import log

settings = get_settings()

FEED_OK = "ok"
FEED_DEGRADED = "degraded"


@dataclass
class AnalyticsInput:
    """Everything the pipeline needs, already fetched"""

    orders: List[Order]
    windows: DateWindows
    shipments: ShipmentIndex = field(default_factory=ShipmentIndex)
    ad_spend: Mapping[str, float] = field(default_factory=dict)
    feeds: Dict[str, str] = field(default_factory=dict)


class SkuPerformancePipeline:
    """
    Synchronous, side-effect free analytics over one order batch.

    Usage:
        pipeline = SkuPerformancePipeline(
            rate_calculator=PredictiveRateCalculator(),
            ad_spend_matcher=AdSpendMatcher(),
        )
        result = pipeline.run(AnalyticsInput(orders, windows, shipments, spend))
    """

    def __init__(
        self,
        attributor: Optional[ProductAttributor] = None,
        classifier_factory: Callable[[], OrderClassifier] = OrderClassifier,
        rate_calculator: Optional[PredictiveRateCalculator] = None,
        ad_spend_matcher: Optional[AdSpendMatcher] = None,
    ):
        self.attributor = attributor or ProductAttributor()
        self.aggregator = SkuAggregator(self.attributor, classifier_factory)
        self.rate_calculator = rate_calculator
        self.ad_spend_matcher = ad_spend_matcher

    def run(self, data: AnalyticsInput) -> AnalyticsResult:
        windows = data.windows
        target_orders = [o for o in data.orders if windows.is_target(o.created_at)]
        log.info(
            f"SKU pipeline for {windows.target_date} ({windows.day}): "
            f"{len(target_orders)} of {len(data.orders)} orders on target date"
        )

        attribution = self.attributor.attribute_batch(data.orders)

        rates = {}
        if self.rate_calculator is not None:
            rates = self.rate_calculator.calculate(
                data.orders, data.shipments, windows, attribution=attribution
            )

        aggregation = self.aggregator.aggregate(
            target_orders, data.shipments, rates, attribution=attribution
        )

        if self.ad_spend_matcher is not None:
            self.ad_spend_matcher.apply(
                aggregation.skus, data.ad_spend, aggregation.attributed_orders
            )

        totals = aggregation.totals
        return AnalyticsResult(
            target_date=windows.target_date,
            day=windows.day,
            timezone=windows.timezone,
            rto_window=windows.rto_window,
            cancel_window=windows.cancel_window,
            total_orders=totals.total_orders,
            total_revenue=totals.total_revenue,
            total_cod_orders=totals.cod_orders,
            total_prepaid_orders=totals.prepaid_orders,
            total_cod_revenue=totals.cod_revenue,
            total_prepaid_revenue=totals.prepaid_revenue,
            manual_review_count=aggregation.manual_review_count,
            attributed_orders=aggregation.attributed_orders,
            skus=aggregation.skus,
            feeds=dict(data.feeds),
        )


def parse_orders(raw_orders: List[Dict[str, Any]]) -> List[Order]:
    """Validate raw Shopify orders, skipping (and logging) unusable ones."""
    orders = []
    for raw in raw_orders:
        try:
            orders.append(Order.from_shopify(raw))
        except ValueError as e:
            log.warning(f"Skipping malformed order {raw.get('id')}: {e}")
    return orders


class SkuAnalyticsService:
    """
    Fetches the three feeds concurrently and runs the pipeline.

    The order feed is mandatory; shipments and ad spend degrade to empty
    data when their source is unavailable.
    """

    def __init__(self, orders_connector, shipments_connector, ads_connector, pipeline=None):
        self.orders_connector = orders_connector
        self.shipments_connector = shipments_connector
        self.ads_connector = ads_connector
        self.pipeline = pipeline or SkuPerformancePipeline(
            rate_calculator=PredictiveRateCalculator(),
            ad_spend_matcher=AdSpendMatcher(),
        )

    async def compute(self, day: str = "today", now: Optional[datetime] = None) -> AnalyticsResult:
        windows = resolve_date_windows(day, now=now)
        target = windows.target_date
        feeds: Dict[str, str] = {}

        orders_task = self._fetch_orders()
        ads_task = self._optional_feed("ad_spend", self.ads_connector, target, target, {})
        shipment_tasks = [
            self._optional_feed("shipments_rto_window", self.shipments_connector,
                                windows.rto_window.start, windows.rto_window.end, []),
            self._optional_feed("shipments_cancel_window", self.shipments_connector,
                                windows.cancel_window.start, windows.cancel_window.end, []),
            self._optional_feed("shipments_target_date", self.shipments_connector,
                                target, target, []),
        ]

        raw_orders, (ad_spend, ads_ok), *shipment_results = await asyncio.gather(
            orders_task, ads_task, *shipment_tasks
        )

        feeds["orders"] = FEED_OK
        feeds["ad_spend"] = FEED_OK if ads_ok else FEED_DEGRADED
        records: List[ShipmentRecord] = []
        shipments_ok = True
        for window_records, ok in shipment_results:
            records.extend(window_records)
            shipments_ok = shipments_ok and ok
        feeds["shipments"] = FEED_OK if shipments_ok else FEED_DEGRADED

        data = AnalyticsInput(
            orders=parse_orders(raw_orders),
            windows=windows,
            shipments=ShipmentIndex.from_records(records),
            ad_spend=ad_spend,
            feeds=feeds,
        )
        return self.pipeline.run(data)

    async def _fetch_orders(self) -> List[Dict[str, Any]]:
        """Primary feed: failures are fatal for the request."""
        try:
            return await asyncio.wait_for(
                self.orders_connector.fetch_orders(),
                timeout=settings.feed_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            log.error("Order feed timed out")
            raise OrderFeedError("Timed out fetching orders") from e

    async def _optional_feed(self, name, connector, start, end, empty):
        """Run connector.sync(); on failure or timeout return (empty, False)."""
        try:
            result = await asyncio.wait_for(
                connector.sync(start, end),
                timeout=settings.feed_timeout_seconds,
            )
        except asyncio.TimeoutError:
            log.warning(f"{name} feed timed out, continuing without it")
            return empty, False

        if not result["success"]:
            log.warning(f"{name} feed unavailable ({result['error']}), continuing without it")
            return empty, False
        return result["data"], True
