"""Typed records for the SKU metrics pipeline"""

from sku_metrics.models.records import (
    UNKNOWN_SKU,
    LineItem,
    Order,
    ShipmentRecord,
    AdCampaignSpend,
)

from sku_metrics.models.results import (
    DateRange,
    OutcomeBreakdown,
    SkuMetrics,
    AnalyticsResult,
)

__all__ = [
    "UNKNOWN_SKU",
    "LineItem",
    "Order",
    "ShipmentRecord",
    "AdCampaignSpend",
    "DateRange",
    "OutcomeBreakdown",
    "SkuMetrics",
    "AnalyticsResult",
]
