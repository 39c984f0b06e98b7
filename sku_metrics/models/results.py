"""
Response models for the SKU analytics endpoint.

Serialized with camelCase aliases for the dashboard
(`codRevenue`, `predictiveRto`, `manualReviewCount`, ...).
"""
from datetime import date
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DateRange(_CamelModel):
    """Inclusive local-calendar-date range"""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class OutcomeBreakdown(_CamelModel):
    """Shipment outcomes counted once per order"""

    delivered: int = 0
    rto: int = 0
    cancelled: int = 0
    in_transit: int = 0
    unknown: int = 0

    def add(self, outcome: str) -> None:
        setattr(self, outcome, getattr(self, outcome) + 1)


class SkuMetrics(_CamelModel):
    """Per-SKU rollup for the target day"""

    sku: str
    product_name: str = ""
    product_key: str = ""
    quantity: int = 0

    total_revenue: float = 0.0
    cod_revenue: float = 0.0
    prepaid_revenue: float = 0.0

    cod_orders: int = 0
    prepaid_orders: int = 0
    total_orders: int = 0

    cod_outcomes: OutcomeBreakdown = Field(default_factory=OutcomeBreakdown)
    prepaid_outcomes: OutcomeBreakdown = Field(default_factory=OutcomeBreakdown)

    ad_spend: float = 0.0
    attributed_orders: int = 0
    cac: float = 0.0

    predictive_rto: float = 0.0
    predictive_cancel: float = 0.0


class AnalyticsResult(_CamelModel):
    """Complete result of one pipeline invocation"""

    target_date: date
    day: str
    timezone: str
    rto_window: DateRange
    cancel_window: DateRange

    total_orders: int = 0
    total_revenue: float = 0.0
    total_cod_orders: int = 0
    total_prepaid_orders: int = 0
    total_cod_revenue: float = 0.0
    total_prepaid_revenue: float = 0.0
    manual_review_count: int = 0

    attributed_orders: Dict[str, int] = Field(default_factory=dict)
    skus: List[SkuMetrics] = Field(default_factory=list)
    # "ok" or "degraded" per external feed
    feeds: Dict[str, str] = Field(default_factory=dict)
