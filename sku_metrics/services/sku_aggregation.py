"""
Per-SKU revenue, order and delivery-outcome rollups for the target day.

Multi-item orders are split across their SKUs in proportion to each line's
share of the item subtotal, so the SKU revenues of an order always add up to
the order total. Order counts and shipment outcomes are counted once per
order (and payment class) per SKU, however many lines the order has.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set

from sku_metrics.models.records import Order
from sku_metrics.models.results import OutcomeBreakdown, SkuMetrics
from sku_metrics.services.order_classification import OrderClassifier, is_cod
from sku_metrics.services.predictive_rates import PredictiveRates, rates_for
from sku_metrics.services.product_attribution import attribute_order, normalize_product_name
from sku_metrics.services.shipment_status import ShipmentIndex, outcome_for
from sku_metrics.utils.logger import log


@dataclass
class _SkuBucket:
    sku: str
    product_name: str = ""
    quantity: int = 0
    total_revenue: float = 0.0
    cod_revenue: float = 0.0
    prepaid_revenue: float = 0.0
    cod_order_ids: Set[str] = field(default_factory=set)
    prepaid_order_ids: Set[str] = field(default_factory=set)
    cod_outcomes: OutcomeBreakdown = field(default_factory=OutcomeBreakdown)
    prepaid_outcomes: OutcomeBreakdown = field(default_factory=OutcomeBreakdown)

    def add_line(self, order: Order, revenue: float, quantity: int, cod: bool, outcome: str) -> None:
        self.quantity += quantity
        self.total_revenue += revenue
        if cod:
            self.cod_revenue += revenue
            if order.id not in self.cod_order_ids:
                self.cod_order_ids.add(order.id)
                self.cod_outcomes.add(outcome)
        else:
            self.prepaid_revenue += revenue
            if order.id not in self.prepaid_order_ids:
                self.prepaid_order_ids.add(order.id)
                self.prepaid_outcomes.add(outcome)

    def to_metrics(self, rates: PredictiveRates) -> SkuMetrics:
        cod_orders = len(self.cod_order_ids)
        prepaid_orders = len(self.prepaid_order_ids)
        return SkuMetrics(
            sku=self.sku,
            product_name=self.product_name,
            product_key=normalize_product_name(self.product_name),
            quantity=self.quantity,
            total_revenue=self.total_revenue,
            cod_revenue=self.cod_revenue,
            prepaid_revenue=self.prepaid_revenue,
            cod_orders=cod_orders,
            prepaid_orders=prepaid_orders,
            total_orders=cod_orders + prepaid_orders,
            cod_outcomes=self.cod_outcomes,
            prepaid_outcomes=self.prepaid_outcomes,
            predictive_rto=rates.predictive_rto,
            predictive_cancel=rates.predictive_cancel,
        )


@dataclass
class SkuAggregation:
    """Output of one aggregation pass over the target-day orders"""

    skus: List[SkuMetrics]
    totals: OrderClassifier
    manual_review_count: int = 0
    attributed_orders: Dict[str, int] = field(default_factory=dict)


def split_order_revenue(order: Order) -> List[float]:
    """
    Order total allocated to each line item, proportional to price x quantity.

    An order whose items sum to zero is divided by 1 instead, so no division
    by zero happens (its lines then carry 0 revenue).
    """
    items_total = order.items_total or 1.0
    return [order.total_price * (item.subtotal / items_total) for item in order.line_items]


class SkuAggregator:
    """Rolls target-day orders up into per-SKU metrics."""

    def __init__(
        self,
        attribute: Callable[[Order], Optional[str]] = attribute_order,
        classifier_factory: Callable[[], OrderClassifier] = OrderClassifier,
    ):
        self.attribute = attribute
        self.classifier_factory = classifier_factory

    def aggregate(
        self,
        orders: Iterable[Order],
        shipments: ShipmentIndex,
        rates: Optional[Dict[str, PredictiveRates]] = None,
        attribution: Optional[Mapping[str, Optional[str]]] = None,
    ) -> SkuAggregation:
        """
        ``attribution`` is an optional precomputed {order_id: product_key};
        orders missing from it are attributed with ``self.attribute``.
        """
        rates = rates or {}
        totals = self.classifier_factory()
        buckets: Dict[str, _SkuBucket] = {}
        attributed: Dict[str, int] = defaultdict(int)
        manual_review = 0

        for order in orders:
            # A repeated order id contributes nothing the second time
            if not totals.record(order):
                continue

            if attribution is not None and order.id in attribution:
                product = attribution[order.id]
            else:
                product = self.attribute(order)
            if product:
                attributed[product] += 1
            else:
                manual_review += 1

            cod = is_cod(order)
            outcome = outcome_for(shipments.status(order.order_number))

            for item, revenue in zip(order.line_items, split_order_revenue(order)):
                bucket = buckets.get(item.sku)
                if bucket is None:
                    bucket = buckets[item.sku] = _SkuBucket(sku=item.sku, product_name=item.title)
                bucket.add_line(order, revenue, item.quantity, cod, outcome)

        skus = [
            bucket.to_metrics(rates_for(rates, normalize_product_name(bucket.product_name)))
            for bucket in buckets.values()
        ]
        skus.sort(key=lambda s: s.total_revenue, reverse=True)

        log.info(
            f"SKU aggregation: {totals.total_orders} orders "
            f"({totals.cod_orders} COD / {totals.prepaid_orders} prepaid), "
            f"{len(skus)} SKUs, {manual_review} orders need manual review"
        )

        return SkuAggregation(
            skus=skus,
            totals=totals,
            manual_review_count=manual_review,
            attributed_orders=dict(attributed),
        )
