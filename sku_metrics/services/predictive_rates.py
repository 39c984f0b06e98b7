"""
Predictive RTO and cancellation rates per product.

Both rates are retrospective: they measure how recent cohorts of the same
product turned out and are used as the forecast for today's orders.

- RTO cohort: COD orders whose shipment was picked up inside the RTO window.
  Rate = share of those that are not delivered (yet).
- Cancellation cohort: all orders created inside the cancellation window.
  Rate = share whose shipment is cancelled.
  An order with no shipment record at all counts as cancelled when the
  commerce side carries a `cancelled_at` timestamp.

A product with an empty cohort gets 0 for that rate.
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Optional

from sku_metrics.models.records import Order
from sku_metrics.services.date_windows import DateWindows
from sku_metrics.services.order_classification import is_cod
from sku_metrics.services.product_attribution import attribute_order
from sku_metrics.services.shipment_status import CANCELLED, DELIVERED, ShipmentIndex
from sku_metrics.utils.helpers import safe_divide
from sku_metrics.utils.logger import log


@dataclass
class CohortCounts:
    rto_total: int = 0
    rto_not_delivered: int = 0
    cancel_total: int = 0
    cancel_cancelled: int = 0

    @property
    def predictive_rto(self) -> float:
        return 100.0 * safe_divide(self.rto_not_delivered, self.rto_total)

    @property
    def predictive_cancel(self) -> float:
        return 100.0 * safe_divide(self.cancel_cancelled, self.cancel_total)


@dataclass(frozen=True)
class PredictiveRates:
    predictive_rto: float = 0.0
    predictive_cancel: float = 0.0


NO_RATES = PredictiveRates()


def _is_cancelled(order: Order, status: Optional[str]) -> bool:
    if status is not None:
        return status == CANCELLED
    return order.cancelled_at is not None


class PredictiveRateCalculator:
    """Builds per-product cohort counters from the historical order set."""

    def __init__(self, attribute: Callable[[Order], Optional[str]] = attribute_order):
        self.attribute = attribute

    def count_cohorts(
        self,
        orders: Iterable[Order],
        shipments: ShipmentIndex,
        windows: DateWindows,
        attribution: Optional[Mapping[str, Optional[str]]] = None,
    ) -> Dict[str, CohortCounts]:
        counts: Dict[str, CohortCounts] = defaultdict(CohortCounts)
        seen = set()

        for order in orders:
            if order.id in seen:
                continue
            seen.add(order.id)

            if attribution is not None and order.id in attribution:
                product = attribution[order.id]
            else:
                product = self.attribute(order)
            if not product:
                continue

            status = shipments.status(order.order_number)

            if is_cod(order):
                record = shipments.record(order.order_number)
                if record is not None and windows.in_rto_window(record.pickup_at):
                    cohort = counts[product]
                    cohort.rto_total += 1
                    if status != DELIVERED:
                        cohort.rto_not_delivered += 1

            if windows.in_cancel_window(order.created_at):
                cohort = counts[product]
                cohort.cancel_total += 1
                if _is_cancelled(order, status):
                    cohort.cancel_cancelled += 1

        return dict(counts)

    def calculate(
        self,
        orders: Iterable[Order],
        shipments: ShipmentIndex,
        windows: DateWindows,
        attribution: Optional[Mapping[str, Optional[str]]] = None,
    ) -> Dict[str, PredictiveRates]:
        """{product_key: PredictiveRates} for every product with a non-empty cohort."""
        counts = self.count_cohorts(orders, shipments, windows, attribution)

        rates = {
            product: PredictiveRates(
                predictive_rto=cohort.predictive_rto,
                predictive_cancel=cohort.predictive_cancel,
            )
            for product, cohort in counts.items()
        }

        log.info(
            f"Predictive rates: {len(rates)} products, "
            f"{sum(c.rto_total for c in counts.values())} orders in RTO cohort "
            f"({windows.rto_window.start} to {windows.rto_window.end}), "
            f"{sum(c.cancel_total for c in counts.values())} in cancellation cohort "
            f"({windows.cancel_window.start} to {windows.cancel_window.end})"
        )
        return rates


def rates_for(rates: Dict[str, PredictiveRates], product_key: str) -> PredictiveRates:
    return rates.get(product_key, NO_RATES)
