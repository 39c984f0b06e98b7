"""
Payment-method classification and per-batch order de-duplication.
"""
from typing import Set

from sku_metrics.models.records import Order

COD_MARKERS = ("cod", "cash on delivery")

PAYMENT_COD = "cod"
PAYMENT_PREPAID = "prepaid"


def is_cod(order: Order) -> bool:
    """True if any payment gateway name mentions COD / cash on delivery."""
    for gateway in order.payment_gateway_names:
        name = gateway.lower()
        if any(marker in name for marker in COD_MARKERS):
            return True
    return False


def payment_class(order: Order) -> str:
    return PAYMENT_COD if is_cod(order) else PAYMENT_PREPAID


class OrderClassifier:
    """
    Batch-scoped COD / prepaid totals.

    The same order id may appear more than once in a batch; it is counted
    only the first time, and callers skip the repeat when record() is False.
    Create one instance per pipeline run.
    """

    def __init__(self):
        self._seen: Set[str] = set()
        self.cod_orders = 0
        self.prepaid_orders = 0
        self.cod_revenue = 0.0
        self.prepaid_revenue = 0.0

    def record(self, order: Order) -> bool:
        """
        Count ``order`` towards its payment class.

        Returns True if this call counted it, False if it was already seen.
        """
        if order.id in self._seen:
            return False
        self._seen.add(order.id)

        if is_cod(order):
            self.cod_orders += 1
            self.cod_revenue += order.total_price
        else:
            self.prepaid_orders += 1
            self.prepaid_revenue += order.total_price
        return True

    @property
    def total_orders(self) -> int:
        return self.cod_orders + self.prepaid_orders

    @property
    def total_revenue(self) -> float:
        return self.cod_revenue + self.prepaid_revenue
