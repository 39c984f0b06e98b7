"""
Coarse shipment status classification and the order-number -> shipment index.

Shiprocket reports either a numeric `status_code` or a free-text `status`
(and sometimes both). Both are folded into five coarse classes.
"""
from typing import Dict, Iterable, Mapping, Optional, Union

from sku_metrics.models.records import ShipmentRecord
from sku_metrics.utils.helpers import strip_order_prefix

DELIVERED = "delivered"
CANCELLED = "cancelled"
RTO = "rto"
IN_TRANSIT = "in_transit"
PENDING = "pending"

COARSE_STATUSES = (DELIVERED, CANCELLED, RTO, IN_TRANSIT, PENDING)

# SKU outcome buckets; pending and missing shipments count as unknown
OUTCOME_UNKNOWN = "unknown"

STATUS_CODES: Dict[int, str] = {
    7: DELIVERED,
    8: CANCELLED,     # Canceled
    16: CANCELLED,    # Cancellation requested
    45: CANCELLED,    # Cancelled before dispatch
    9: RTO,           # RTO initiated
    10: RTO,          # RTO delivered
    14: RTO,          # RTO acknowledged
    40: RTO,          # RTO NDR
    41: RTO,          # RTO out for delivery
    46: RTO,          # RTO in transit
    6: IN_TRANSIT,    # Shipped
    17: IN_TRANSIT,   # Out for delivery
    18: IN_TRANSIT,   # In transit
    19: IN_TRANSIT,   # Out for pickup
    22: IN_TRANSIT,   # Delayed
    38: IN_TRANSIT,   # Reached destination hub
    42: IN_TRANSIT,   # Picked up
}

_TRANSIT_WORDS = ("transit", "shipped", "out for", "picked up", "dispatched")


def classify_status_text(status: Optional[str]) -> Optional[str]:
    """Map free-text status to a coarse class, or None if it says nothing."""
    if not status:
        return None
    text = status.strip().lower().replace("_", " ")
    if text in COARSE_STATUSES:
        return text
    if text == "in transit":
        return IN_TRANSIT
    if "cancel" in text:
        return CANCELLED
    if "rto" in text or "return" in text:
        return RTO
    if any(word in text for word in _TRANSIT_WORDS):
        return IN_TRANSIT
    return None


def classify_shipment(record: ShipmentRecord) -> str:
    """Coarse status of a shipment; provider code wins over text."""
    if record.status_code is not None and record.status_code in STATUS_CODES:
        return STATUS_CODES[record.status_code]
    return classify_status_text(record.status) or PENDING


def outcome_for(status: Optional[str]) -> str:
    """SKU breakdown bucket for a coarse status (None = no shipment found)."""
    if status in (DELIVERED, RTO, CANCELLED, IN_TRANSIT):
        return status
    return OUTCOME_UNKNOWN


class ShipmentIndex:
    """
    Shipment lookup by order number (display name without '#').

    Build it from raw records (keeps pickup dates, needed for the RTO
    cohort) or from a plain {order_number: status} mapping.
    """

    def __init__(self):
        self._status: Dict[str, str] = {}
        self._records: Dict[str, ShipmentRecord] = {}

    def __len__(self) -> int:
        return len(self._status)

    @classmethod
    def from_records(cls, records: Iterable[ShipmentRecord]) -> "ShipmentIndex":
        index = cls()
        for record in records:
            if not record.order_reference:
                continue
            # Later records overwrite earlier ones for the same order
            index._records[record.order_reference] = record
            index._status[record.order_reference] = classify_shipment(record)
        return index

    @classmethod
    def from_mapping(cls, statuses: Mapping[str, str]) -> "ShipmentIndex":
        index = cls()
        for order_number, status in statuses.items():
            key = strip_order_prefix(order_number)
            if key:
                index._status[key] = classify_status_text(status) or PENDING
        return index

    @classmethod
    def build(
        cls, source: Union[None, Mapping[str, str], Iterable[ShipmentRecord]]
    ) -> "ShipmentIndex":
        """Accept either shipment representation (or nothing)."""
        if source is None:
            return cls()
        if isinstance(source, ShipmentIndex):
            return source
        if isinstance(source, Mapping):
            return cls.from_mapping(source)
        return cls.from_records(source)

    def status(self, order_number: str) -> Optional[str]:
        """Coarse status for an order number, None when no shipment is known."""
        return self._status.get(strip_order_prefix(order_number))

    def record(self, order_number: str) -> Optional[ShipmentRecord]:
        return self._records.get(strip_order_prefix(order_number))

    def is_cancelled(self, order_number: str) -> bool:
        return self.status(order_number) == CANCELLED
