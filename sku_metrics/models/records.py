"""
Input records for the SKU metrics pipeline.

Raw API payloads (Shopify orders, Shiprocket orders, Meta insights rows) are
validated here, at the boundary. Malformed fields fall back to documented
defaults so a single bad record never aborts a batch:

- missing SKU -> variant id -> "unknown"
- non-numeric price/quantity/total -> 0
- unparseable or sentinel pickup timestamps -> None
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pytz
from dateutil import parser as date_parser
from pydantic import BaseModel, Field, field_validator

from sku_metrics.utils.helpers import strip_order_prefix, to_float, to_int

UNKNOWN_SKU = "unknown"

# Shiprocket returns these instead of null for "not picked up yet"
UNSET_TIMESTAMPS = {"", "0000-00-00", "0000-00-00 00:00:00", "n/a", "na", "null", "none"}


def parse_timestamp(value: Any, naive_tz=pytz.UTC) -> Optional[datetime]:
    """
    Parse an API timestamp into an aware datetime.

    Naive values are localized to ``naive_tz``. Returns None for empty,
    sentinel or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.lower() in UNSET_TIMESTAMPS:
            return None
        try:
            dt = date_parser.parse(text)
        except (ValueError, OverflowError):
            return None
    if dt.tzinfo is None:
        dt = naive_tz.localize(dt)
    return dt


class LineItem(BaseModel):
    """One product line of a commerce order"""

    title: str = ""
    sku: str = UNKNOWN_SKU
    price: float = 0.0
    quantity: int = 0

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_shopify(cls, raw: Dict[str, Any]) -> "LineItem":
        sku = str(raw.get("sku") or "").strip()
        if not sku and raw.get("variant_id") is not None:
            sku = str(raw["variant_id"]).strip()
        return cls(
            title=str(raw.get("title") or raw.get("name") or ""),
            sku=sku or UNKNOWN_SKU,
            price=to_float(raw.get("price")),
            quantity=to_int(raw.get("quantity")),
        )


class Order(BaseModel):
    """A commerce order as consumed by the pipeline"""

    id: str
    name: str = ""
    created_at: datetime
    payment_gateway_names: List[str] = Field(default_factory=list)
    total_price: float = 0.0
    landing_site: Optional[str] = None
    line_items: List[LineItem] = Field(default_factory=list)
    # Used only when no shipment is known for the order (cancellation cohort)
    cancelled_at: Optional[datetime] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, value):
        dt = parse_timestamp(value)
        if dt is None:
            raise ValueError(f"invalid created_at: {value!r}")
        return dt

    @field_validator("cancelled_at", mode="before")
    @classmethod
    def _parse_cancelled_at(cls, value):
        return parse_timestamp(value)

    @property
    def order_number(self) -> str:
        """Display name without the leading '#', used to join shipments."""
        return strip_order_prefix(self.name)

    @property
    def items_total(self) -> float:
        """Sum of price x quantity across line items."""
        return sum(item.subtotal for item in self.line_items)

    @classmethod
    def from_shopify(cls, raw: Dict[str, Any]) -> "Order":
        """
        Build an Order from a Shopify REST order payload.

        Raises ValueError (pydantic.ValidationError) when the order has no
        usable id or creation timestamp.
        """
        if raw.get("id") is None:
            raise ValueError("order has no id")

        gateways = raw.get("payment_gateway_names")
        if not isinstance(gateways, list):
            gateways = []
        # Older payloads only carry the single deprecated `gateway` string
        if not gateways and raw.get("gateway"):
            gateways = [raw["gateway"]]

        line_items = [
            LineItem.from_shopify(item)
            for item in (raw.get("line_items") or [])
            if isinstance(item, dict)
        ]

        landing_site = raw.get("landing_site")
        name = raw.get("name")
        if not name and raw.get("order_number") is not None:
            name = f"#{raw['order_number']}"

        return cls(
            id=str(raw["id"]),
            name=str(name or ""),
            created_at=raw.get("created_at"),
            payment_gateway_names=[str(g) for g in gateways if g],
            total_price=to_float(raw.get("total_price")),
            landing_site=landing_site if isinstance(landing_site, str) else None,
            line_items=line_items,
            cancelled_at=raw.get("cancelled_at"),
        )


class ShipmentRecord(BaseModel):
    """Current state of a logistics shipment, keyed by order number"""

    order_reference: str
    status: Optional[str] = None
    status_code: Optional[int] = None
    pickup_at: Optional[datetime] = None
    awb: Optional[str] = None

    @field_validator("order_reference", mode="before")
    @classmethod
    def _normalize_reference(cls, value):
        return strip_order_prefix(value)

    @classmethod
    def from_shiprocket(cls, raw: Dict[str, Any], local_tz) -> "ShipmentRecord":
        """
        Build a record from a Shiprocket `/orders` list entry.

        Pickup details live on the first entry of `shipments`; flattened
        payloads carrying them at the top level are accepted too. Naive
        Shiprocket timestamps are local time in ``local_tz``.
        """
        shipments = raw.get("shipments") or []
        if isinstance(shipments, dict):
            shipment = shipments
        elif isinstance(shipments, list) and shipments and isinstance(shipments[0], dict):
            shipment = shipments[0]
        else:
            shipment = {}

        pickup_raw = (
            shipment.get("pickedup_timestamp")
            or raw.get("pickedup_timestamp")
            or raw.get("pickup_date")
        )
        code = raw.get("status_code")
        if code is None:
            code = shipment.get("status_code")
        status = raw.get("status") or shipment.get("status")
        awb = shipment.get("awb") or raw.get("awb_code")

        return cls(
            order_reference=raw.get("channel_order_id") or raw.get("order_reference") or "",
            status=str(status) if status is not None else None,
            status_code=to_int(code) if code not in (None, "") else None,
            pickup_at=parse_timestamp(pickup_raw, naive_tz=local_tz),
            awb=str(awb) if awb else None,
        )


class AdCampaignSpend(BaseModel):
    """Spend of one ad campaign over a date range"""

    campaign_name: str
    spend: float = 0.0
    date_start: Optional[date] = None
    date_stop: Optional[date] = None

    @classmethod
    def from_meta(cls, raw: Dict[str, Any]) -> "AdCampaignSpend":
        return cls(
            campaign_name=str(raw.get("campaign_name") or "").strip(),
            spend=to_float(raw.get("spend")),
            date_start=raw.get("date_start") or None,
            date_stop=raw.get("date_stop") or None,
        )


def spend_by_campaign(rows: List[AdCampaignSpend]) -> Dict[str, float]:
    """Collapse campaign rows into {campaign_name: total spend}."""
    totals: Dict[str, float] = {}
    for row in rows:
        if not row.campaign_name:
            continue
        totals[row.campaign_name] = totals.get(row.campaign_name, 0.0) + row.spend
    return totals
