"""
In-memory record builders shared by the tests.

All timestamps are Asia/Kolkata; NOW is 2024-03-15 12:00 IST, which makes
the RTO window 2024-03-01..2024-03-08 and the cancel window
2024-03-08..2024-03-14.
"""
from datetime import datetime, timedelta

import pytz

from sku_metrics.models.records import LineItem, Order, ShipmentRecord
from sku_metrics.services.date_windows import resolve_date_windows

IST = pytz.timezone("Asia/Kolkata")
NOW = IST.localize(datetime(2024, 3, 15, 12, 0))


def days_ago(n: int, hour: int = 12) -> datetime:
    return IST.localize(datetime(2024, 3, 15, hour, 0) - timedelta(days=n))


def windows(day: str = "today"):
    return resolve_date_windows(day, now=NOW, timezone="Asia/Kolkata")


def make_order(
    order_id,
    items=(),
    total=None,
    cod=False,
    created_at=None,
    landing_site=None,
    name=None,
    cancelled_at=None,
) -> Order:
    """items: iterable of (title, sku, price, quantity)"""
    line_items = [
        LineItem(title=title, sku=sku, price=price, quantity=qty)
        for title, sku, price, qty in items
    ]
    if total is None:
        total = sum(item.subtotal for item in line_items)
    return Order(
        id=str(order_id),
        name=name or f"#{order_id}",
        created_at=created_at or NOW,
        payment_gateway_names=["Cash on Delivery (COD)"] if cod else ["razorpay"],
        total_price=total,
        landing_site=landing_site,
        line_items=line_items,
        cancelled_at=cancelled_at,
    )


def make_shipment(order_number, status=None, status_code=None, pickup_at=None) -> ShipmentRecord:
    return ShipmentRecord(
        order_reference=str(order_number),
        status=status,
        status_code=status_code,
        pickup_at=pickup_at,
    )
