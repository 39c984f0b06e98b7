"""
Order -> product attribution.

Every order is attributed to at most one product, tried in priority order:
1. utm_campaign on the landing site URL: text before the first '_'
2. single line item: that item's normalized product name
3. multiple line items: the product bucket holding more than half of the
   item revenue
Anything else is unattributed and goes to manual review.
"""
import re
from collections import defaultdict
from typing import Dict, Iterable, Optional, Tuple

from sku_metrics.models.records import Order
from sku_metrics.utils.logger import log
from sku_metrics.utils.url_parsing import get_utm_campaign

# Revenue share a single product must exceed to own a mixed order
DOMINANT_SHARE = 0.5

SOURCE_UTM = "utm_campaign"
SOURCE_SINGLE_ITEM = "single_item"
SOURCE_DOMINANT_ITEM = "dominant_item"

# Title decoration: everything from the first ™ or en dash onwards
_DECORATION = re.compile(r"[™–].*$", re.DOTALL)


def normalize_product_name(name: Optional[str]) -> str:
    """
    'Mumma Mitra Belly Butter™ – 100ml' -> 'mumma mitra belly butter'
    """
    if not name:
        return ""
    return _DECORATION.sub("", str(name).lower()).strip()


def _campaign_product(campaign: str) -> str:
    return campaign.split("_", 1)[0].lower().strip()


def attribute_order_with_source(order: Order) -> Tuple[Optional[str], Optional[str]]:
    """Return (product_key, source) or (None, None) for manual review."""
    campaign = get_utm_campaign(order.landing_site)
    if campaign:
        product = _campaign_product(campaign)
        if product:
            return product, SOURCE_UTM

    items = order.line_items
    if len(items) == 1:
        product = normalize_product_name(items[0].title)
        return (product, SOURCE_SINGLE_ITEM) if product else (None, None)

    if not items:
        return None, None

    revenue_by_product: Dict[str, float] = defaultdict(float)
    for item in items:
        revenue_by_product[normalize_product_name(item.title)] += item.subtotal

    total = sum(revenue_by_product.values())
    if total <= 0:
        return None, None

    product, revenue = max(revenue_by_product.items(), key=lambda kv: kv[1])
    if product and revenue / total > DOMINANT_SHARE:
        return product, SOURCE_DOMINANT_ITEM
    return None, None


def attribute_order(order: Order) -> Optional[str]:
    """Attributed product key for an order, or None."""
    return attribute_order_with_source(order)[0]


class ProductAttributor:
    """Batch helper around `attribute_order` that keeps source statistics."""

    def resolve(self, order: Order) -> Tuple[Optional[str], Optional[str]]:
        """(product_key, source) for one order; override to change the rules."""
        return attribute_order_with_source(order)

    def __call__(self, order: Order) -> Optional[str]:
        return self.resolve(order)[0]

    def attribute_batch(self, orders: Iterable[Order]) -> Dict[str, Optional[str]]:
        """{order_id: product_key or None} for a batch, logging how each was resolved."""
        result: Dict[str, Optional[str]] = {}
        stats: Dict[str, int] = defaultdict(int)

        for order in orders:
            if order.id in result:
                continue
            product, source = self.resolve(order)
            result[order.id] = product
            stats[source or "manual_review"] += 1

        log.info(
            f"Attribution: {stats[SOURCE_UTM]} via utm_campaign, "
            f"{stats[SOURCE_SINGLE_ITEM]} single-item, "
            f"{stats[SOURCE_DOMINANT_ITEM]} dominant-item, "
            f"{stats['manual_review']} need manual review"
        )
        return result
