"""
Join ad spend onto SKUs by campaign-name prefix and derive CAC.

A campaign matches a SKU when the SKU's normalized product name starts with
the lower-cased campaign name. A product may match several campaigns; their
spend is summed.
"""
from typing import List, Mapping

from sku_metrics.models.results import SkuMetrics
from sku_metrics.services.product_attribution import normalize_product_name
from sku_metrics.utils.helpers import safe_divide
from sku_metrics.utils.logger import log


class AdSpendMatcher:
    """Decorates SKU rows with ad spend, attributed orders and CAC."""

    def matching_spend(self, product_name: str, spend_by_campaign: Mapping[str, float]) -> float:
        product_key = normalize_product_name(product_name)
        if not product_key:
            return 0.0
        total = 0.0
        for campaign, spend in spend_by_campaign.items():
            prefix = campaign.lower().strip()
            if prefix and product_key.startswith(prefix):
                total += spend
        return total

    def apply(
        self,
        skus: List[SkuMetrics],
        spend_by_campaign: Mapping[str, float],
        attributed_orders: Mapping[str, int],
    ) -> List[SkuMetrics]:
        matched = 0
        for row in skus:
            product_key = normalize_product_name(row.product_name)
            row.ad_spend = self.matching_spend(row.product_name, spend_by_campaign)
            row.attributed_orders = attributed_orders.get(product_key, 0)
            row.cac = safe_divide(row.ad_spend, row.attributed_orders)
            if row.ad_spend:
                matched += 1

        log.info(
            f"Ad spend: {len(spend_by_campaign)} campaigns, "
            f"{matched}/{len(skus)} SKUs matched"
        )
        return skus
