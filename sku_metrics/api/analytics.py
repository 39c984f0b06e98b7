"""
SKU Analytics API Endpoints

Per-SKU revenue, delivery outcomes, ad spend and predictive RTO /
cancellation rates for today or yesterday (Asia/Kolkata).
"""
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from sku_metrics.api.dependencies import get_analytics_service
from sku_metrics.connectors.exceptions import CommerceNotAuthorizedError, OrderFeedError
from sku_metrics.models.results import AnalyticsResult
from sku_metrics.services.sku_pipeline import SkuAnalyticsService
from sku_metrics.utils.logger import log

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/sku", response_model=AnalyticsResult)
async def get_sku_analytics(
    day: Literal["today", "yesterday"] = Query("today", description="Target day in store time"),
    service: SkuAnalyticsService = Depends(get_analytics_service),
):
    """
    Per-SKU performance for the target day

    Shipment statuses are fetched live, so rerunning for the same day later
    can change delivery outcomes and predictive rates.
    """
    try:
        return await service.compute(day)

    except CommerceNotAuthorizedError as e:
        log.error(f"SKU analytics unavailable, Shopify not authorized: {str(e)}")
        raise HTTPException(status_code=401, detail=str(e))

    except OrderFeedError as e:
        log.error(f"SKU analytics failed, order feed error: {str(e)}")
        raise HTTPException(status_code=502, detail=str(e))
