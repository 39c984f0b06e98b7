"""
Diagnostic endpoints for external integrations
"""
from datetime import datetime, timedelta

import pytz
from fastapi import APIRouter, Depends

from sku_metrics.api.dependencies import get_shiprocket_connector
from sku_metrics.config import get_settings
from sku_metrics.connectors.shiprocket_connector import ShiprocketConnector
from sku_metrics.utils.logger import log

settings = get_settings()

router = APIRouter(prefix="/api/debug", tags=["debug"])


@router.get("/shiprocket-dates")
async def check_shiprocket_dates(
    connector: ShiprocketConnector = Depends(get_shiprocket_connector),
):
    """
    Check which Shiprocket date filter works for the 14-to-7-day window
    """
    token = await connector.token_provider.get_valid_token()
    if not token:
        return {"error": "No token"}

    today = datetime.now(pytz.timezone(settings.report_timezone)).date()
    start = today - timedelta(days=settings.rto_window_start_days)
    end = today - timedelta(days=settings.rto_window_end_days)

    try:
        tests = await connector.check_date_filters(start, end)
    except ConnectionError as e:
        log.error(f"Shiprocket date filter check failed: {str(e)}")
        return {"error": str(e)}

    return {"dateRange": f"{start} to {end}", "tests": tests}
