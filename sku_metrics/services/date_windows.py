"""
Target-date and lookback-window resolution.

All comparisons are done on local calendar dates in the report timezone
(Asia/Kolkata by default), never on instants. Callers convert source
timestamps with `to_local_date` before checking window membership.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from sku_metrics.config import get_settings
from sku_metrics.models.results import DateRange

settings = get_settings()

DAY_SELECTORS = ("today", "yesterday")


@dataclass(frozen=True)
class DateWindows:
    """Target date plus the two historical cohort windows"""

    day: str
    target_date: date
    rto_window: DateRange
    cancel_window: DateRange
    timezone: str

    @property
    def tz(self):
        return pytz.timezone(self.timezone)

    def is_target(self, dt: Optional[datetime]) -> bool:
        return dt is not None and to_local_date(dt, self.tz) == self.target_date

    def in_rto_window(self, dt: Optional[datetime]) -> bool:
        return dt is not None and self.rto_window.contains(to_local_date(dt, self.tz))

    def in_cancel_window(self, dt: Optional[datetime]) -> bool:
        return dt is not None and self.cancel_window.contains(to_local_date(dt, self.tz))


def to_local_date(dt: datetime, tz) -> date:
    """Calendar date of an instant in ``tz`` (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(tz).date()


def resolve_date_windows(
    day: str = "today",
    now: Optional[datetime] = None,
    timezone: Optional[str] = None,
) -> DateWindows:
    """
    Resolve the target date for ``day`` and its lookback windows.

    RTO window:    [target - 14, target - 7]  (compared to pickup date)
    Cancel window: [target - 7,  target - 1]  (compared to order creation date)
    """
    if day not in DAY_SELECTORS:
        raise ValueError(f"day must be one of {DAY_SELECTORS}, got {day!r}")

    tz_name = timezone or settings.report_timezone
    tz = pytz.timezone(tz_name)
    now = now or datetime.now(pytz.UTC)

    target = to_local_date(now, tz)
    if day == "yesterday":
        target -= timedelta(days=1)

    return DateWindows(
        day=day,
        target_date=target,
        rto_window=DateRange(
            start=target - timedelta(days=settings.rto_window_start_days),
            end=target - timedelta(days=settings.rto_window_end_days),
        ),
        cancel_window=DateRange(
            start=target - timedelta(days=settings.cancel_window_start_days),
            end=target - timedelta(days=settings.cancel_window_end_days),
        ),
        timezone=tz_name,
    )
