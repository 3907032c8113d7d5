"""Helper functions for part stock and maintenance date calculations."""

from datetime import datetime, timedelta, timezone
from dateutil.relativedelta import relativedelta
from typing import Optional

from .status import PartStatus

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    """Current time as an aware UTC datetime (the production clock)."""
    return datetime.now(timezone.utc)


def derive_part_status(stock: int, min_stock: int) -> PartStatus:
    """
    Derive a part's stock status.

    - stock == 0: OUT_OF_STOCK, whatever min_stock is
    - stock <= min_stock: LOW_STOCK
    - otherwise: IN_STOCK
    """
    if stock == 0:
        return PartStatus.OUT_OF_STOCK
    if stock <= min_stock:
        return PartStatus.LOW_STOCK
    return PartStatus.IN_STOCK


def days_since(
    when: Optional[datetime], now: datetime, default: float = 365
) -> float:
    """Fractional days elapsed from `when` to `now` (`default` if unknown)."""
    if when is None:
        return default
    return (now - when).total_seconds() / SECONDS_PER_DAY


def is_within(when: datetime, now: datetime, window: timedelta) -> bool:
    """True when less than `window` has elapsed since `when`."""
    return now - when < window


def calc_next_due(
    last_date: Optional[datetime], interval_days: Optional[int]
) -> Optional[datetime]:
    """Calculate next due date: last + interval days."""
    if interval_days is None or last_date is None:
        return None
    return last_date + relativedelta(days=interval_days)
