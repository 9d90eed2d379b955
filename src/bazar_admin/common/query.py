"""Helpers for turning admin listing parameters into Tortoise querysets."""
import datetime
from collections import Counter
from typing import Iterable, Optional, Sequence

from tortoise import timezone

from .schemas import DailyCount

TREND_WINDOW_DAYS = 30


def blank_to_none(value: Optional[str]) -> Optional[str]:
    """Admin UIs send empty strings for unused filters; treat them as absent."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_ordering(
    sort_by: Optional[str], sort_order: Optional[str], allowed: Sequence[str], default: str = "created_at"
) -> str:
    """Builds a Tortoise order_by expression from untrusted query parameters.

    Unknown sort columns fall back to `default`; any order other than
    "ASC" (case-insensitive) is treated as descending.

    Args:
        sort_by: Requested column name.
        sort_order: "ASC" or "DESC".
        allowed: Whitelist of sortable columns.
        default: Column used when `sort_by` is not whitelisted.

    Returns:
        A field name, prefixed with "-" for descending order.
    """
    column = sort_by if sort_by in allowed else default
    ascending = (sort_order or "").strip().upper() == "ASC"
    return column if ascending else f"-{column}"


def has_more(offset: int, limit: int, total: int) -> bool:
    return (offset + limit) < total


def trend_window_start() -> datetime.datetime:
    """Midnight at the start of the trend window, in the ORM's clock."""
    now = timezone.now()
    start = now - datetime.timedelta(days=TREND_WINDOW_DAYS)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def daily_counts(timestamps: Iterable[datetime.datetime]) -> list[DailyCount]:
    counter = Counter(ts.date() for ts in timestamps if ts is not None)
    return [DailyCount(date=day, count=count) for day, count in sorted(counter.items())]


def day_bounds(
    start_date: Optional[datetime.date], end_date: Optional[datetime.date]
) -> dict:
    """Filter kwargs for an inclusive calendar-day range on created_at."""
    filters = {}
    if start_date:
        filters["created_at__gte"] = datetime.datetime.combine(start_date, datetime.time.min)
    if end_date:
        # Add 1 day to end_date to make it inclusive for date range queries
        filters["created_at__lt"] = datetime.datetime.combine(
            end_date + datetime.timedelta(days=1), datetime.time.min
        )
    return filters
