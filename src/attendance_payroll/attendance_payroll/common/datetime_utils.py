from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

HOURS_QUANT = Decimal("0.01")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str | time) -> time:
    """Parse a policy time-of-day ("HH:MM" or "HH:MM:SS")."""
    if isinstance(value, time):
        return value
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {value!r}")
    seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
    return time(hour=int(parts[0]), minute=int(parts[1]), second=seconds)


def now_utc() -> datetime:
    """Current aware UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def tenant_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning("unknown time zone %r, falling back to UTC", name)
        return ZoneInfo("UTC")


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes coming back from MySQL DATETIME columns are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_local(instant: datetime, tz: ZoneInfo) -> datetime:
    return ensure_aware(instant).astimezone(tz)


def local_date(instant: datetime, tz: ZoneInfo) -> date:
    return to_local(instant, tz).date()


def local_instant(day: date, at: time, tz: ZoneInfo) -> datetime:
    """The UTC instant of ``day`` at wall-clock ``at`` in ``tz``."""
    return datetime.combine(day, at, tzinfo=tz).astimezone(timezone.utc)


def hours_between(start: datetime, end: datetime) -> Decimal:
    seconds = (ensure_aware(end) - ensure_aware(start)).total_seconds()
    return Decimal(str(seconds)) / Decimal(3600)


def quantize_hours(value: Decimal) -> Decimal:
    return value.quantize(HOURS_QUANT, rounding=ROUND_HALF_UP)


def shift_duration_hours(start: time, end: time) -> Decimal:
    """Length of a shift; an end at or before the start wraps past midnight."""
    start_min = start.hour * 60 + start.minute
    end_min = end.hour * 60 + end.minute
    minutes = end_min - start_min
    if minutes <= 0:
        minutes += 24 * 60
    return Decimal(minutes) / Decimal(60)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def iter_days(start: date, end: date):
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)
