from __future__ import annotations

import os
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_CURRENCY = "INR"


def order_currency() -> str:
    return os.getenv("ORDER_CURRENCY", DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY


def restaurant_timezone() -> tzinfo:
    name = os.getenv("RESTAURANT_TIMEZONE", "").strip()
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as exc:
        raise RuntimeError(f"unknown RESTAURANT_TIMEZONE: {name}") from exc


def local_today(now: datetime | None = None) -> date:
    current = now or datetime.now(timezone.utc)
    return current.astimezone(restaurant_timezone()).date()


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """Local midnight to the next local midnight, as aware datetimes."""
    zone = restaurant_timezone()
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start, end
