# spinbot/utils/dates.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def as_utc(dt: datetime) -> datetime:
    """Naive values are treated as UTC (that is how the database stores them)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_naive_utc(dt: datetime) -> datetime:
    return as_utc(dt).replace(tzinfo=None)


def next_utc_midnight(now: datetime) -> datetime:
    # exactly midnight counts as "already passed": the next one is 24h away
    now = as_utc(now)
    today_midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return today_midnight + timedelta(days=1)
