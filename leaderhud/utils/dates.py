"""Reporting periods and calendar-day helpers. All values are naive UTC."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Literal

from dateutil.relativedelta import relativedelta

Period = Literal["week", "month", "year"]
PERIODS: tuple[Period, ...] = ("week", "month", "year")

_PERIOD_DELTAS = {
    "week": relativedelta(days=7),
    "month": relativedelta(months=1),
    "year": relativedelta(years=1),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def end_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.max)


def get_date_range(period: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return (start, end) for a reporting period.

    `end` is the last instant of today's UTC day, `start` the first instant of
    the day one week / month / year before it (calendar arithmetic, so
    "month" before March 31st is February 28th/29th).
    """
    delta = _PERIOD_DELTAS.get(period)
    if delta is None:
        raise ValueError(f"Unknown period {period!r}, expected one of {', '.join(PERIODS)}")
    end = end_of_day(now or utcnow())
    start = start_of_day(end - delta)
    return start, end


def iter_days(start: date | datetime, end: date | datetime) -> Iterator[date]:
    # consecutive calendar days, both ends inclusive
    d = start.date() if isinstance(start, datetime) else start
    last = end.date() if isinstance(end, datetime) else end
    while d <= last:
        yield d
        d += timedelta(days=1)
