"""
Reference time for relative-window reports.

Queries never read the wall clock; the churn and high-frequency reports
receive ``as_of`` from whoever runs them, usually through one of these.
"""

import calendar
from datetime import datetime, timezone
from typing import Protocol


def to_naive_utc(moment: datetime) -> datetime:
    """Express ``moment`` as a naive UTC datetime, like stored timestamps."""
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


class Clock(Protocol):
    """Source of the reporting reference time"""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in UTC, returned naive to match stored timestamps"""

    def now(self) -> datetime:
        return to_naive_utc(datetime.now(timezone.utc))


class FixedClock:
    """Clock pinned to one instant (tests, backfills, replays)"""

    def __init__(self, moment: datetime):
        self.moment = to_naive_utc(moment)

    def now(self) -> datetime:
        return self.moment

    def __repr__(self) -> str:
        return f"FixedClock({self.moment.isoformat()})"


def months_before(moment: datetime, months: int) -> datetime:
    """
    Shift ``moment`` back by whole calendar months.

    The day is clamped to the target month's length, so 31 August minus
    six months is 28 (or 29) February.
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    day = min(moment.day, calendar.monthrange(year, month + 1)[1])
    return moment.replace(year=year, month=month + 1, day=day)
