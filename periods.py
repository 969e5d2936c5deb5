from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from config import get_settings

PERIODS = [
    ("mtd", "Month"),
    ("7d", "7D"),
    ("lastm", "Last M"),
    ("3m", "3M"),
    ("ytd", "Year"),
    ("custom", "Date"),
]


@dataclass(frozen=True)
class Period:
    """Closed interval ``[start, end]``; ``end`` is normalized to end-of-day."""

    slug: str
    start: datetime
    end: datetime

    def contains(self, day: date) -> bool:
        moment = datetime.combine(day, time.min)
        return self.start <= moment <= self.end

    @property
    def label(self) -> str:
        return f"{self.start:%d %b %Y} → {self.end:%d %b %Y}"


def local_now() -> datetime:
    return datetime.now(ZoneInfo(get_settings().timezone)).replace(tzinfo=None)


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _end_of(day: date) -> datetime:
    return datetime.combine(day, time.max)


def _shift_months(first: date, count: int) -> date:
    month_index = (first.year * 12) + (first.month - 1) + count
    return date(month_index // 12, (month_index % 12) + 1, 1)


def _month_to_date(today: date) -> Period:
    return Period("mtd", _start_of(today.replace(day=1)), _end_of(today))


def _parse_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def resolve_period(
    period: Optional[str],
    start: Optional[str] = None,
    end: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> Period:
    """Map a period selector to a concrete range evaluated against ``now``.

    Unknown selectors and malformed or inverted custom ranges resolve to the
    month-to-date range instead of raising.
    """
    today = (now or local_now()).date()
    first_this = today.replace(day=1)

    if period == "7d":
        return Period("7d", _start_of(today - timedelta(days=6)), _end_of(today))
    if period == "lastm":
        last_month_end = first_this - timedelta(days=1)
        return Period(
            "lastm", _start_of(last_month_end.replace(day=1)), _end_of(last_month_end)
        )
    if period == "3m":
        return Period("3m", _start_of(_shift_months(first_this, -3)), _end_of(today))
    if period == "ytd":
        return Period("ytd", _start_of(date(today.year, 1, 1)), _end_of(today))
    if period == "custom":
        start_date = _parse_day(start)
        end_date = _parse_day(end)
        if start_date is None or end_date is None or start_date > end_date:
            return _month_to_date(today)
        return Period("custom", _start_of(start_date), _end_of(end_date))
    return _month_to_date(today)
