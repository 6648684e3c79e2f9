from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from stampbook.core.config import settings


@dataclass(frozen=True, slots=True)
class DateWindow:
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def starts_at(self) -> datetime:
        return start_of_day(self.start)

    @property
    def ends_at(self) -> datetime:
        return end_of_day(self.end)

    def contains(self, moment: datetime | date) -> bool:
        day = moment.date() if isinstance(moment, datetime) else moment
        return self.start <= day <= self.end

    def iter_days(self) -> list[date]:
        return [self.start + timedelta(days=offset) for offset in range(self.days)]


def local_now() -> datetime:
    """Current wall-clock time in the configured timezone, without tzinfo."""
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def week_window(day: date) -> DateWindow:
    start = day - timedelta(days=day.weekday())
    return DateWindow(start=start, end=start + timedelta(days=6))


def month_window(year: int, month: int) -> DateWindow:
    last_day = calendar.monthrange(year, month)[1]
    return DateWindow(start=date(year, month, 1), end=date(year, month, last_day))


def year_window(year: int) -> DateWindow:
    return DateWindow(start=date(year, 1, 1), end=date(year, 12, 31))


def trailing_days(today: date, days: int) -> DateWindow:
    return DateWindow(start=today - timedelta(days=days - 1), end=today)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def to_local_naive(moment: datetime) -> datetime:
    """Aware datetimes are converted to the configured timezone; naive ones are taken as local already."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(ZoneInfo(settings.timezone)).replace(tzinfo=None)
