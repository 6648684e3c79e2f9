from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.orm import Session

from stampbook.core.errors import DomainValidationError
from stampbook.models import PokemonRarity, StampType
from stampbook.services.periods import DateWindow, month_window
from stampbook.services.statistics import (
    StampRow,
    count_rarities,
    fetch_stamp_rows,
    group_by_day,
    safe_average,
)

DAYS_PER_WEEK = 7
MIN_CALENDAR_YEAR = 2000
MAX_CALENDAR_YEAR = 2100


@dataclass(frozen=True, slots=True)
class StampTypeCount:
    stamp_type: StampType
    count: int
    rows: list[StampRow]


@dataclass(frozen=True, slots=True)
class PeriodSummary:
    total_stamps: int
    legendary_count: int
    mythical_count: int
    special_pokemon_rate: float
    active_days: int
    average_per_day: float
    stamp_types: list[StampTypeCount]
    daily_counts: dict[date, int]


@dataclass(frozen=True, slots=True)
class CalendarDay:
    date: date
    day_of_week: int
    is_current_month: bool
    is_today: bool
    rows: list[StampRow]
    has_legendary: bool
    has_mythical: bool

    @property
    def stamps_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True, slots=True)
class MonthlyCalendar:
    year: int
    month: int
    weeks: list[list[CalendarDay]]
    statistics: PeriodSummary

    @property
    def total_stamps(self) -> int:
        return self.statistics.total_stamps


@dataclass(frozen=True, slots=True)
class WeeklyCalendar:
    window: DateWindow
    days: list[CalendarDay]
    statistics: PeriodSummary

    @property
    def total_stamps(self) -> int:
        return self.statistics.total_stamps


@dataclass(frozen=True, slots=True)
class DailyDetail:
    date: date
    day_of_week: int
    is_today: bool
    rows: list[StampRow]
    stamp_types: list[StampTypeCount]

    @property
    def stamps_count(self) -> int:
        return len(self.rows)


def sunday_based_weekday(day: date) -> int:
    """0 for Sunday through 6 for Saturday."""
    return (day.weekday() + 1) % DAYS_PER_WEEK


def count_by_stamp_type(rows: Sequence[StampRow]) -> list[StampTypeCount]:
    grouped: dict[int, list[StampRow]] = {}
    for row in rows:
        grouped.setdefault(row.stamp_type.id, []).append(row)
    counts = [
        StampTypeCount(stamp_type=type_rows[0].stamp_type, count=len(type_rows), rows=type_rows)
        for type_rows in grouped.values()
    ]
    counts.sort(key=lambda item: (-item.count, item.stamp_type.name))
    return counts


def summarize_period(rows: Sequence[StampRow]) -> PeriodSummary:
    counts = count_rarities(rows)
    daily_counts = {day: len(day_rows) for day, day_rows in sorted(group_by_day(rows).items())}
    return PeriodSummary(
        total_stamps=counts.total,
        legendary_count=counts.legendary,
        mythical_count=counts.mythical,
        special_pokemon_rate=counts.special_rate,
        active_days=len(daily_counts),
        # Averaged over days that have stamps, not over calendar days.
        average_per_day=safe_average(counts.total, len(daily_counts)),
        stamp_types=count_by_stamp_type(rows),
        daily_counts=daily_counts,
    )


def _calendar_day(day: date, rows: list[StampRow], *, month: int | None, today: date) -> CalendarDay:
    return CalendarDay(
        date=day,
        day_of_week=sunday_based_weekday(day),
        is_current_month=month is None or day.month == month,
        is_today=day == today,
        rows=rows,
        has_legendary=any(row.rarity == PokemonRarity.LEGENDARY for row in rows),
        has_mythical=any(row.rarity == PokemonRarity.MYTHICAL for row in rows),
    )


def month_grid_window(year: int, month: int) -> DateWindow:
    """Sunday before (or on) the 1st through the Saturday after (or on) the last day."""
    month_days = month_window(year, month)
    start = month_days.start - timedelta(days=sunday_based_weekday(month_days.start))
    end = month_days.end + timedelta(days=DAYS_PER_WEEK - 1 - sunday_based_weekday(month_days.end))
    return DateWindow(start=start, end=end)


def _validate_year(year: int, *, field: str) -> None:
    if not MIN_CALENDAR_YEAR <= year <= MAX_CALENDAR_YEAR:
        raise DomainValidationError(
            f"{field} must fall between {MIN_CALENDAR_YEAR} and {MAX_CALENDAR_YEAR}",
            details={field: year},
        )


def get_monthly_calendar(db: Session, child_id: int, *, year: int, month: int, today: date) -> MonthlyCalendar:
    _validate_year(year, field="year")
    if not 1 <= month <= 12:
        raise DomainValidationError("month must be between 1 and 12", details={"month": month})

    rows = fetch_stamp_rows(db, child_id, month_window(year, month))
    by_day = group_by_day(rows)
    cells = [
        _calendar_day(day, by_day.get(day, []), month=month, today=today)
        for day in month_grid_window(year, month).iter_days()
    ]
    weeks = [cells[index : index + DAYS_PER_WEEK] for index in range(0, len(cells), DAYS_PER_WEEK)]
    return MonthlyCalendar(year=year, month=month, weeks=weeks, statistics=summarize_period(rows))


def get_weekly_calendar(db: Session, child_id: int, *, week_start: date, today: date) -> WeeklyCalendar:
    _validate_year(week_start.year, field="week_start")
    window = DateWindow(start=week_start, end=week_start + timedelta(days=DAYS_PER_WEEK - 1))
    rows = fetch_stamp_rows(db, child_id, window)
    by_day = group_by_day(rows)
    days = [_calendar_day(day, by_day.get(day, []), month=None, today=today) for day in window.iter_days()]
    return WeeklyCalendar(window=window, days=days, statistics=summarize_period(rows))


def get_daily_detail(db: Session, child_id: int, *, day: date, today: date) -> DailyDetail:
    _validate_year(day.year, field="day")
    rows = fetch_stamp_rows(db, child_id, DateWindow(start=day, end=day))
    return DailyDetail(
        date=day,
        day_of_week=sunday_based_weekday(day),
        is_today=day == today,
        rows=rows,
        stamp_types=count_by_stamp_type(rows),
    )
