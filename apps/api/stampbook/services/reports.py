from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from stampbook.core.errors import DomainValidationError
from stampbook.models import Child
from stampbook.services.calendars import PeriodSummary, summarize_period
from stampbook.services.goals import GoalProgress, goal_progress, goals_overlapping
from stampbook.services.periods import DateWindow, month_window
from stampbook.services.statistics import (
    GrowthChart,
    PokemonCollectionStatistics,
    StampTypeStatistic,
    fetch_stamp_rows,
    growth_chart_from_rows,
    percentage,
    pokemon_collection_from_rows,
    safe_average,
    stamp_type_statistics_from_rows,
)


@dataclass(frozen=True, slots=True)
class ActivitySummary:
    total_days: int
    active_days: int
    activity_rate: float
    average_per_day: float
    unique_stamp_types: int
    opened_stamps: int
    unopened_stamps: int


@dataclass(frozen=True, slots=True)
class MonthlyReport:
    child: Child
    year: int
    month: int
    window: DateWindow
    summary: PeriodSummary
    activity: ActivitySummary
    stamp_types: list[StampTypeStatistic]
    pokemon: PokemonCollectionStatistics
    growth: GrowthChart
    goals: list[GoalProgress]

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def generate_monthly_report(db: Session, child: Child, *, year: int, month: int, today: date) -> MonthlyReport:
    if not 1 <= month <= 12:
        raise DomainValidationError("month must be between 1 and 12", details={"month": month})

    window = month_window(year, month)
    rows = fetch_stamp_rows(db, child.id, window)
    summary = summarize_period(rows)
    opened = sum(1 for row in rows if row.stamp.opened_at is not None)

    activity = ActivitySummary(
        total_days=window.days,
        active_days=summary.active_days,
        activity_rate=percentage(summary.active_days, window.days),
        average_per_day=safe_average(summary.total_stamps, summary.active_days),
        unique_stamp_types=len({row.stamp_type.id for row in rows}),
        opened_stamps=opened,
        unopened_stamps=len(rows) - opened,
    )
    return MonthlyReport(
        child=child,
        year=year,
        month=month,
        window=window,
        summary=summary,
        activity=activity,
        stamp_types=stamp_type_statistics_from_rows(rows),
        pokemon=pokemon_collection_from_rows(rows),
        growth=growth_chart_from_rows(rows, window),
        goals=[goal_progress(db, goal, today) for goal in goals_overlapping(db, child.id, window)],
    )
