from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Query

from stampbook.api.deps import DBSession, FamilyChild
from stampbook.schemas.calendar import (
    CalendarDayOut,
    DailyCountOut,
    DailyDetailOut,
    DailyStampTypeOut,
    MonthlyCalendarOut,
    PeriodSummaryOut,
    StampTypeCountOut,
    WeeklyCalendarOut,
)
from stampbook.schemas.stamp_types import StampTypeOut
from stampbook.schemas.stamps import build_stamp_out
from stampbook.services import calendars
from stampbook.services.periods import local_today, week_window

router = APIRouter(prefix="/children/{child_id}/calendar", tags=["calendar"])


def _summary_out(summary: calendars.PeriodSummary) -> PeriodSummaryOut:
    return PeriodSummaryOut(
        total_stamps=summary.total_stamps,
        legendary_count=summary.legendary_count,
        mythical_count=summary.mythical_count,
        special_pokemon_rate=summary.special_pokemon_rate,
        active_days=summary.active_days,
        average_per_day=summary.average_per_day,
        stamp_types=[
            StampTypeCountOut(stamp_type=StampTypeOut.model_validate(item.stamp_type), count=item.count)
            for item in summary.stamp_types
        ],
        daily_counts=[DailyCountOut(day=day, count=count) for day, count in summary.daily_counts.items()],
    )


def _day_out(cell: calendars.CalendarDay) -> CalendarDayOut:
    return CalendarDayOut(
        day=cell.date,
        day_of_month=cell.date.day,
        day_of_week=cell.day_of_week,
        is_current_month=cell.is_current_month,
        is_today=cell.is_today,
        stamps_count=cell.stamps_count,
        has_legendary=cell.has_legendary,
        has_mythical=cell.has_mythical,
        stamps=[build_stamp_out(row) for row in cell.rows],
    )


@router.get("/monthly", response_model=MonthlyCalendarOut)
def monthly_calendar(
    db: DBSession,
    child: FamilyChild,
    year: Annotated[int | None, Query(ge=calendars.MIN_CALENDAR_YEAR, le=calendars.MAX_CALENDAR_YEAR)] = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
) -> MonthlyCalendarOut:
    today = local_today()
    grid = calendars.get_monthly_calendar(
        db,
        child.id,
        year=year or today.year,
        month=month or today.month,
        today=today,
    )
    return MonthlyCalendarOut(
        year=grid.year,
        month=grid.month,
        weeks=[[_day_out(cell) for cell in week] for week in grid.weeks],
        statistics=_summary_out(grid.statistics),
        total_stamps=grid.total_stamps,
    )


@router.get("/weekly", response_model=WeeklyCalendarOut)
def weekly_calendar(
    db: DBSession,
    child: FamilyChild,
    week_start: date | None = None,
) -> WeeklyCalendarOut:
    today = local_today()
    week = calendars.get_weekly_calendar(
        db,
        child.id,
        week_start=week_start or week_window(today).start,
        today=today,
    )
    return WeeklyCalendarOut(
        start_date=week.window.start,
        end_date=week.window.end,
        days=[_day_out(cell) for cell in week.days],
        statistics=_summary_out(week.statistics),
        total_stamps=week.total_stamps,
    )


@router.get("/daily", response_model=DailyDetailOut)
def daily_detail(db: DBSession, child: FamilyChild, day: date | None = None) -> DailyDetailOut:
    today = local_today()
    detail = calendars.get_daily_detail(db, child.id, day=day or today, today=today)
    return DailyDetailOut(
        day=detail.date,
        day_of_week=detail.day_of_week,
        is_today=detail.is_today,
        stamps_count=detail.stamps_count,
        stamps=[build_stamp_out(row) for row in detail.rows],
        stamp_types=[
            DailyStampTypeOut(
                stamp_type=StampTypeOut.model_validate(item.stamp_type),
                count=item.count,
                stamps=[build_stamp_out(row) for row in item.rows],
            )
            for item in detail.stamp_types
        ],
    )
