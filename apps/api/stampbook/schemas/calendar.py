from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from stampbook.schemas.stamp_types import StampTypeOut
from stampbook.schemas.stamps import StampOut


class StampTypeCountOut(BaseModel):
    stamp_type: StampTypeOut
    count: int


class DailyCountOut(BaseModel):
    day: date
    count: int


class PeriodSummaryOut(BaseModel):
    total_stamps: int
    legendary_count: int
    mythical_count: int
    special_pokemon_rate: float
    active_days: int
    average_per_day: float
    stamp_types: list[StampTypeCountOut]
    daily_counts: list[DailyCountOut]


class CalendarDayOut(BaseModel):
    day: date
    day_of_month: int
    day_of_week: int
    is_current_month: bool
    is_today: bool
    stamps_count: int
    has_legendary: bool
    has_mythical: bool
    stamps: list[StampOut]


class MonthlyCalendarOut(BaseModel):
    year: int
    month: int
    weeks: list[list[CalendarDayOut]]
    statistics: PeriodSummaryOut
    total_stamps: int


class WeeklyCalendarOut(BaseModel):
    start_date: date
    end_date: date
    days: list[CalendarDayOut]
    statistics: PeriodSummaryOut
    total_stamps: int


class DailyStampTypeOut(BaseModel):
    stamp_type: StampTypeOut
    count: int
    stamps: list[StampOut]


class DailyDetailOut(BaseModel):
    day: date
    day_of_week: int
    is_today: bool
    stamps_count: int
    stamps: list[StampOut]
    stamp_types: list[DailyStampTypeOut]
