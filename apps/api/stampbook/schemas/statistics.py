from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from stampbook.schemas.goals import GoalOut
from stampbook.schemas.pokemon import PokemonOut
from stampbook.schemas.stamp_types import StampTypeOut
from stampbook.schemas.stamps import StampOut
from stampbook.services.statistics import Granularity


class BasicStatisticsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_stamps: int
    today_stamps: int
    this_month_stamps: int
    this_year_stamps: int
    legendary_count: int
    mythical_count: int
    special_pokemon_rate: float
    current_streak_days: int
    longest_streak_days: int


class PeriodBucketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    start_date: date
    end_date: date
    count: int


class PeriodStatisticsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    granularity: Granularity
    buckets: list[PeriodBucketOut]
    total: int
    average: float


class StampTypeStatisticOut(BaseModel):
    stamp_type: StampTypeOut
    count: int
    legendary_count: int
    mythical_count: int
    percentage: float
    recent_stamps: list[StampOut]


class PokemonEncounterOut(BaseModel):
    pokemon: PokemonOut
    count: int
    first_encounter: datetime
    last_encounter: datetime


class PokemonCollectionOut(BaseModel):
    total_unique_pokemons: int
    common_pokemons: int
    legendary_pokemons: int
    mythical_pokemons: int
    collection: list[PokemonEncounterOut]
    most_encountered: PokemonEncounterOut | None
    rarest_encounters: list[PokemonEncounterOut]


class GrowthPointOut(BaseModel):
    day: date
    total_stamps: int
    legendary_stamps: int
    mythical_stamps: int
    cumulative_total: int


class GrowthChartOut(BaseModel):
    start_date: date
    end_date: date
    days: int
    points: list[GrowthPointOut]
    total_stamps: int
    average_per_day: float
    max_daily_stamps: int
    active_days: int


class ActivitySummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_days: int
    active_days: int
    activity_rate: float
    average_per_day: float
    unique_stamp_types: int
    opened_stamps: int
    unopened_stamps: int


class PeriodTotalsOut(BaseModel):
    total_stamps: int
    legendary_count: int
    mythical_count: int
    special_pokemon_rate: float


class MonthlyReportOut(BaseModel):
    child_id: int
    child_name: str
    month: str
    start_date: date
    end_date: date
    totals: PeriodTotalsOut
    activity: ActivitySummaryOut
    stamp_types: list[StampTypeStatisticOut]
    pokemon: PokemonCollectionOut
    growth: GrowthChartOut
    goals: list[GoalOut]
