from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Query

from stampbook.api.deps import DBSession, FamilyChild
from stampbook.schemas.goals import build_goal_out
from stampbook.schemas.pokemon import build_pokemon_out
from stampbook.schemas.stamp_types import StampTypeOut
from stampbook.schemas.stamps import build_stamp_out
from stampbook.schemas.statistics import (
    ActivitySummaryOut,
    BasicStatisticsOut,
    GrowthChartOut,
    GrowthPointOut,
    MonthlyReportOut,
    PeriodStatisticsOut,
    PeriodTotalsOut,
    PokemonCollectionOut,
    PokemonEncounterOut,
    StampTypeStatisticOut,
)
from stampbook.services import statistics as statistics_service
from stampbook.services.periods import local_now, local_today
from stampbook.services.reports import generate_monthly_report

router = APIRouter(prefix="/children/{child_id}/statistics", tags=["statistics"])


def _type_stat_out(item: statistics_service.StampTypeStatistic) -> StampTypeStatisticOut:
    return StampTypeStatisticOut(
        stamp_type=StampTypeOut.model_validate(item.stamp_type),
        count=item.count,
        legendary_count=item.legendary_count,
        mythical_count=item.mythical_count,
        percentage=item.percentage,
        recent_stamps=[build_stamp_out(row) for row in item.recent_stamps],
    )


def _encounter_out(item: statistics_service.PokemonEncounter) -> PokemonEncounterOut:
    return PokemonEncounterOut(
        pokemon=build_pokemon_out(item.pokemon),
        count=item.count,
        first_encounter=item.first_encounter,
        last_encounter=item.last_encounter,
    )


def _collection_out(stats: statistics_service.PokemonCollectionStatistics) -> PokemonCollectionOut:
    return PokemonCollectionOut(
        total_unique_pokemons=stats.total_unique_pokemons,
        common_pokemons=stats.common_pokemons,
        legendary_pokemons=stats.legendary_pokemons,
        mythical_pokemons=stats.mythical_pokemons,
        collection=[_encounter_out(item) for item in stats.collection],
        most_encountered=_encounter_out(stats.most_encountered) if stats.most_encountered else None,
        rarest_encounters=[_encounter_out(item) for item in stats.rarest_encounters],
    )


def _growth_out(chart: statistics_service.GrowthChart) -> GrowthChartOut:
    return GrowthChartOut(
        start_date=chart.window.start,
        end_date=chart.window.end,
        days=chart.window.days,
        points=[
            GrowthPointOut(
                day=point.date,
                total_stamps=point.total_stamps,
                legendary_stamps=point.legendary_stamps,
                mythical_stamps=point.mythical_stamps,
                cumulative_total=point.cumulative_total,
            )
            for point in chart.points
        ],
        total_stamps=chart.total_stamps,
        average_per_day=chart.average_per_day,
        max_daily_stamps=chart.max_daily_stamps,
        active_days=chart.active_days,
    )


@router.get("/basic", response_model=BasicStatisticsOut)
def basic_statistics(db: DBSession, child: FamilyChild) -> BasicStatisticsOut:
    stats = statistics_service.get_basic_statistics(db, child.id, now=local_now())
    return BasicStatisticsOut.model_validate(stats)


@router.get("/period", response_model=PeriodStatisticsOut)
def period_statistics(
    db: DBSession,
    child: FamilyChild,
    granularity: statistics_service.Granularity = statistics_service.Granularity.DAILY,
    count: Annotated[int, Query(ge=1, le=statistics_service.MAX_PERIOD_BUCKETS)] = 30,
) -> PeriodStatisticsOut:
    stats = statistics_service.get_period_statistics(
        db,
        child.id,
        granularity=granularity,
        count=count,
        today=local_today(),
    )
    return PeriodStatisticsOut.model_validate(stats)


@router.get("/stamp-types", response_model=list[StampTypeStatisticOut])
def stamp_type_statistics(
    db: DBSession,
    child: FamilyChild,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[StampTypeStatisticOut]:
    stats = statistics_service.get_stamp_type_statistics(db, child.id, start_date=start_date, end_date=end_date)
    return [_type_stat_out(item) for item in stats]


@router.get("/pokemon", response_model=PokemonCollectionOut)
def pokemon_statistics(db: DBSession, child: FamilyChild) -> PokemonCollectionOut:
    return _collection_out(statistics_service.get_pokemon_collection_statistics(db, child.id))


@router.get("/growth-chart", response_model=GrowthChartOut)
def growth_chart(
    db: DBSession,
    child: FamilyChild,
    days: Annotated[int, Query(ge=1, le=statistics_service.MAX_GROWTH_DAYS)] = 30,
) -> GrowthChartOut:
    return _growth_out(statistics_service.get_growth_chart_data(db, child.id, days=days, today=local_today()))


@router.get("/monthly-report", response_model=MonthlyReportOut)
def monthly_report(
    db: DBSession,
    child: FamilyChild,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
) -> MonthlyReportOut:
    today = local_today()
    report = generate_monthly_report(db, child, year=year or today.year, month=month or today.month, today=today)
    return MonthlyReportOut(
        child_id=child.id,
        child_name=child.name,
        month=report.label,
        start_date=report.window.start,
        end_date=report.window.end,
        totals=PeriodTotalsOut(
            total_stamps=report.summary.total_stamps,
            legendary_count=report.summary.legendary_count,
            mythical_count=report.summary.mythical_count,
            special_pokemon_rate=report.summary.special_pokemon_rate,
        ),
        activity=ActivitySummaryOut.model_validate(report.activity),
        stamp_types=[_type_stat_out(item) for item in report.stamp_types],
        pokemon=_collection_out(report.pokemon),
        growth=_growth_out(report.growth),
        goals=[build_goal_out(item) for item in report.goals],
    )
