from __future__ import annotations

from datetime import date, datetime

import pytest

from conftest import add_stamp, make_catalog, make_child, make_family, make_stamp_type
from stampbook.core.errors import DomainValidationError
from stampbook.services.statistics import (
    Granularity,
    compute_streaks,
    get_basic_statistics,
    get_growth_chart_data,
    get_period_statistics,
    get_pokemon_collection_statistics,
    get_stamp_type_statistics,
    percentage,
    safe_average,
)


def _world(db):
    family = make_family(db)
    child = make_child(db, family)
    help_type = make_stamp_type(db)
    study_type = make_stamp_type(db, family, name="ピアノ", color="#3B82F6")
    pokemons = make_catalog(db, common=3, legendary=1, mythical=1)
    common = pokemons[:3]
    legendary = pokemons[3]
    mythical = pokemons[4]
    return child, help_type, study_type, common, legendary, mythical


def test_no_stamps_gives_all_zero_statistics(db) -> None:
    family = make_family(db)
    child = make_child(db, family)

    stats = get_basic_statistics(db, child.id, now=datetime(2024, 6, 5, 12))

    assert stats.total_stamps == 0
    assert stats.today_stamps == 0
    assert stats.this_month_stamps == 0
    assert stats.this_year_stamps == 0
    assert stats.legendary_count == 0
    assert stats.mythical_count == 0
    assert stats.special_pokemon_rate == 0.0
    assert stats.current_streak_days == 0
    assert stats.longest_streak_days == 0


def test_basic_statistics_counts_by_period_and_rarity(db) -> None:
    child, help_type, study_type, common, legendary, mythical = _world(db)
    add_stamp(db, child, help_type, common[0], datetime(2023, 12, 31, 10))
    add_stamp(db, child, help_type, common[1], datetime(2024, 5, 30, 10))
    add_stamp(db, child, study_type, legendary, datetime(2024, 6, 4, 10))
    add_stamp(db, child, help_type, mythical, datetime(2024, 6, 5, 8))
    add_stamp(db, child, help_type, common[2], datetime(2024, 6, 5, 9))

    stats = get_basic_statistics(db, child.id, now=datetime(2024, 6, 5, 12))

    assert stats.total_stamps == 5
    assert stats.today_stamps == 2
    assert stats.this_month_stamps == 3
    assert stats.this_year_stamps == 4
    assert stats.legendary_count == 1
    assert stats.mythical_count == 1
    assert stats.special_pokemon_rate == 40.0
    assert stats.current_streak_days == 2
    assert stats.longest_streak_days == 2


def test_streaks_tolerate_missing_today() -> None:
    days = [date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3), date(2024, 6, 5), date(2024, 6, 6)]

    assert compute_streaks(days, date(2024, 6, 7)).current == 2
    assert compute_streaks(days, date(2024, 6, 6)).current == 2
    assert compute_streaks(days, date(2024, 6, 8)).current == 0
    assert compute_streaks(days, date(2024, 6, 8)).longest == 3


def test_percentage_helpers_guard_zero_divisors() -> None:
    assert percentage(3, 0) == 0.0
    assert percentage(1, 3) == 33.3
    assert safe_average(5, 0) == 0.0
    assert safe_average(7, 2) == 3.5


def test_daily_period_statistics_are_oldest_first(db) -> None:
    child, help_type, _study_type, common, _legendary, _mythical = _world(db)
    add_stamp(db, child, help_type, common[0], datetime(2024, 6, 3, 10))
    add_stamp(db, child, help_type, common[0], datetime(2024, 6, 5, 10))
    add_stamp(db, child, help_type, common[0], datetime(2024, 6, 5, 19))
    add_stamp(db, child, help_type, common[0], datetime(2024, 5, 1, 19))

    stats = get_period_statistics(db, child.id, granularity="daily", count=3, today=date(2024, 6, 5))

    assert [bucket.label for bucket in stats.buckets] == ["2024-06-03", "2024-06-04", "2024-06-05"]
    assert [bucket.count for bucket in stats.buckets] == [1, 0, 2]
    assert stats.total == 3
    assert stats.average == 1.0


def test_monthly_period_statistics_cross_year_boundary(db) -> None:
    child, help_type, _study_type, common, _legendary, _mythical = _world(db)
    add_stamp(db, child, help_type, common[0], datetime(2023, 12, 24, 10))
    add_stamp(db, child, help_type, common[0], datetime(2024, 2, 1, 10))

    stats = get_period_statistics(db, child.id, granularity=Granularity.MONTHLY, count=3, today=date(2024, 2, 10))

    assert [bucket.label for bucket in stats.buckets] == ["2023-12", "2024-01", "2024-02"]
    assert [bucket.count for bucket in stats.buckets] == [1, 0, 1]


def test_weekly_period_statistics_use_monday_weeks(db) -> None:
    child, help_type, _study_type, common, _legendary, _mythical = _world(db)
    add_stamp(db, child, help_type, common[0], datetime(2024, 6, 2, 10))
    add_stamp(db, child, help_type, common[0], datetime(2024, 6, 3, 10))

    stats = get_period_statistics(db, child.id, granularity="weekly", count=2, today=date(2024, 6, 5))

    assert [(bucket.start_date, bucket.end_date) for bucket in stats.buckets] == [
        (date(2024, 5, 27), date(2024, 6, 2)),
        (date(2024, 6, 3), date(2024, 6, 9)),
    ]
    assert [bucket.count for bucket in stats.buckets] == [1, 1]


def test_period_statistics_validate_arguments(db) -> None:
    family = make_family(db)
    child = make_child(db, family)

    with pytest.raises(DomainValidationError):
        get_period_statistics(db, child.id, granularity="hourly", count=3, today=date(2024, 6, 5))
    with pytest.raises(DomainValidationError):
        get_period_statistics(db, child.id, granularity="daily", count=0, today=date(2024, 6, 5))


def test_stamp_type_statistics_share_and_recent_stamps(db) -> None:
    child, help_type, study_type, common, legendary, _mythical = _world(db)
    for hour in range(8, 15):
        add_stamp(db, child, help_type, common[0], datetime(2024, 6, 5, hour))
    add_stamp(db, child, study_type, legendary, datetime(2024, 6, 5, 20))

    stats = get_stamp_type_statistics(db, child.id)

    assert [item.stamp_type.id for item in stats] == [help_type.id, study_type.id]
    assert stats[0].count == 7
    assert stats[0].percentage == 87.5
    assert len(stats[0].recent_stamps) == 5
    assert stats[0].recent_stamps[0].stamp.stamped_at == datetime(2024, 6, 5, 14)
    assert stats[1].legendary_count == 1

    with pytest.raises(DomainValidationError):
        get_stamp_type_statistics(db, child.id, start_date=date(2024, 6, 1))


def test_pokemon_collection_most_encountered_breaks_ties_by_first_meeting(db) -> None:
    child, help_type, _study_type, common, legendary, mythical = _world(db)
    add_stamp(db, child, help_type, common[1], datetime(2024, 6, 1, 10))
    add_stamp(db, child, help_type, common[0], datetime(2024, 6, 2, 10))
    add_stamp(db, child, help_type, common[0], datetime(2024, 6, 3, 10))
    add_stamp(db, child, help_type, common[1], datetime(2024, 6, 4, 10))
    add_stamp(db, child, help_type, legendary, datetime(2024, 6, 5, 10))
    add_stamp(db, child, help_type, mythical, datetime(2024, 6, 6, 10))

    stats = get_pokemon_collection_statistics(db, child.id)

    assert stats.total_unique_pokemons == 4
    assert stats.common_pokemons == 2
    assert stats.legendary_pokemons == 1
    assert stats.mythical_pokemons == 1
    assert stats.most_encountered is not None
    assert stats.most_encountered.pokemon.id == common[1].id
    assert stats.most_encountered.first_encounter == datetime(2024, 6, 1, 10)
    assert stats.most_encountered.last_encounter == datetime(2024, 6, 4, 10)
    assert [item.pokemon.id for item in stats.rarest_encounters] == [mythical.id]


def test_empty_collection_has_no_favourite(db) -> None:
    family = make_family(db)
    child = make_child(db, family)

    stats = get_pokemon_collection_statistics(db, child.id)

    assert stats.total_unique_pokemons == 0
    assert stats.most_encountered is None


def test_growth_chart_accumulates_within_window(db) -> None:
    child, help_type, _study_type, common, legendary, _mythical = _world(db)
    add_stamp(db, child, help_type, common[0], datetime(2024, 5, 31, 10))
    add_stamp(db, child, help_type, common[0], datetime(2024, 6, 3, 10))
    add_stamp(db, child, help_type, legendary, datetime(2024, 6, 3, 11))
    add_stamp(db, child, help_type, common[0], datetime(2024, 6, 5, 10))

    chart = get_growth_chart_data(db, child.id, days=5, today=date(2024, 6, 5))

    assert [point.date for point in chart.points] == [
        date(2024, 6, 1),
        date(2024, 6, 2),
        date(2024, 6, 3),
        date(2024, 6, 4),
        date(2024, 6, 5),
    ]
    assert [point.total_stamps for point in chart.points] == [0, 0, 2, 0, 1]
    assert [point.cumulative_total for point in chart.points] == [0, 0, 2, 2, 3]
    assert chart.points[2].legendary_stamps == 1
    assert chart.total_stamps == 3
    assert chart.average_per_day == 0.6
    assert chart.max_daily_stamps == 2
    assert chart.active_days == 2
