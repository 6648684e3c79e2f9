from __future__ import annotations

from datetime import date, datetime

import pytest

from conftest import add_stamp, make_catalog, make_child, make_family, make_stamp_type
from stampbook.core.errors import DomainValidationError
from stampbook.services.calendars import (
    get_daily_detail,
    get_monthly_calendar,
    get_weekly_calendar,
    month_grid_window,
    sunday_based_weekday,
)
from stampbook.services.goals import create_weekly_goal
from stampbook.services.reports import generate_monthly_report


def test_sunday_based_weekday() -> None:
    assert sunday_based_weekday(date(2024, 2, 4)) == 0
    assert sunday_based_weekday(date(2024, 2, 5)) == 1
    assert sunday_based_weekday(date(2024, 2, 10)) == 6


def test_month_grid_covers_whole_weeks() -> None:
    window = month_grid_window(2024, 2)

    assert window.start == date(2024, 1, 28)
    assert window.end == date(2024, 3, 2)
    assert window.days == 35


def test_february_leap_year_calendar(db) -> None:
    family = make_family(db)
    child = make_child(db, family)
    stamp_type = make_stamp_type(db)
    pokemons = make_catalog(db, common=2, legendary=1, mythical=0)
    add_stamp(db, child, stamp_type, pokemons[0], datetime(2024, 2, 1, 9))
    add_stamp(db, child, stamp_type, pokemons[1], datetime(2024, 2, 14, 9))
    add_stamp(db, child, stamp_type, pokemons[2], datetime(2024, 2, 14, 18))
    add_stamp(db, child, stamp_type, pokemons[0], datetime(2024, 3, 1, 9))

    grid = get_monthly_calendar(db, child.id, year=2024, month=2, today=date(2024, 2, 14))

    assert len(grid.weeks) == 5
    assert all(len(week) == 7 for week in grid.weeks)
    assert grid.weeks[0][0].date == date(2024, 1, 28)
    assert grid.weeks[0][0].day_of_week == 0
    assert grid.weeks[0][0].is_current_month is False
    assert grid.total_stamps == 3
    assert grid.statistics.active_days == 2
    assert grid.statistics.average_per_day == 1.5
    assert grid.statistics.legendary_count == 1

    cells = {cell.date: cell for week in grid.weeks for cell in week}
    valentine = cells[date(2024, 2, 14)]
    assert valentine.stamps_count == 2
    assert valentine.has_legendary is True
    assert valentine.is_today is True
    assert cells[date(2024, 2, 29)].is_current_month is True
    # The March stamp is outside the month even though its cell is on the grid.
    assert cells[date(2024, 3, 1)].stamps_count == 0


def test_empty_month_has_zero_statistics(db) -> None:
    family = make_family(db)
    child = make_child(db, family)

    grid = get_monthly_calendar(db, child.id, year=2024, month=6, today=date(2024, 6, 1))

    assert grid.total_stamps == 0
    assert grid.statistics.average_per_day == 0.0
    assert grid.statistics.special_pokemon_rate == 0.0
    assert grid.statistics.stamp_types == []


def test_monthly_calendar_rejects_bad_month(db) -> None:
    family = make_family(db)
    child = make_child(db, family)

    with pytest.raises(DomainValidationError):
        get_monthly_calendar(db, child.id, year=2024, month=13, today=date(2024, 6, 1))


def test_calendar_views_reject_dates_outside_supported_years(db) -> None:
    family = make_family(db)
    child = make_child(db, family)
    today = date(2024, 6, 1)

    with pytest.raises(DomainValidationError):
        get_weekly_calendar(db, child.id, week_start=date.max, today=today)
    with pytest.raises(DomainValidationError):
        get_daily_detail(db, child.id, day=date(1999, 12, 31), today=today)
    with pytest.raises(DomainValidationError):
        get_monthly_calendar(db, child.id, year=2101, month=1, today=today)


def test_weekly_calendar_and_daily_detail(db) -> None:
    family = make_family(db)
    child = make_child(db, family)
    help_type = make_stamp_type(db)
    piano = make_stamp_type(db, family, name="ピアノ")
    pokemon = make_catalog(db, common=1, legendary=0, mythical=0)[0]
    add_stamp(db, child, help_type, pokemon, datetime(2024, 6, 4, 9))
    add_stamp(db, child, piano, pokemon, datetime(2024, 6, 4, 17))
    add_stamp(db, child, piano, pokemon, datetime(2024, 6, 4, 18))

    week = get_weekly_calendar(db, child.id, week_start=date(2024, 6, 3), today=date(2024, 6, 5))
    assert [cell.date for cell in week.days][0] == date(2024, 6, 3)
    assert len(week.days) == 7
    assert week.total_stamps == 3
    assert week.days[2].is_today is True

    detail = get_daily_detail(db, child.id, day=date(2024, 6, 4), today=date(2024, 6, 5))
    assert detail.stamps_count == 3
    assert detail.day_of_week == 2
    assert [(item.stamp_type.id, item.count) for item in detail.stamp_types] == [(piano.id, 2), (help_type.id, 1)]


def test_monthly_report_combines_activity_and_goals(db) -> None:
    family = make_family(db)
    child = make_child(db, family)
    stamp_type = make_stamp_type(db)
    pokemons = make_catalog(db, common=1, legendary=1, mythical=0)
    goal = create_weekly_goal(db, child=child, stamp_type_id=stamp_type.id, target_count=2, today=date(2024, 6, 3))
    db.commit()
    add_stamp(db, child, stamp_type, pokemons[0], datetime(2024, 6, 3, 9), opened=True)
    add_stamp(db, child, stamp_type, pokemons[1], datetime(2024, 6, 4, 9))
    add_stamp(db, child, stamp_type, pokemons[0], datetime(2024, 6, 4, 19))

    report = generate_monthly_report(db, child, year=2024, month=6, today=date(2024, 7, 1))

    assert report.label == "2024-06"
    assert report.summary.total_stamps == 3
    assert report.activity.total_days == 30
    assert report.activity.active_days == 2
    assert report.activity.activity_rate == 6.7
    assert report.activity.average_per_day == 1.5
    assert report.activity.opened_stamps == 1
    assert report.activity.unopened_stamps == 2
    assert report.pokemon.legendary_pokemons == 1
    assert report.growth.points[-1].cumulative_total == 3
    assert [item.goal.id for item in report.goals] == [goal.id]
    assert report.goals[0].current_count == 3
