from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import func, select, update

from conftest import make_catalog, make_child, make_family, make_stamp_type
from stampbook.core.errors import NotFoundError, PokemonUnavailableError
from stampbook.models import Child, GoalPeriodType, PokemonRarity, Stamp, StampCard
from stampbook.services import pokemon_selector
from stampbook.services.goals import create_goal
from stampbook.services.stamp_cards import get_current_card, list_stamp_cards
from stampbook.services.stamps import (
    count_unopened_stamps,
    create_stamp,
    delete_stamp,
    list_stamps,
    open_stamp,
)


@pytest.fixture(autouse=True)
def _no_mythical_roll(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pokemon_selector, "roll_mythical", lambda odds=100: False)


def _at(day: int, hour: int = 9) -> datetime:
    return datetime(2024, 6, day, hour, 0)


def test_third_stamp_completes_card_and_draws_legendary(db) -> None:
    family = make_family(db)
    child = make_child(db, family, target_stamps=3)
    stamp_type = make_stamp_type(db)
    make_catalog(db, mythical=0)

    results = [create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(3, 9 + i)) for i in range(3)]

    first, second, third = results
    assert first.card.card_completed is False
    assert first.card.current_count == 1
    assert second.card.current_count == 2
    assert first.special.rarity == PokemonRarity.COMMON
    assert second.special.is_special is False

    assert third.card.card_completed is True
    assert third.card.completed_card_number == 1
    assert third.card.current_card.card_number == 2
    assert third.card.current_count == 0
    assert third.special.rarity == PokemonRarity.LEGENDARY
    assert third.special.reason == pokemon_selector.REASON_CARD_COMPLETION
    assert third.special.total_stamp_count == 3
    assert third.pokemon.is_legendary is True

    cards = list_stamp_cards(db, child.id)
    assert [progress.card.card_number for progress in cards] == [1, 2]
    assert cards[0].card.is_completed is True
    assert cards[0].card.completed_at == _at(3, 11)
    assert cards[0].current_count == 3
    assert cards[1].card.is_completed is False
    assert cards[1].current_count == 0


def test_completed_card_stays_completed(db) -> None:
    family = make_family(db)
    child = make_child(db, family, target_stamps=2)
    stamp_type = make_stamp_type(db)
    make_catalog(db)

    first = create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(3))
    create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(4))
    fourth_day = create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(5))

    delete_stamp(db, first.stamp)
    db.commit()

    cards = list_stamp_cards(db, child.id)
    assert cards[0].card.is_completed is True
    assert cards[0].current_count == 1
    assert fourth_day.stamp.stamp_card_id == cards[1].card.id
    assert get_current_card(db, child.id).id == cards[1].card.id


def test_next_card_uses_target_from_locked_child_row(db) -> None:
    family = make_family(db)
    child = make_child(db, family, target_stamps=2)
    stamp_type = make_stamp_type(db)
    make_catalog(db)
    create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(3))

    # Edited elsewhere: the loaded instance still carries the old target.
    db.execute(
        update(Child)
        .where(Child.id == child.id)
        .values(target_stamps=5)
        .execution_options(synchronize_session=False),
    )
    db.commit()
    assert child.target_stamps == 2

    second = create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(4))

    assert second.card.card_completed is True
    assert second.card.current_card.target_stamps == 5
    assert child.target_stamps == 5


def test_failed_draw_rolls_back_everything(db) -> None:
    family = make_family(db)
    child = make_child(db, family, target_stamps=1)
    stamp_type = make_stamp_type(db)
    make_catalog(db, legendary=0)

    with pytest.raises(PokemonUnavailableError):
        create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(3))

    assert db.scalar(select(func.count(Stamp.id))) == 0
    assert db.scalar(select(func.count(StampCard.id))) == 0


def test_stamp_type_of_another_family_is_not_visible(db) -> None:
    family = make_family(db)
    other = make_family(db, name="Suzuki")
    child = make_child(db, family)
    foreign_type = make_stamp_type(db, other, name="ピアノ")
    make_catalog(db)

    with pytest.raises(NotFoundError):
        create_stamp(db, child=child, stamp_type_id=foreign_type.id, stamped_at=_at(3))

    assert db.scalar(select(func.count(Stamp.id))) == 0


def test_stamp_reports_goals_it_achieves(db) -> None:
    family = make_family(db)
    child = make_child(db, family)
    stamp_type = make_stamp_type(db)
    make_catalog(db)
    goal = create_goal(
        db,
        child=child,
        stamp_type_id=stamp_type.id,
        target_count=2,
        period_type=GoalPeriodType.WEEKLY,
        start_date=date(2024, 6, 3),
    )
    db.commit()

    first = create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(4))
    second = create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(5))

    assert first.achieved_goals == []
    assert [item.id for item in second.achieved_goals] == [goal.id]
    assert goal.is_achieved is True
    assert goal.achieved_at == _at(5)


def test_blank_comment_is_stored_as_none(db) -> None:
    family = make_family(db)
    child = make_child(db, family)
    stamp_type = make_stamp_type(db)
    make_catalog(db)

    blank = create_stamp(db, child=child, stamp_type_id=stamp_type.id, comment="   ", stamped_at=_at(3))
    kept = create_stamp(db, child=child, stamp_type_id=stamp_type.id, comment=" お皿洗い ", stamped_at=_at(4))

    assert blank.stamp.comment is None
    assert kept.stamp.comment == "お皿洗い"


def test_open_stamp_is_idempotent(db) -> None:
    family = make_family(db)
    child = make_child(db, family)
    stamp_type = make_stamp_type(db)
    make_catalog(db)
    result = create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(3))
    assert count_unopened_stamps(db, child.id) == 1

    open_stamp(db, result.stamp, now=_at(3, 18))
    open_stamp(db, result.stamp, now=_at(4, 18))
    db.commit()

    assert result.stamp.opened_at == _at(3, 18)
    assert count_unopened_stamps(db, child.id) == 0


def test_list_stamps_newest_first_with_limit(db) -> None:
    family = make_family(db)
    child = make_child(db, family)
    stamp_type = make_stamp_type(db)
    make_catalog(db)
    for day in (3, 5, 4):
        create_stamp(db, child=child, stamp_type_id=stamp_type.id, stamped_at=_at(day))

    stamps = list_stamps(db, child.id, limit=2)

    assert [stamp.stamped_at for stamp in stamps] == [_at(5), _at(4)]
