"""Stamp recording: one reward event, one Pokémon, one card update, in one transaction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stampbook.core.errors import NotFoundError
from stampbook.models import Child, Goal, Pokemon, PokemonRarity, Stamp, StampCard, StampType
from stampbook.services.children import lock_child
from stampbook.services.goals import check_goal_achievements
from stampbook.services.periods import DateWindow, local_now
from stampbook.services.pokemon_selector import load_catalog, select_special_pokemon
from stampbook.services.stamp_cards import (
    complete_card,
    count_card_stamps,
    create_next_card,
    get_or_create_current_card,
    would_complete,
)
from stampbook.services.stamp_types import get_visible_stamp_type
from stampbook.services.statistics import StampRow

logger = logging.getLogger("stampbook.api.stamps")


@dataclass(frozen=True, slots=True)
class CardOutcome:
    card_completed: bool
    completed_card_number: int | None
    current_card: StampCard
    current_count: int
    target_stamps: int


@dataclass(frozen=True, slots=True)
class SpecialPokemonInfo:
    is_special: bool
    reason: str | None
    rarity: PokemonRarity
    is_card_completion: bool
    total_stamp_count: int


@dataclass(frozen=True, slots=True)
class StampCreationResult:
    stamp: Stamp
    pokemon: Pokemon
    card: CardOutcome
    special: SpecialPokemonInfo
    achieved_goals: list[Goal]


def count_child_stamps(db: Session, child_id: int) -> int:
    return int(db.scalar(select(func.count(Stamp.id)).where(Stamp.child_id == child_id)) or 0)


def create_stamp(
    db: Session,
    *,
    child: Child,
    stamp_type_id: int,
    comment: str | None = None,
    stamped_at: datetime | None = None,
) -> StampCreationResult:
    """Record a stamp for ``child`` and commit.

    Any failure (invisible stamp type, empty rarity tier, constraint error)
    rolls the whole unit back so no stamp, card or goal change survives.
    """
    moment = stamped_at or local_now()
    try:
        lock_child(db, child)

        stamp_type = get_visible_stamp_type(db, family_id=child.family_id, stamp_type_id=stamp_type_id)
        card = get_or_create_current_card(db, child)
        pre_insert_count = count_card_stamps(db, card.id)
        completes_card = would_complete(card, pre_insert_count)

        draw = select_special_pokemon(load_catalog(db), card_completed=completes_card)

        stamp = Stamp(
            child_id=child.id,
            stamp_type_id=stamp_type.id,
            pokemon_id=draw.pokemon.id,
            stamp_card_id=card.id,
            stamped_at=moment,
            comment=comment.strip() if comment and comment.strip() else None,
        )
        db.add(stamp)
        db.flush()

        if completes_card:
            complete_card(db, card, completed_at=moment)
            current_card = create_next_card(db, child)
            current_count = 0
        else:
            current_card = card
            current_count = pre_insert_count + 1

        achieved = check_goal_achievements(db, child.id, at=moment, stamp_type_id=stamp_type.id)
        total = count_child_stamps(db, child.id)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "stamp.created",
        extra={
            "family_id": child.family_id,
            "child_id": child.id,
            "stamp_id": stamp.id,
            "stamp_type_id": stamp.stamp_type_id,
            "card_id": card.id,
            "card_number": card.card_number,
            "pokemon_id": draw.pokemon.id,
            "rarity": draw.rarity.value,
        },
    )
    return StampCreationResult(
        stamp=stamp,
        pokemon=draw.pokemon,
        card=CardOutcome(
            card_completed=completes_card,
            completed_card_number=card.card_number if completes_card else None,
            current_card=current_card,
            current_count=current_count,
            target_stamps=current_card.target_stamps,
        ),
        special=SpecialPokemonInfo(
            is_special=draw.is_special,
            reason=draw.reason,
            rarity=draw.rarity,
            is_card_completion=completes_card,
            total_stamp_count=total,
        ),
        achieved_goals=achieved,
    )


def get_stamp(db: Session, *, child_id: int, stamp_id: int) -> Stamp:
    stamp = db.scalar(select(Stamp).where(Stamp.id == stamp_id, Stamp.child_id == child_id))
    if stamp is None:
        raise NotFoundError("Stamp not found")
    return stamp


def open_stamp(db: Session, stamp: Stamp, *, now: datetime) -> Stamp:
    if stamp.opened_at is None:
        stamp.opened_at = now
        db.flush()
    return stamp


def count_unopened_stamps(db: Session, child_id: int) -> int:
    return int(
        db.scalar(
            select(func.count(Stamp.id)).where(Stamp.child_id == child_id, Stamp.opened_at.is_(None)),
        )
        or 0,
    )


def list_stamps(db: Session, child_id: int, *, limit: int | None = None) -> list[Stamp]:
    query = select(Stamp).where(Stamp.child_id == child_id).order_by(Stamp.stamped_at.desc(), Stamp.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return list(db.scalars(query).all())


def list_stamps_between(db: Session, child_id: int, window: DateWindow) -> list[Stamp]:
    return list(
        db.scalars(
            select(Stamp)
            .where(
                Stamp.child_id == child_id,
                Stamp.stamped_at >= window.starts_at,
                Stamp.stamped_at <= window.ends_at,
            )
            .order_by(Stamp.stamped_at.desc(), Stamp.id.desc()),
        ).all(),
    )


def delete_stamp(db: Session, stamp: Stamp) -> None:
    # Completed cards and achieved goals are left as they are.
    db.delete(stamp)
    db.flush()
    logger.info("stamp.deleted", extra={"child_id": stamp.child_id, "stamp_id": stamp.id})


def describe_stamps(db: Session, stamps: list[Stamp]) -> list[StampRow]:
    """Pair each stamp with its Pokémon and stamp type, keeping the input order."""
    if not stamps:
        return []
    pokemon_ids = sorted({stamp.pokemon_id for stamp in stamps})
    pokemons = {pokemon.id: pokemon for pokemon in db.scalars(select(Pokemon).where(Pokemon.id.in_(pokemon_ids)))}
    stamp_types = {
        stamp_type.id: stamp_type
        for stamp_type in db.scalars(
            select(StampType).where(StampType.id.in_(sorted({stamp.stamp_type_id for stamp in stamps}))),
        )
    }
    return [
        StampRow(stamp=stamp, pokemon=pokemons[stamp.pokemon_id], stamp_type=stamp_types[stamp.stamp_type_id])
        for stamp in stamps
    ]
