from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from stampbook.schemas.pokemon import PokemonOut, build_pokemon_out
from stampbook.schemas.stamp_types import StampTypeOut
from stampbook.services.statistics import StampRow


class StampCreateRequest(BaseModel):
    stamp_type_id: int = Field(ge=1)
    comment: str | None = Field(default=None, max_length=500)
    stamped_at: datetime | None = None


class StampOut(BaseModel):
    id: int
    child_id: int
    stamp_card_id: int | None
    stamped_at: datetime
    comment: str | None
    opened_at: datetime | None
    is_opened: bool
    stamp_type: StampTypeOut
    pokemon: PokemonOut


class CardInfoOut(BaseModel):
    card_completed: bool
    completed_card_number: int | None
    current_card_id: int
    current_card_number: int
    current_count: int
    target_stamps: int


class SpecialPokemonOut(BaseModel):
    is_special: bool
    reason: str | None
    is_card_completion: bool
    total_stamp_count: int


class StampCreateResponse(BaseModel):
    stamp: StampOut
    card: CardInfoOut
    special: SpecialPokemonOut
    achieved_goal_ids: list[int]


class UnopenedCountOut(BaseModel):
    child_id: int
    count: int


def build_stamp_out(row: StampRow) -> StampOut:
    stamp = row.stamp
    return StampOut(
        id=stamp.id,
        child_id=stamp.child_id,
        stamp_card_id=stamp.stamp_card_id,
        stamped_at=stamp.stamped_at,
        comment=stamp.comment,
        opened_at=stamp.opened_at,
        is_opened=stamp.opened_at is not None,
        stamp_type=StampTypeOut.model_validate(row.stamp_type),
        pokemon=build_pokemon_out(row.pokemon),
    )
