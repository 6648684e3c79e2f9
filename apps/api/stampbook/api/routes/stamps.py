from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from stampbook.api.deps import DBSession, FamilyChild
from stampbook.schemas.stamps import (
    CardInfoOut,
    SpecialPokemonOut,
    StampCreateRequest,
    StampCreateResponse,
    StampOut,
    UnopenedCountOut,
    build_stamp_out,
)
from stampbook.services import stamps as stamps_service
from stampbook.services.periods import local_now, to_local_naive
from stampbook.services.statistics import StampRow

router = APIRouter(prefix="/children/{child_id}/stamps", tags=["stamps"])


@router.get("", response_model=list[StampOut])
def list_stamps(
    db: DBSession,
    child: FamilyChild,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> list[StampOut]:
    stamps = stamps_service.list_stamps(db, child.id, limit=limit)
    return [build_stamp_out(row) for row in stamps_service.describe_stamps(db, stamps)]


@router.post("", response_model=StampCreateResponse, status_code=status.HTTP_201_CREATED)
def create_stamp(payload: StampCreateRequest, db: DBSession, child: FamilyChild) -> StampCreateResponse:
    result = stamps_service.create_stamp(
        db,
        child=child,
        stamp_type_id=payload.stamp_type_id,
        comment=payload.comment,
        stamped_at=to_local_naive(payload.stamped_at) if payload.stamped_at else None,
    )
    [row] = stamps_service.describe_stamps(db, [result.stamp])
    card = result.card
    return StampCreateResponse(
        stamp=build_stamp_out(row),
        card=CardInfoOut(
            card_completed=card.card_completed,
            completed_card_number=card.completed_card_number,
            current_card_id=card.current_card.id,
            current_card_number=card.current_card.card_number,
            current_count=card.current_count,
            target_stamps=card.target_stamps,
        ),
        special=SpecialPokemonOut(
            is_special=result.special.is_special,
            reason=result.special.reason,
            is_card_completion=result.special.is_card_completion,
            total_stamp_count=result.special.total_stamp_count,
        ),
        achieved_goal_ids=[goal.id for goal in result.achieved_goals],
    )


@router.get("/unopened-count", response_model=UnopenedCountOut)
def unopened_count(db: DBSession, child: FamilyChild) -> UnopenedCountOut:
    return UnopenedCountOut(child_id=child.id, count=stamps_service.count_unopened_stamps(db, child.id))


def _single(db: DBSession, child_id: int, stamp_id: int) -> StampRow:
    stamp = stamps_service.get_stamp(db, child_id=child_id, stamp_id=stamp_id)
    [row] = stamps_service.describe_stamps(db, [stamp])
    return row


@router.get("/{stamp_id}", response_model=StampOut)
def get_stamp(stamp_id: int, db: DBSession, child: FamilyChild) -> StampOut:
    return build_stamp_out(_single(db, child.id, stamp_id))


@router.post("/{stamp_id}/open", response_model=StampOut)
def open_stamp(stamp_id: int, db: DBSession, child: FamilyChild) -> StampOut:
    row = _single(db, child.id, stamp_id)
    stamps_service.open_stamp(db, row.stamp, now=local_now())
    db.commit()
    return build_stamp_out(row)


@router.delete("/{stamp_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_stamp(stamp_id: int, db: DBSession, child: FamilyChild) -> Response:
    stamp = stamps_service.get_stamp(db, child_id=child.id, stamp_id=stamp_id)
    stamps_service.delete_stamp(db, stamp)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
