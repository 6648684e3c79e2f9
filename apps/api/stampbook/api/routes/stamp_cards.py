from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy.orm import Session

from stampbook.api.deps import DBSession, FamilyChild
from stampbook.schemas.stamp_cards import StampCardOut
from stampbook.schemas.stamps import build_stamp_out
from stampbook.services.children import lock_child
from stampbook.services.stamp_cards import CardProgress, card_progress, get_or_create_current_card, list_stamp_cards
from stampbook.services.stamps import describe_stamps

router = APIRouter(prefix="/children/{child_id}/stamp-cards", tags=["stamp-cards"])


def _card_out(db: Session, progress: CardProgress) -> StampCardOut:
    card = progress.card
    return StampCardOut(
        id=card.id,
        card_number=card.card_number,
        target_stamps=card.target_stamps,
        current_count=progress.current_count,
        remaining=progress.remaining,
        progress_percentage=progress.percentage,
        is_completed=card.is_completed,
        completed_at=card.completed_at,
        stamps=[build_stamp_out(row) for row in describe_stamps(db, progress.stamps)],
    )


@router.get("", response_model=list[StampCardOut])
def list_cards(db: DBSession, child: FamilyChild) -> list[StampCardOut]:
    return [_card_out(db, progress) for progress in list_stamp_cards(db, child.id)]


@router.get("/current", response_model=StampCardOut)
def current_card(db: DBSession, child: FamilyChild) -> StampCardOut:
    lock_child(db, child)
    card = get_or_create_current_card(db, child)
    db.commit()
    return _card_out(db, card_progress(db, card))
