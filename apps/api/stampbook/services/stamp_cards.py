from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stampbook.models import Child, Stamp, StampCard

logger = logging.getLogger("stampbook.api.stamp_cards")


@dataclass(slots=True)
class CardProgress:
    card: StampCard
    current_count: int
    stamps: list[Stamp] = field(default_factory=list)

    @property
    def target(self) -> int:
        return self.card.target_stamps

    @property
    def remaining(self) -> int:
        return max(0, self.card.target_stamps - self.current_count)

    @property
    def percentage(self) -> int:
        if self.card.target_stamps <= 0:
            return 0
        return min(100, round(self.current_count / self.card.target_stamps * 100))


def count_card_stamps(db: Session, card_id: int) -> int:
    return int(db.scalar(select(func.count(Stamp.id)).where(Stamp.stamp_card_id == card_id)) or 0)


def would_complete(card: StampCard, pre_insert_count: int) -> bool:
    return pre_insert_count + 1 >= card.target_stamps


def get_current_card(db: Session, child_id: int) -> StampCard | None:
    return db.scalar(
        select(StampCard)
        .where(StampCard.child_id == child_id, StampCard.is_completed.is_(False))
        .order_by(StampCard.card_number.asc())
        .limit(1),
    )


def _next_card_number(db: Session, child_id: int) -> int:
    highest = db.scalar(select(func.max(StampCard.card_number)).where(StampCard.child_id == child_id))
    return int(highest or 0) + 1


def create_next_card(db: Session, child: Child) -> StampCard:
    card = StampCard(
        child_id=child.id,
        card_number=_next_card_number(db, child.id),
        target_stamps=child.target_stamps,
        is_completed=False,
    )
    db.add(card)
    db.flush()
    return card


def get_or_create_current_card(db: Session, child: Child) -> StampCard:
    """Return the child's open card, creating card #1 (or the successor) if none is open.

    Callers that go on to attach a stamp must hold the child row lock.
    """
    card = get_current_card(db, child.id)
    if card is not None:
        return card
    return create_next_card(db, child)


def complete_card(db: Session, card: StampCard, *, completed_at: datetime) -> None:
    if card.is_completed:
        return
    card.is_completed = True
    card.completed_at = completed_at
    db.flush()
    logger.info(
        "stamp_card.completed",
        extra={
            "child_id": card.child_id,
            "card_id": card.id,
            "card_number": card.card_number,
            "target_stamps": card.target_stamps,
        },
    )


def card_progress(db: Session, card: StampCard) -> CardProgress:
    stamps = list(
        db.scalars(
            select(Stamp).where(Stamp.stamp_card_id == card.id).order_by(Stamp.stamped_at.asc(), Stamp.id.asc()),
        ).all(),
    )
    return CardProgress(card=card, current_count=len(stamps), stamps=stamps)


def list_stamp_cards(db: Session, child_id: int) -> list[CardProgress]:
    cards = db.scalars(
        select(StampCard).where(StampCard.child_id == child_id).order_by(StampCard.card_number.asc()),
    ).all()
    if not cards:
        return []

    stamps = db.scalars(
        select(Stamp)
        .where(Stamp.stamp_card_id.in_([card.id for card in cards]))
        .order_by(Stamp.stamped_at.asc(), Stamp.id.asc()),
    ).all()
    by_card: dict[int, list[Stamp]] = {card.id: [] for card in cards}
    for stamp in stamps:
        by_card[stamp.stamp_card_id].append(stamp)

    return [
        CardProgress(card=card, current_count=len(by_card[card.id]), stamps=by_card[card.id])
        for card in cards
    ]


def rebuild_cards_for_legacy_stamps(db: Session, child: Child) -> dict[str, int]:
    """Attach stamps recorded before cards existed to sequential cards.

    Stamps are assigned oldest first into the child's open card, and each
    card that fills up is completed with the timestamp of its last stamp.
    """
    orphans = db.scalars(
        select(Stamp)
        .where(Stamp.child_id == child.id, Stamp.stamp_card_id.is_(None))
        .order_by(Stamp.stamped_at.asc(), Stamp.id.asc()),
    ).all()

    card = get_or_create_current_card(db, child)
    count = count_card_stamps(db, card.id)
    assigned = 0
    completed = 0
    for stamp in orphans:
        stamp.stamp_card_id = card.id
        assigned += 1
        count += 1
        if count >= card.target_stamps:
            db.flush()
            complete_card(db, card, completed_at=stamp.stamped_at)
            completed += 1
            card = create_next_card(db, child)
            count = 0
    db.flush()

    logger.info(
        "stamp_card.rebuild.completed",
        extra={"child_id": child.id, "result": {"assigned": assigned, "completed_cards": completed}},
    )
    return {"assigned": assigned, "completed_cards": completed, "open_card_number": card.card_number}
