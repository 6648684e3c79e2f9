from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from stampbook.core.config import settings
from stampbook.core.errors import DomainValidationError, NotFoundError
from stampbook.models import Child, Goal, Stamp, StampCard

logger = logging.getLogger("stampbook.api.children")

MIN_TARGET_STAMPS = 1
MAX_TARGET_STAMPS = 100

AGE_GROUP_UNKNOWN = "unknown"


def calculate_age(birth_date: date | None, on: date) -> int | None:
    if birth_date is None:
        return None
    had_birthday = (on.month, on.day) >= (birth_date.month, birth_date.day)
    return on.year - birth_date.year - (0 if had_birthday else 1)


def age_group(age: int | None) -> str:
    if age is None:
        return AGE_GROUP_UNKNOWN
    if age < 3:
        return "0-2"
    if age <= 5:
        return "3-5"
    if age <= 8:
        return "6-8"
    if age <= 12:
        return "9-12"
    return "13+"


def _validate_target(target_stamps: int) -> None:
    if not MIN_TARGET_STAMPS <= target_stamps <= MAX_TARGET_STAMPS:
        raise DomainValidationError(
            f"target_stamps must be between {MIN_TARGET_STAMPS} and {MAX_TARGET_STAMPS}",
            details={"target_stamps": target_stamps},
        )


def _validate_birth_date(birth_date: date | None, today: date) -> None:
    if birth_date is not None and birth_date > today:
        raise DomainValidationError("birth_date cannot be in the future")


def get_child(db: Session, *, family_id: int, child_id: int, for_update: bool = False) -> Child:
    query = select(Child).where(Child.id == child_id, Child.family_id == family_id)
    if for_update:
        query = query.with_for_update()
    child = db.scalar(query)
    if child is None:
        raise NotFoundError("Child not found")
    return child


def lock_child(db: Session, child: Child) -> Child:
    """Take the per-child row lock that serialises card changes and reload ``child`` from the locked row."""
    db.refresh(child, with_for_update=True)
    return child


def list_children(db: Session, *, family_id: int) -> list[Child]:
    return list(
        db.scalars(select(Child).where(Child.family_id == family_id).order_by(Child.id.asc())).all(),
    )


def create_child(
    db: Session,
    *,
    family_id: int,
    name: str,
    birth_date: date | None,
    target_stamps: int | None,
    today: date,
) -> Child:
    target = settings.default_target_stamps if target_stamps is None else target_stamps
    _validate_target(target)
    _validate_birth_date(birth_date, today)

    child = Child(family_id=family_id, name=name.strip(), birth_date=birth_date, target_stamps=target)
    db.add(child)
    db.flush()
    logger.info("child.created", extra={"family_id": family_id, "child_id": child.id, "target_stamps": target})
    return child


def update_child(
    db: Session,
    child: Child,
    *,
    name: str,
    birth_date: date | None,
    target_stamps: int,
    today: date,
) -> Child:
    _validate_target(target_stamps)
    _validate_birth_date(birth_date, today)

    # Cards already issued keep the target they were created with.
    child.name = name.strip()
    child.birth_date = birth_date
    child.target_stamps = target_stamps
    db.flush()
    return child


def delete_child(db: Session, child: Child) -> None:
    db.execute(delete(Goal).where(Goal.child_id == child.id))
    db.execute(delete(Stamp).where(Stamp.child_id == child.id))
    db.execute(delete(StampCard).where(StampCard.child_id == child.id))
    db.delete(child)
    db.flush()
    logger.info("child.deleted", extra={"family_id": child.family_id, "child_id": child.id})
