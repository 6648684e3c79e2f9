from __future__ import annotations

import re

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from stampbook.core.errors import ConflictError, DomainValidationError, NotFoundError
from stampbook.models import Goal, Stamp, StampCategory, StampType

COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

SYSTEM_DEFAULT_STAMP_TYPES: tuple[dict[str, str], ...] = (
    {"name": "手伝い", "icon": "🤝", "color": "#10B981", "category": "help"},
    {"name": "勉強", "icon": "📚", "color": "#3B82F6", "category": "lifestyle"},
    {"name": "おかたづけ", "icon": "🧹", "color": "#F59E0B", "category": "help"},
    {"name": "運動", "icon": "🏃", "color": "#EF4444", "category": "behavior"},
    {"name": "いいこと", "icon": "😊", "color": "#8B5CF6", "category": "behavior"},
    {"name": "挨拶", "icon": "👋", "color": "#06B6D4", "category": "lifestyle"},
    {"name": "歯磨き", "icon": "🦷", "color": "#84CC16", "category": "lifestyle"},
    {"name": "優しさ", "icon": "💝", "color": "#EC4899", "category": "behavior"},
)


def _visible_to(family_id: int):
    return or_(StampType.family_id == family_id, StampType.is_system_default.is_(True))


def _validate(name: str, color: str, category: str) -> tuple[str, StampCategory]:
    clean_name = name.strip()
    if not clean_name:
        raise DomainValidationError("Stamp type name is required")
    if not COLOR_PATTERN.match(color):
        raise DomainValidationError("color must be a #RRGGBB hex value", details={"color": color})
    try:
        parsed_category = StampCategory(category)
    except ValueError as exc:
        raise DomainValidationError(
            "Unknown stamp category",
            details={"category": category, "allowed": [item.value for item in StampCategory]},
        ) from exc
    return clean_name, parsed_category


def _ensure_unique_name(db: Session, *, family_id: int, name: str, exclude_id: int | None = None) -> None:
    query = select(StampType.id).where(
        _visible_to(family_id),
        func.lower(StampType.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.where(StampType.id != exclude_id)
    if db.scalar(query) is not None:
        raise ConflictError("A stamp type with this name already exists", details={"name": name})


def list_stamp_types_for_family(db: Session, *, family_id: int) -> list[StampType]:
    return list(
        db.scalars(
            select(StampType)
            .where(_visible_to(family_id))
            .order_by(StampType.is_system_default.desc(), StampType.name.asc()),
        ).all(),
    )


def get_visible_stamp_type(db: Session, *, family_id: int, stamp_type_id: int) -> StampType:
    stamp_type = db.scalar(select(StampType).where(StampType.id == stamp_type_id, _visible_to(family_id)))
    if stamp_type is None:
        raise NotFoundError("Stamp type not found")
    return stamp_type


def _get_custom_stamp_type(db: Session, *, family_id: int, stamp_type_id: int) -> StampType:
    stamp_type = db.scalar(
        select(StampType).where(
            StampType.id == stamp_type_id,
            StampType.family_id == family_id,
            StampType.is_custom.is_(True),
        ),
    )
    if stamp_type is None:
        raise NotFoundError("Custom stamp type not found")
    return stamp_type


def create_custom_stamp_type(
    db: Session,
    *,
    family_id: int,
    name: str,
    icon: str,
    color: str,
    category: str = StampCategory.CUSTOM.value,
) -> StampType:
    clean_name, parsed_category = _validate(name, color, category)
    _ensure_unique_name(db, family_id=family_id, name=clean_name)
    stamp_type = StampType(
        name=clean_name,
        icon=icon,
        color=color.upper(),
        category=parsed_category,
        is_custom=True,
        is_system_default=False,
        family_id=family_id,
    )
    db.add(stamp_type)
    db.flush()
    return stamp_type


def update_custom_stamp_type(
    db: Session,
    *,
    family_id: int,
    stamp_type_id: int,
    name: str,
    icon: str,
    color: str,
    category: str,
) -> StampType:
    stamp_type = _get_custom_stamp_type(db, family_id=family_id, stamp_type_id=stamp_type_id)
    clean_name, parsed_category = _validate(name, color, category)
    if clean_name.lower() != stamp_type.name.lower():
        _ensure_unique_name(db, family_id=family_id, name=clean_name, exclude_id=stamp_type.id)
    stamp_type.name = clean_name
    stamp_type.icon = icon
    stamp_type.color = color.upper()
    stamp_type.category = parsed_category
    db.flush()
    return stamp_type


def delete_custom_stamp_type(db: Session, *, family_id: int, stamp_type_id: int) -> None:
    stamp_type = _get_custom_stamp_type(db, family_id=family_id, stamp_type_id=stamp_type_id)
    in_use = db.scalar(select(func.count(Stamp.id)).where(Stamp.stamp_type_id == stamp_type.id)) or 0
    in_use += db.scalar(select(func.count(Goal.id)).where(Goal.stamp_type_id == stamp_type.id)) or 0
    if in_use:
        raise ConflictError("Stamp type is used by stamps or goals and cannot be deleted")
    db.delete(stamp_type)
    db.flush()


def seed_system_defaults(db: Session) -> int:
    existing = set(
        db.scalars(select(StampType.name).where(StampType.is_system_default.is_(True))).all(),
    )
    created = 0
    for row in SYSTEM_DEFAULT_STAMP_TYPES:
        if row["name"] in existing:
            continue
        db.add(
            StampType(
                name=row["name"],
                icon=row["icon"],
                color=row["color"],
                category=StampCategory(row["category"]),
                is_custom=False,
                is_system_default=True,
                family_id=None,
            ),
        )
        created += 1
    db.flush()
    return created
