from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stampbook.core.errors import AuthenticationError, ConflictError, DomainValidationError
from stampbook.core.security import (
    create_access_token,
    hash_password,
    validate_password_strength,
    verify_password,
)
from stampbook.models import Admin, Family

logger = logging.getLogger("stampbook.api.auth")


@dataclass(frozen=True, slots=True)
class AdminSession:
    admin_id: int
    family_id: int
    access_token: str


def setup_admin(db: Session, *, family_name: str, password: str) -> AdminSession:
    if (db.scalar(select(func.count(Admin.id))) or 0) > 0:
        raise ConflictError("An administrator is already configured")

    password_error = validate_password_strength(password)
    if password_error is not None:
        raise DomainValidationError(password_error)

    family = Family(name=family_name.strip())
    db.add(family)
    db.flush()
    admin = Admin(family_id=family.id, password_hash=hash_password(password))
    db.add(admin)
    db.commit()

    logger.info("auth.setup.completed", extra={"family_id": family.id, "admin_id": admin.id})
    return AdminSession(
        admin_id=admin.id,
        family_id=family.id,
        access_token=create_access_token(admin_id=admin.id, family_id=family.id),
    )


def authenticate(db: Session, *, password: str, family_id: int | None = None) -> AdminSession:
    query = select(Admin).order_by(Admin.id.asc())
    if family_id is not None:
        query = query.where(Admin.family_id == family_id)

    for admin in db.scalars(query).all():
        if verify_password(password, admin.password_hash):
            logger.info("auth.login.succeeded", extra={"family_id": admin.family_id, "admin_id": admin.id})
            return AdminSession(
                admin_id=admin.id,
                family_id=admin.family_id,
                access_token=create_access_token(admin_id=admin.id, family_id=admin.family_id),
            )

    logger.warning("auth.login.failed", extra={"family_id": family_id})
    raise AuthenticationError("Invalid credentials")
