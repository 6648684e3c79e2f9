from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWTError
from sqlalchemy.orm import Session

from stampbook.core.errors import AuthenticationError
from stampbook.core.security import decode_token
from stampbook.db.session import SessionLocal
from stampbook.models import Admin, Child
from stampbook.services.children import get_child

auth_scheme = HTTPBearer(auto_error=False)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


DBSession = Annotated[Session, Depends(get_db)]


@dataclass(frozen=True, slots=True)
class AdminContext:
    admin_id: int
    family_id: int


def get_admin_context(
    db: DBSession,
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(auth_scheme)],
) -> AdminContext:
    if credentials is None:
        raise AuthenticationError("Missing authorization token")

    try:
        payload = decode_token(credentials.credentials)
    except PyJWTError as exc:
        raise AuthenticationError("Invalid token") from exc

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid access token")

    sub = payload.get("sub")
    family_id = payload.get("family_id")
    if not isinstance(sub, str) or not sub.isdigit() or not isinstance(family_id, int):
        raise AuthenticationError("Invalid token subject")

    admin = db.get(Admin, int(sub))
    if admin is None or admin.family_id != family_id:
        raise AuthenticationError("Administrator not found")

    request.state.admin_id = admin.id
    request.state.family_id = admin.family_id
    return AdminContext(admin_id=admin.id, family_id=admin.family_id)


CurrentAdmin = Annotated[AdminContext, Depends(get_admin_context)]


def get_family_child(
    db: DBSession,
    admin: CurrentAdmin,
    request: Request,
    child_id: Annotated[int, Path(ge=1)],
) -> Child:
    child = get_child(db, family_id=admin.family_id, child_id=child_id)
    request.state.child_id = child.id
    return child


FamilyChild = Annotated[Child, Depends(get_family_child)]
