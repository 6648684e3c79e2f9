from __future__ import annotations

from fastapi import APIRouter, status

from stampbook.api.deps import DBSession
from stampbook.schemas.auth import AuthToken, LoginRequest, SetupRequest
from stampbook.services.auth import authenticate, setup_admin

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/setup", response_model=AuthToken, status_code=status.HTTP_201_CREATED)
def setup(payload: SetupRequest, db: DBSession) -> AuthToken:
    session = setup_admin(db, family_name=payload.family_name, password=payload.password)
    return AuthToken(access_token=session.access_token, admin_id=session.admin_id, family_id=session.family_id)


@router.post("/login", response_model=AuthToken)
def login(payload: LoginRequest, db: DBSession) -> AuthToken:
    session = authenticate(db, password=payload.password, family_id=payload.family_id)
    return AuthToken(access_token=session.access_token, admin_id=session.admin_id, family_id=session.family_id)
