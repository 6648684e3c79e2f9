from __future__ import annotations

from pydantic import BaseModel, Field


class SetupRequest(BaseModel):
    family_name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    password: str
    family_id: int | None = None


class AuthToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    admin_id: int
    family_id: int
