from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class ChildCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    birth_date: date | None = None
    target_stamps: int | None = Field(default=None, ge=1, le=100)


class ChildUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    birth_date: date | None = None
    target_stamps: int = Field(ge=1, le=100)


class ChildOut(BaseModel):
    id: int
    name: str
    birth_date: date | None
    age: int | None
    age_group: str
    target_stamps: int
    created_at: datetime
