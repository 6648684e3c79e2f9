from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from stampbook.models import StampCategory


class StampTypeWriteRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    icon: str = Field(min_length=1, max_length=32)
    color: str = Field(pattern=r"^#[0-9A-Fa-f]{6}$")
    category: StampCategory = StampCategory.CUSTOM


class StampTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    icon: str
    color: str
    category: StampCategory
    is_custom: bool
    is_system_default: bool
