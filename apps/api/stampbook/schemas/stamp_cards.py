from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from stampbook.schemas.stamps import StampOut


class StampCardOut(BaseModel):
    id: int
    card_number: int
    target_stamps: int
    current_count: int
    remaining: int
    progress_percentage: int
    is_completed: bool
    completed_at: datetime | None
    stamps: list[StampOut]
