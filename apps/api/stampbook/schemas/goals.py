from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from stampbook.models import GoalPeriodType
from stampbook.services.goals import GoalProgress


class GoalCreateRequest(BaseModel):
    stamp_type_id: int = Field(ge=1)
    target_count: int = Field(ge=1)
    period_type: GoalPeriodType
    start_date: date
    end_date: date | None = None
    reward_text: str | None = Field(default=None, max_length=255)


class PeriodGoalCreateRequest(BaseModel):
    stamp_type_id: int = Field(ge=1)
    target_count: int = Field(ge=1)
    reward_text: str | None = Field(default=None, max_length=255)


class GoalUpdateRequest(BaseModel):
    target_count: int = Field(ge=1)
    reward_text: str | None = Field(default=None, max_length=255)


class GoalOut(BaseModel):
    id: int
    child_id: int
    stamp_type_id: int
    target_count: int
    period_type: GoalPeriodType
    start_date: date
    end_date: date
    reward_text: str | None
    is_achieved: bool
    achieved_at: datetime | None
    current_count: int
    progress_percentage: int
    remaining_days: int


class GoalCheckOut(BaseModel):
    goal_id: int
    is_achieved: bool


class AchievementCheckOut(BaseModel):
    newly_achieved: list[GoalOut]


class GoalSummaryOut(BaseModel):
    active_goals: int
    achieved_goals: int
    average_progress: float
    urgent_goals: list[GoalOut]


def build_goal_out(progress: GoalProgress) -> GoalOut:
    goal = progress.goal
    return GoalOut(
        id=goal.id,
        child_id=goal.child_id,
        stamp_type_id=goal.stamp_type_id,
        target_count=goal.target_count,
        period_type=goal.period_type,
        start_date=goal.start_date,
        end_date=goal.end_date,
        reward_text=goal.reward_text,
        is_achieved=goal.is_achieved,
        achieved_at=goal.achieved_at,
        current_count=progress.current_count,
        progress_percentage=progress.progress_percentage,
        remaining_days=progress.remaining_days,
    )
