from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stampbook.core.errors import ConflictError, DomainValidationError, NotFoundError
from stampbook.models import Child, Goal, GoalPeriodType, Stamp
from stampbook.services.periods import DateWindow, month_window, week_window
from stampbook.services.stamp_types import get_visible_stamp_type

logger = logging.getLogger("stampbook.api.goals")

DEFAULT_WEEKLY_REWARD = "Weekly goal reward"
DEFAULT_MONTHLY_REWARD = "Monthly goal reward"

URGENT_REMAINING_DAYS = 3
URGENT_PROGRESS_BELOW = 50


@dataclass(frozen=True, slots=True)
class GoalProgress:
    goal: Goal
    current_count: int
    progress_percentage: int
    remaining_days: int


@dataclass(frozen=True, slots=True)
class GoalSummary:
    active_goals: int
    achieved_goals: int
    average_progress: float
    urgent_goals: list[GoalProgress]


def progress_percentage(count: int, target: int) -> int:
    if target <= 0:
        return 0
    return max(0, min(100, round(count / target * 100)))


def remaining_days(goal: Goal, today: date) -> int:
    if today > goal.end_date:
        return 0
    return (goal.end_date - max(today, goal.start_date)).days + 1


def goal_window(period_type: GoalPeriodType, day: date) -> DateWindow:
    if period_type == GoalPeriodType.WEEKLY:
        return week_window(day)
    return month_window(day.year, day.month)


def _parse_period_type(raw: GoalPeriodType | str) -> GoalPeriodType:
    try:
        return GoalPeriodType(raw)
    except ValueError as exc:
        raise DomainValidationError(
            "Unknown goal period type",
            details={"period_type": str(raw), "allowed": [item.value for item in GoalPeriodType]},
        ) from exc


def _validate_target(target_count: int) -> None:
    if target_count <= 0:
        raise DomainValidationError("target_count must be greater than zero", details={"target_count": target_count})


def current_count(db: Session, goal: Goal) -> int:
    window = DateWindow(start=goal.start_date, end=goal.end_date)
    return int(
        db.scalar(
            select(func.count(Stamp.id)).where(
                Stamp.child_id == goal.child_id,
                Stamp.stamp_type_id == goal.stamp_type_id,
                Stamp.stamped_at >= window.starts_at,
                Stamp.stamped_at <= window.ends_at,
            ),
        )
        or 0,
    )


def check_and_update_goal(db: Session, goal: Goal, *, now: datetime) -> bool:
    if goal.is_achieved:
        return True
    if current_count(db, goal) < goal.target_count:
        return False

    goal.is_achieved = True
    goal.achieved_at = now
    db.flush()
    logger.info(
        "goal.achieved",
        extra={"child_id": goal.child_id, "goal_id": goal.id, "stamp_type_id": goal.stamp_type_id},
    )
    return True


def goal_progress(db: Session, goal: Goal, today: date) -> GoalProgress:
    count = current_count(db, goal)
    return GoalProgress(
        goal=goal,
        current_count=count,
        progress_percentage=progress_percentage(count, goal.target_count),
        remaining_days=remaining_days(goal, today),
    )


def _ensure_no_overlap(db: Session, *, child_id: int, stamp_type_id: int, window: DateWindow) -> None:
    clash = db.scalar(
        select(Goal.id).where(
            Goal.child_id == child_id,
            Goal.stamp_type_id == stamp_type_id,
            Goal.start_date <= window.end,
            Goal.end_date >= window.start,
        ),
    )
    if clash is not None:
        raise ConflictError(
            "A goal for this stamp type already covers that period",
            details={"goal_id": clash, "start_date": window.start.isoformat(), "end_date": window.end.isoformat()},
        )


def create_goal(
    db: Session,
    *,
    child: Child,
    stamp_type_id: int,
    target_count: int,
    period_type: GoalPeriodType | str,
    start_date: date,
    end_date: date | None = None,
    reward_text: str | None = None,
) -> Goal:
    _validate_target(target_count)
    parsed_period = _parse_period_type(period_type)
    if end_date is not None and end_date < start_date:
        raise DomainValidationError(
            "end_date must not be before start_date",
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )
    get_visible_stamp_type(db, family_id=child.family_id, stamp_type_id=stamp_type_id)

    # Goals always cover the whole week or month that contains start_date.
    window = goal_window(parsed_period, start_date)
    _ensure_no_overlap(db, child_id=child.id, stamp_type_id=stamp_type_id, window=window)

    goal = Goal(
        child_id=child.id,
        stamp_type_id=stamp_type_id,
        target_count=target_count,
        period_type=parsed_period,
        start_date=window.start,
        end_date=window.end,
        reward_text=reward_text.strip() if reward_text and reward_text.strip() else None,
        is_achieved=False,
    )
    db.add(goal)
    db.flush()
    logger.info(
        "goal.created",
        extra={"child_id": child.id, "goal_id": goal.id, "stamp_type_id": stamp_type_id},
    )
    return goal


def create_weekly_goal(
    db: Session,
    *,
    child: Child,
    stamp_type_id: int,
    target_count: int,
    today: date,
    reward_text: str | None = None,
) -> Goal:
    return create_goal(
        db,
        child=child,
        stamp_type_id=stamp_type_id,
        target_count=target_count,
        period_type=GoalPeriodType.WEEKLY,
        start_date=today,
        reward_text=reward_text or DEFAULT_WEEKLY_REWARD,
    )


def create_monthly_goal(
    db: Session,
    *,
    child: Child,
    stamp_type_id: int,
    target_count: int,
    today: date,
    reward_text: str | None = None,
) -> Goal:
    return create_goal(
        db,
        child=child,
        stamp_type_id=stamp_type_id,
        target_count=target_count,
        period_type=GoalPeriodType.MONTHLY,
        start_date=today,
        reward_text=reward_text or DEFAULT_MONTHLY_REWARD,
    )


def get_goal(db: Session, *, family_id: int, goal_id: int) -> Goal:
    goal = db.scalar(
        select(Goal).join(Child, Child.id == Goal.child_id).where(Goal.id == goal_id, Child.family_id == family_id),
    )
    if goal is None:
        raise NotFoundError("Goal not found")
    return goal


def update_goal(
    db: Session,
    goal: Goal,
    *,
    target_count: int,
    reward_text: str | None,
    now: datetime,
) -> Goal:
    if goal.is_achieved:
        raise ConflictError("Achieved goals cannot be edited", details={"goal_id": goal.id})
    _validate_target(target_count)
    goal.target_count = target_count
    goal.reward_text = reward_text.strip() if reward_text and reward_text.strip() else None
    db.flush()
    check_and_update_goal(db, goal, now=now)
    return goal


def delete_goal(db: Session, goal: Goal) -> None:
    db.delete(goal)
    db.flush()


def list_goals(
    db: Session,
    child_id: int,
    *,
    period_type: GoalPeriodType | None = None,
    is_achieved: bool | None = None,
    active_on: date | None = None,
) -> list[Goal]:
    query = select(Goal).where(Goal.child_id == child_id)
    if period_type is not None:
        query = query.where(Goal.period_type == period_type)
    if is_achieved is not None:
        query = query.where(Goal.is_achieved.is_(is_achieved))
    if active_on is not None:
        query = query.where(Goal.start_date <= active_on, Goal.end_date >= active_on)
    return list(db.scalars(query.order_by(Goal.start_date.desc(), Goal.id.desc())).all())


def get_active_goals(db: Session, child_id: int, today: date) -> list[Goal]:
    return list_goals(db, child_id, active_on=today)


def check_goal_achievements(
    db: Session,
    child_id: int,
    *,
    at: datetime,
    stamp_type_id: int | None = None,
) -> list[Goal]:
    """Evaluate every open goal whose window contains ``at``; return the ones that flipped."""
    query = select(Goal).where(
        Goal.child_id == child_id,
        Goal.is_achieved.is_(False),
        Goal.start_date <= at.date(),
        Goal.end_date >= at.date(),
    )
    if stamp_type_id is not None:
        query = query.where(Goal.stamp_type_id == stamp_type_id)

    achieved: list[Goal] = []
    for goal in db.scalars(query.order_by(Goal.id.asc())).all():
        if check_and_update_goal(db, goal, now=at):
            achieved.append(goal)
    return achieved


def goals_overlapping(db: Session, child_id: int, window: DateWindow) -> list[Goal]:
    return list(
        db.scalars(
            select(Goal)
            .where(Goal.child_id == child_id, Goal.start_date <= window.end, Goal.end_date >= window.start)
            .order_by(Goal.start_date.asc(), Goal.id.asc()),
        ).all(),
    )


def get_progress_summary(db: Session, child_id: int, today: date) -> GoalSummary:
    progresses = [goal_progress(db, goal, today) for goal in get_active_goals(db, child_id, today)]
    if not progresses:
        return GoalSummary(active_goals=0, achieved_goals=0, average_progress=0.0, urgent_goals=[])

    average = round(sum(item.progress_percentage for item in progresses) / len(progresses), 1)
    urgent = [
        item
        for item in progresses
        if not item.goal.is_achieved
        and item.remaining_days <= URGENT_REMAINING_DAYS
        and item.progress_percentage < URGENT_PROGRESS_BELOW
    ]
    return GoalSummary(
        active_goals=len(progresses),
        achieved_goals=sum(1 for item in progresses if item.goal.is_achieved),
        average_progress=average,
        urgent_goals=urgent,
    )
