from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from stampbook.api.deps import CurrentAdmin, DBSession, FamilyChild
from stampbook.models import GoalPeriodType
from stampbook.schemas.goals import (
    AchievementCheckOut,
    GoalCheckOut,
    GoalCreateRequest,
    GoalOut,
    GoalSummaryOut,
    GoalUpdateRequest,
    PeriodGoalCreateRequest,
    build_goal_out,
)
from stampbook.services import goals as goals_service
from stampbook.services.periods import local_now, local_today

router = APIRouter(tags=["goals"])


@router.get("/children/{child_id}/goals", response_model=list[GoalOut])
def list_goals(
    db: DBSession,
    child: FamilyChild,
    period_type: GoalPeriodType | None = None,
    is_achieved: bool | None = None,
    active_only: Annotated[bool, Query()] = False,
) -> list[GoalOut]:
    today = local_today()
    goals = goals_service.list_goals(
        db,
        child.id,
        period_type=period_type,
        is_achieved=is_achieved,
        active_on=today if active_only else None,
    )
    return [build_goal_out(goals_service.goal_progress(db, goal, today)) for goal in goals]


@router.post("/children/{child_id}/goals", response_model=GoalOut, status_code=status.HTTP_201_CREATED)
def create_goal(payload: GoalCreateRequest, db: DBSession, child: FamilyChild) -> GoalOut:
    goal = goals_service.create_goal(
        db,
        child=child,
        stamp_type_id=payload.stamp_type_id,
        target_count=payload.target_count,
        period_type=payload.period_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reward_text=payload.reward_text,
    )
    goals_service.check_and_update_goal(db, goal, now=local_now())
    db.commit()
    return build_goal_out(goals_service.goal_progress(db, goal, local_today()))


@router.post("/children/{child_id}/goals/weekly", response_model=GoalOut, status_code=status.HTTP_201_CREATED)
def create_weekly_goal(payload: PeriodGoalCreateRequest, db: DBSession, child: FamilyChild) -> GoalOut:
    today = local_today()
    goal = goals_service.create_weekly_goal(
        db,
        child=child,
        stamp_type_id=payload.stamp_type_id,
        target_count=payload.target_count,
        today=today,
        reward_text=payload.reward_text,
    )
    goals_service.check_and_update_goal(db, goal, now=local_now())
    db.commit()
    return build_goal_out(goals_service.goal_progress(db, goal, today))


@router.post("/children/{child_id}/goals/monthly", response_model=GoalOut, status_code=status.HTTP_201_CREATED)
def create_monthly_goal(payload: PeriodGoalCreateRequest, db: DBSession, child: FamilyChild) -> GoalOut:
    today = local_today()
    goal = goals_service.create_monthly_goal(
        db,
        child=child,
        stamp_type_id=payload.stamp_type_id,
        target_count=payload.target_count,
        today=today,
        reward_text=payload.reward_text,
    )
    goals_service.check_and_update_goal(db, goal, now=local_now())
    db.commit()
    return build_goal_out(goals_service.goal_progress(db, goal, today))


@router.post("/children/{child_id}/goals/check-achievements", response_model=AchievementCheckOut)
def check_achievements(db: DBSession, child: FamilyChild) -> AchievementCheckOut:
    now = local_now()
    achieved = goals_service.check_goal_achievements(db, child.id, at=now)
    db.commit()
    return AchievementCheckOut(
        newly_achieved=[build_goal_out(goals_service.goal_progress(db, goal, now.date())) for goal in achieved],
    )


@router.get("/children/{child_id}/goals/summary", response_model=GoalSummaryOut)
def goal_summary(db: DBSession, child: FamilyChild) -> GoalSummaryOut:
    summary = goals_service.get_progress_summary(db, child.id, local_today())
    return GoalSummaryOut(
        active_goals=summary.active_goals,
        achieved_goals=summary.achieved_goals,
        average_progress=summary.average_progress,
        urgent_goals=[build_goal_out(item) for item in summary.urgent_goals],
    )


@router.get("/goals/{goal_id}", response_model=GoalOut)
def get_goal(goal_id: int, db: DBSession, admin: CurrentAdmin) -> GoalOut:
    goal = goals_service.get_goal(db, family_id=admin.family_id, goal_id=goal_id)
    return build_goal_out(goals_service.goal_progress(db, goal, local_today()))


@router.put("/goals/{goal_id}", response_model=GoalOut)
def update_goal(goal_id: int, payload: GoalUpdateRequest, db: DBSession, admin: CurrentAdmin) -> GoalOut:
    goal = goals_service.get_goal(db, family_id=admin.family_id, goal_id=goal_id)
    goals_service.update_goal(
        db,
        goal,
        target_count=payload.target_count,
        reward_text=payload.reward_text,
        now=local_now(),
    )
    db.commit()
    return build_goal_out(goals_service.goal_progress(db, goal, local_today()))


@router.delete("/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(goal_id: int, db: DBSession, admin: CurrentAdmin) -> Response:
    goal = goals_service.get_goal(db, family_id=admin.family_id, goal_id=goal_id)
    goals_service.delete_goal(db, goal)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/goals/{goal_id}/check", response_model=GoalCheckOut)
def check_goal(goal_id: int, db: DBSession, admin: CurrentAdmin) -> GoalCheckOut:
    goal = goals_service.get_goal(db, family_id=admin.family_id, goal_id=goal_id)
    achieved = goals_service.check_and_update_goal(db, goal, now=local_now())
    db.commit()
    return GoalCheckOut(goal_id=goal.id, is_achieved=achieved)
