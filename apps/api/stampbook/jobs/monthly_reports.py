from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from stampbook.models import Child
from stampbook.services.periods import local_today, shift_month
from stampbook.services.reports import generate_monthly_report

logger = logging.getLogger("stampbook.api.jobs.monthly_reports")


@dataclass(frozen=True)
class MonthlyReportSummary:
    family_id: int
    child_id: int
    month: str
    total_stamps: int
    active_days: int
    legendary_count: int
    mythical_count: int
    achieved_goals: int


def generate_monthly_reports(
    db: Session,
    *,
    year: int | None = None,
    month: int | None = None,
    reference_date: date | None = None,
) -> list[MonthlyReportSummary]:
    today = reference_date or local_today()
    if year is None or month is None:
        # Defaults to the last finished month.
        year, month = shift_month(today.year, today.month, -1)

    children = db.scalars(select(Child).order_by(Child.id.asc())).all()
    results: list[MonthlyReportSummary] = []
    for child in children:
        report = generate_monthly_report(db, child, year=year, month=month, today=today)
        summary = MonthlyReportSummary(
            family_id=child.family_id,
            child_id=child.id,
            month=report.label,
            total_stamps=report.summary.total_stamps,
            active_days=report.activity.active_days,
            legendary_count=report.summary.legendary_count,
            mythical_count=report.summary.mythical_count,
            achieved_goals=sum(1 for item in report.goals if item.goal.is_achieved),
        )
        results.append(summary)
        logger.info(
            "report.monthly.generated",
            extra={"family_id": child.family_id, "child_id": child.id, "result": summary.__dict__},
        )
    return results
