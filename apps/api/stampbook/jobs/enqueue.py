from __future__ import annotations

from stampbook.services.queue import JOB_MONTHLY_REPORTS, JOB_REBUILD_STAMP_CARDS, enqueue_job


def enqueue_stamp_card_rebuild(child_id: int) -> str:
    return enqueue_job(JOB_REBUILD_STAMP_CARDS, payload={"child_id": int(child_id)})


def enqueue_monthly_reports(year: int | None = None, month: int | None = None) -> str:
    payload: dict[str, int] = {}
    if year is not None and month is not None:
        payload["year"] = int(year)
        payload["month"] = int(month)
    return enqueue_job(JOB_MONTHLY_REPORTS, payload=payload)
