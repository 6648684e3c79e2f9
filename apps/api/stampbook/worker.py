from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from stampbook.core.logging import setup_json_logging
from stampbook.db.session import SessionLocal
from stampbook.jobs.monthly_reports import generate_monthly_reports
from stampbook.jobs.rebuild_cards import rebuild_stamp_cards
from stampbook.services.queue import (
    JOB_MONTHLY_REPORTS,
    JOB_REBUILD_STAMP_CARDS,
    JobEnvelope,
    dequeue_job,
)

logger = logging.getLogger("stampbook.api.worker")


def _handle_rebuild_stamp_cards(payload: dict[str, Any]) -> dict[str, Any]:
    db = SessionLocal()
    try:
        result = rebuild_stamp_cards(db, child_id=int(payload["child_id"]))
        db.commit()
        return result
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _handle_monthly_reports(payload: dict[str, Any]) -> dict[str, Any]:
    year = payload.get("year")
    month = payload.get("month")
    db = SessionLocal()
    try:
        summaries = generate_monthly_reports(
            db,
            year=int(year) if year is not None else None,
            month=int(month) if month is not None else None,
        )
        return {"generated": len(summaries)}
    finally:
        db.close()


JOB_HANDLERS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    JOB_REBUILD_STAMP_CARDS: _handle_rebuild_stamp_cards,
    JOB_MONTHLY_REPORTS: _handle_monthly_reports,
}


def process_job(job: JobEnvelope) -> None:
    handler = JOB_HANDLERS.get(job.type)
    if handler is None:
        logger.warning(
            "worker.job.unknown",
            extra={"job_id": job.id, "job_type": job.type},
        )
        return

    result = handler(job.payload)
    logger.info(
        "worker.job.completed",
        extra={"job_id": job.id, "job_type": job.type, "result": result},
    )


def run_worker() -> None:
    setup_json_logging()
    logger.info("worker.started")
    while True:
        job = dequeue_job(block_timeout_seconds=5)
        if job is None:
            continue

        try:
            process_job(job)
        except Exception:
            logger.exception(
                "worker.job.failed",
                extra={"job_id": job.id, "job_type": job.type},
            )


if __name__ == "__main__":
    run_worker()
