from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from stampbook.core.config import settings


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": "stampbook-api",
            "environment": settings.app_env,
        }

        optional_fields = (
            "request_id",
            "family_id",
            "admin_id",
            "child_id",
            "stamp_id",
            "stamp_type_id",
            "card_id",
            "card_number",
            "target_stamps",
            "progress",
            "pokemon_id",
            "rarity",
            "goal_id",
            "route",
            "method",
            "status_code",
            "error_code",
            "execution_time_ms",
            "job_id",
            "job_type",
            "result",
        )
        for field in optional_fields:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=True, default=str)


def setup_json_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)
