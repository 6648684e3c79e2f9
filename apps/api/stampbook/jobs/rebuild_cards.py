from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from stampbook.core.errors import NotFoundError
from stampbook.models import Child
from stampbook.services.stamp_cards import rebuild_cards_for_legacy_stamps


def rebuild_stamp_cards(db: Session, *, child_id: int) -> dict[str, Any]:
    child = db.get(Child, child_id, with_for_update=True)
    if child is None:
        raise NotFoundError("Child not found", details={"child_id": child_id})
    result = rebuild_cards_for_legacy_stamps(db, child)
    return {"child_id": child_id, **result}
