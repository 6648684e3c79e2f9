from __future__ import annotations

from fastapi import APIRouter, Response, status

from stampbook.api.deps import CurrentAdmin, DBSession
from stampbook.schemas.stamp_types import StampTypeOut, StampTypeWriteRequest
from stampbook.services import stamp_types as stamp_types_service

router = APIRouter(prefix="/stamp-types", tags=["stamp-types"])


@router.get("", response_model=list[StampTypeOut])
def list_stamp_types(db: DBSession, admin: CurrentAdmin) -> list[StampTypeOut]:
    return [
        StampTypeOut.model_validate(item)
        for item in stamp_types_service.list_stamp_types_for_family(db, family_id=admin.family_id)
    ]


@router.post("", response_model=StampTypeOut, status_code=status.HTTP_201_CREATED)
def create_stamp_type(payload: StampTypeWriteRequest, db: DBSession, admin: CurrentAdmin) -> StampTypeOut:
    stamp_type = stamp_types_service.create_custom_stamp_type(
        db,
        family_id=admin.family_id,
        name=payload.name,
        icon=payload.icon,
        color=payload.color,
        category=payload.category.value,
    )
    db.commit()
    return StampTypeOut.model_validate(stamp_type)


@router.put("/{stamp_type_id}", response_model=StampTypeOut)
def update_stamp_type(
    stamp_type_id: int,
    payload: StampTypeWriteRequest,
    db: DBSession,
    admin: CurrentAdmin,
) -> StampTypeOut:
    stamp_type = stamp_types_service.update_custom_stamp_type(
        db,
        family_id=admin.family_id,
        stamp_type_id=stamp_type_id,
        name=payload.name,
        icon=payload.icon,
        color=payload.color,
        category=payload.category.value,
    )
    db.commit()
    return StampTypeOut.model_validate(stamp_type)


@router.delete("/{stamp_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_stamp_type(stamp_type_id: int, db: DBSession, admin: CurrentAdmin) -> Response:
    stamp_types_service.delete_custom_stamp_type(db, family_id=admin.family_id, stamp_type_id=stamp_type_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
