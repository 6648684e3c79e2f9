from __future__ import annotations

from fastapi import APIRouter, Response, status

from stampbook.api.deps import CurrentAdmin, DBSession, FamilyChild
from stampbook.models import Child
from stampbook.schemas.children import ChildCreateRequest, ChildOut, ChildUpdateRequest
from stampbook.services import children as children_service
from stampbook.services.periods import local_today

router = APIRouter(prefix="/children", tags=["children"])


def _child_out(child: Child) -> ChildOut:
    age = children_service.calculate_age(child.birth_date, local_today())
    return ChildOut(
        id=child.id,
        name=child.name,
        birth_date=child.birth_date,
        age=age,
        age_group=children_service.age_group(age),
        target_stamps=child.target_stamps,
        created_at=child.created_at,
    )


@router.get("", response_model=list[ChildOut])
def list_children(db: DBSession, admin: CurrentAdmin) -> list[ChildOut]:
    return [_child_out(child) for child in children_service.list_children(db, family_id=admin.family_id)]


@router.post("", response_model=ChildOut, status_code=status.HTTP_201_CREATED)
def create_child(payload: ChildCreateRequest, db: DBSession, admin: CurrentAdmin) -> ChildOut:
    child = children_service.create_child(
        db,
        family_id=admin.family_id,
        name=payload.name,
        birth_date=payload.birth_date,
        target_stamps=payload.target_stamps,
        today=local_today(),
    )
    db.commit()
    db.refresh(child)
    return _child_out(child)


@router.get("/{child_id}", response_model=ChildOut)
def get_child(child: FamilyChild) -> ChildOut:
    return _child_out(child)


@router.put("/{child_id}", response_model=ChildOut)
def update_child(payload: ChildUpdateRequest, db: DBSession, child: FamilyChild) -> ChildOut:
    children_service.update_child(
        db,
        child,
        name=payload.name,
        birth_date=payload.birth_date,
        target_stamps=payload.target_stamps,
        today=local_today(),
    )
    db.commit()
    return _child_out(child)


@router.delete("/{child_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_child(db: DBSession, child: FamilyChild) -> Response:
    children_service.delete_child(db, child)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
