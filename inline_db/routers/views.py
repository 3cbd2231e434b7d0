# File: /inline_db/routers/views.py | Version: 2.0 | Title: Persisted view state (one per embedded block) + render
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from inline_db.core.errors import NotFound
from inline_db.core.permissions import Role, require_role
from inline_db.crud import databases as crud_db
from inline_db.crud import view as crud_view
from inline_db.db.session import get_db
from inline_db.schemas.view import (
    DatabaseViewCreate,
    DatabaseViewOut,
    DatabaseViewUpdate,
    Presentation,
)
from inline_db.security import Principal, get_current_principal

router = APIRouter(prefix="/database-views", tags=["Views"])


@router.get("", response_model=List[DatabaseViewOut], summary="List view states (optionally per database)")
def list_views(
    database_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    return crud_view.list_views(db, organization_id=principal.organization_id, database_id=database_id)


@router.post("", response_model=DatabaseViewOut, status_code=status.HTTP_201_CREATED)
def create_view(
    data: DatabaseViewCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    # the database must be visible to the caller when the block is created
    crud_db.get_database(db, organization_id=principal.organization_id, database_id=data.database_id)
    return crud_view.create_view(
        db, organization_id=principal.organization_id, owner_id=principal.user_id, data=data
    )


@router.get("/by-location/{location_id}", response_model=DatabaseViewOut, summary="Read block configuration")
def get_view_by_location(
    location_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    v = crud_view.get_view_by_location(db, organization_id=principal.organization_id, location_id=location_id)
    if v is None:
        raise NotFound("View not found")
    return v


@router.get("/{view_id}", response_model=DatabaseViewOut)
def get_view(
    view_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    return crud_view.get_view(db, organization_id=principal.organization_id, view_id=view_id)


@router.patch("/{view_id}", response_model=DatabaseViewOut, summary="Write block configuration")
def update_view(
    view_id: str,
    data: DatabaseViewUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    v = crud_view.get_view(db, organization_id=principal.organization_id, view_id=view_id)
    return crud_view.update_view(db, v, data)


@router.delete("/{view_id}")
def delete_view(
    view_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    v = crud_view.get_view(db, organization_id=principal.organization_id, view_id=view_id)
    crud_view.delete_view(db, v)
    return {"detail": "View deleted"}


@router.get("/{view_id}/render", response_model=Presentation, summary="Render the persisted view")
def render_view(
    view_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    v = crud_view.get_view(db, organization_id=principal.organization_id, view_id=view_id)
    # a deleted database renders as NotFound; the view row itself is kept
    crud_db.get_database(db, organization_id=principal.organization_id, database_id=v.database_id)
    return crud_db.render(db, database_id=v.database_id, descriptor=crud_view.descriptor_of(v))
