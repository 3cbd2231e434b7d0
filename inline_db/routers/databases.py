# File: /inline_db/routers/databases.py | Version: 1.0 | Title: Database endpoints (CRUD, search, titles, render)
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from inline_db.core.permissions import Role, require_role
from inline_db.crud import databases as crud_db
from inline_db.db.session import get_db
from inline_db.engine.templates import list_templates
from inline_db.schemas import database as schema_db
from inline_db.schemas.entry import EntrySummary, TitlesRequest
from inline_db.schemas.view import Presentation, ViewDescriptor
from inline_db.security import Principal, get_current_principal

router = APIRouter(prefix="/databases", tags=["Databases"])


# ---- Collection-level routes (declared before /{database_id}) ----


@router.get("/templates", response_model=List[schema_db.TemplateOut])
def get_templates(principal: Principal = Depends(get_current_principal)):
    require_role(principal, Role.GUEST)
    return list_templates()


@router.get(
    "/relation-targets",
    response_model=List[schema_db.DatabaseSummary],
    summary="Databases a RELATION column may target",
)
def relation_targets(
    exclude_id: Optional[str] = Query(default=None),
    scope_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    return crud_db.list_for_relation(
        db, organization_id=principal.organization_id, exclude_id=exclude_id, scope_id=scope_id
    )


@router.post("", response_model=schema_db.DatabaseOut, status_code=status.HTTP_201_CREATED)
def create_database(
    data: schema_db.DatabaseCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    return crud_db.create_database(
        db, organization_id=principal.organization_id, user_id=principal.user_id, data=data
    )


@router.get("", response_model=schema_db.DatabaseList)
def list_databases(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    search: Optional[str] = Query(default=None, max_length=200),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    return crud_db.list_databases(
        db, organization_id=principal.organization_id, page=page, page_size=page_size, search=search
    )


# ---- Single database ----


@router.get("/{database_id}", response_model=schema_db.DatabaseDetail)
def get_database(
    database_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    return crud_db.read_database(db, database=database)


@router.patch("/{database_id}", response_model=schema_db.DatabaseOut)
def update_database(
    database_id: str,
    data: schema_db.DatabaseUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    return crud_db.update_database(db, database=database, data=data)


@router.delete("/{database_id}")
def delete_database(
    database_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.ADMIN)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    crud_db.delete_database(db, database=database, user_id=principal.user_id)
    return {"detail": "Database deleted"}


@router.get("/{database_id}/search", response_model=List[EntrySummary])
def search_entries(
    database_id: str,
    q: str = Query(default="", max_length=200),
    limit: int = Query(default=20, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    return crud_db.search_entries(db, database=database, query=q, limit=limit)


@router.post("/{database_id}/titles", response_model=List[EntrySummary])
def entry_titles(
    database_id: str,
    data: TitlesRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    return crud_db.entry_titles(db, database=database, entry_ids=data.entry_ids)


@router.post("/{database_id}/render", response_model=Presentation, summary="Render a view descriptor")
def render_descriptor(
    database_id: str,
    descriptor: ViewDescriptor,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    return crud_db.render(db, database_id=database_id, descriptor=descriptor)
