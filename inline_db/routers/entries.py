# File: /inline_db/routers/entries.py | Version: 1.0 | Title: Entry endpoints (Entry Store over HTTP)
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from inline_db.core.errors import NotFound
from inline_db.core.permissions import Role, require_role
from inline_db.crud import databases as crud_db
from inline_db.crud import entries as crud_entries
from inline_db.crud.snapshots import materialize_one
from inline_db.db.session import get_db
from inline_db.models import DatabaseEntry
from inline_db.schemas import entry as schema_entry
from inline_db.security import Principal, get_current_principal

router = APIRouter(tags=["Entries"])


def _out(db: Session, entry: DatabaseEntry):
    """Entry with effective values, read back through the snapshot cache."""
    out = materialize_one(db, entry.database_id, entry.id)
    if out is None:
        raise NotFound("Entry not found")
    return out


# ---- Per database ----


@router.post(
    "/databases/{database_id}/entries",
    response_model=schema_entry.EntryOut,
    status_code=status.HTTP_201_CREATED,
)
def create_entry(
    database_id: str,
    data: schema_entry.EntryCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    entry = crud_entries.create_entry(
        db, database=database, properties=data.properties, user_id=principal.user_id
    )
    return _out(db, entry)


@router.get("/databases/{database_id}/entries", response_model=schema_entry.EntryList)
def list_entries(
    database_id: str,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=100),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    return crud_entries.list_entries(db, database=database, page=page, page_size=page_size)


@router.post(
    "/databases/{database_id}/entries/bulk",
    response_model=schema_entry.BulkCreateResult,
    status_code=status.HTTP_201_CREATED,
)
def bulk_create_entries(
    database_id: str,
    data: schema_entry.BulkEntriesCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    return crud_entries.bulk_create_entries(
        db, database=database, rows=[e.properties for e in data.entries], user_id=principal.user_id
    )


# ---- Single entry ----


@router.get("/entries/{entry_id}", response_model=schema_entry.EntryOut)
def get_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.GUEST)
    entry = crud_entries.get_entry(db, organization_id=principal.organization_id, entry_id=entry_id)
    return _out(db, entry)


@router.patch("/entries/{entry_id}", response_model=schema_entry.EntryOut)
def update_entry(
    entry_id: str,
    data: schema_entry.EntryUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    entry = crud_entries.get_entry(db, organization_id=principal.organization_id, entry_id=entry_id)
    return _out(db, crud_entries.update_entry(db, entry=entry, properties=data.properties))


@router.put("/entries/{entry_id}/cells/{column_id}", response_model=schema_entry.EntryOut)
def update_cell(
    entry_id: str,
    column_id: str,
    data: schema_entry.CellUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    entry = crud_entries.update_cell(
        db,
        organization_id=principal.organization_id,
        entry_id=entry_id,
        column_id=column_id,
        value=data.value,
    )
    return _out(db, entry)


@router.post(
    "/entries/{entry_id}/relations/{column_id}/{target_id}",
    response_model=schema_entry.EntryOut,
)
def add_relation_link(
    entry_id: str,
    column_id: str,
    target_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    entry = crud_entries.add_relation_link(
        db,
        organization_id=principal.organization_id,
        entry_id=entry_id,
        column_id=column_id,
        target_id=target_id,
    )
    return _out(db, entry)


@router.delete(
    "/entries/{entry_id}/relations/{column_id}/{target_id}",
    response_model=schema_entry.EntryOut,
)
def remove_relation_link(
    entry_id: str,
    column_id: str,
    target_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    entry = crud_entries.remove_relation_link(
        db,
        organization_id=principal.organization_id,
        entry_id=entry_id,
        column_id=column_id,
        target_id=target_id,
    )
    return _out(db, entry)


@router.post(
    "/entries/{entry_id}/duplicate",
    response_model=schema_entry.EntryOut,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    entry = crud_entries.get_entry(db, organization_id=principal.organization_id, entry_id=entry_id)
    return _out(db, crud_entries.duplicate_entry(db, entry=entry, user_id=principal.user_id))


@router.delete("/entries/{entry_id}")
def delete_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    entry = crud_entries.get_entry(db, organization_id=principal.organization_id, entry_id=entry_id)
    crud_entries.delete_entry(db, entry=entry)
    return {"detail": "Entry deleted"}
