# File: /inline_db/routers/columns.py | Version: 1.0 | Title: Column endpoints (add/update/delete)
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from inline_db.core.permissions import Role, require_role
from inline_db.crud import databases as crud_db
from inline_db.crud import schema as crud_schema
from inline_db.db.session import get_db
from inline_db.schemas.columns import Column, ColumnAdd, ColumnUpdate
from inline_db.security import Principal, get_current_principal

router = APIRouter(prefix="/databases/{database_id}/columns", tags=["Columns"])


@router.post("", response_model=Column, status_code=status.HTTP_201_CREATED)
def add_column(
    database_id: str,
    data: ColumnAdd,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    return crud_schema.create_column(db, database=database, spec=data)


@router.patch("/{column_id}", response_model=Column)
def update_column(
    database_id: str,
    column_id: str,
    data: ColumnUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    return crud_schema.update_column(db, database=database, column_id=column_id, patch=data)


@router.delete("/{column_id}")
def delete_column(
    database_id: str,
    column_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_role(principal, Role.MEMBER)
    database = crud_db.get_database(db, organization_id=principal.organization_id, database_id=database_id)
    crud_schema.delete_column(db, database=database, column_id=column_id)
    return {"detail": "Column deleted"}
