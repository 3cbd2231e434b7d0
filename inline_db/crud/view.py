# File: /inline_db/crud/view.py | Version: 2.0 | Title: CRUD helpers for persisted database views
from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from inline_db.core.errors import Conflict, NotFound
from inline_db.models import DatabaseView
from inline_db.schemas.view import DatabaseViewCreate, DatabaseViewUpdate, ViewDescriptor


def _dump_filters(filters) -> list:
    return [f.model_dump(mode="json") for f in filters]


def create_view(db: Session, *, organization_id: str, owner_id: str, data: DatabaseViewCreate) -> DatabaseView:
    if db.query(DatabaseView.id).filter(DatabaseView.location_id == data.location_id).first() is not None:
        raise Conflict(f"A view already exists for location '{data.location_id}'")
    v = DatabaseView(
        location_id=data.location_id,
        database_id=data.database_id,
        owner_id=owner_id,
        organization_id=organization_id,
        view_type=data.view_type,
        filters=_dump_filters(data.filters),
        sort_by=data.sort_by.model_dump(mode="json") if data.sort_by else None,
        group_by=data.group_by,
        hidden_columns=list(data.hidden_columns),
    )
    db.add(v)
    db.commit()
    db.refresh(v)
    return v


def get_view(db: Session, *, organization_id: str, view_id: str) -> DatabaseView:
    v = (
        db.query(DatabaseView)
        .filter(DatabaseView.id == view_id, DatabaseView.organization_id == organization_id)
        .first()
    )
    if v is None:
        raise NotFound("View not found")
    return v


def get_view_by_location(db: Session, *, organization_id: str, location_id: str) -> Optional[DatabaseView]:
    return (
        db.query(DatabaseView)
        .filter(DatabaseView.location_id == location_id, DatabaseView.organization_id == organization_id)
        .first()
    )


def list_views(db: Session, *, organization_id: str, database_id: Optional[str] = None) -> List[DatabaseView]:
    q = db.query(DatabaseView).filter(DatabaseView.organization_id == organization_id)
    if database_id is not None:
        q = q.filter(DatabaseView.database_id == database_id)
    return q.order_by(DatabaseView.created_at.asc(), DatabaseView.id.asc()).all()


def update_view(db: Session, v: DatabaseView, data: DatabaseViewUpdate) -> DatabaseView:
    if data.view_type is not None:
        v.view_type = data.view_type
    if data.filters is not None:
        v.filters = _dump_filters(data.filters)
    if data.clear_sort:
        v.sort_by = None
    elif data.sort_by is not None:
        v.sort_by = data.sort_by.model_dump(mode="json")
    if data.clear_group_by:
        v.group_by = None
    elif data.group_by is not None:
        v.group_by = data.group_by
    if data.hidden_columns is not None:
        v.hidden_columns = list(data.hidden_columns)
    db.commit()
    db.refresh(v)
    return v


def delete_view(db: Session, v: DatabaseView) -> bool:
    db.delete(v)
    db.commit()
    return True


def descriptor_of(v: DatabaseView) -> ViewDescriptor:
    """Persisted state as a descriptor; column order and widths start from the schema defaults."""
    return ViewDescriptor(
        view_type=v.view_type,
        filters=v.filters or [],
        sort_by=v.sort_by,
        group_by=v.group_by,
        hidden_columns=v.hidden_columns or [],
    )
