# File: /inline_db/crud/databases.py | Version: 1.0 | Title: Database CRUD + read projections (org-scoped)
from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from inline_db.core.config import settings
from inline_db.core.errors import InvalidColumnConfig, NotFound
from inline_db.crud.schema import build_schema
from inline_db.crud.snapshots import get_snapshot, materialize, snapshot_cache
from inline_db.engine import views as view_engine
from inline_db.engine.templates import BLANK_TEMPLATE_ID, template_columns
from inline_db.models import Database, DatabaseEntry
from inline_db.schemas.columns import dump_columns
from inline_db.schemas.database import DatabaseCreate, DatabaseUpdate
from inline_db.schemas.view import ViewDescriptor

logger = logging.getLogger(__name__)


def get_database(db: Session, *, organization_id: str, database_id: str) -> Database:
    """Fetch a database of the caller's organization. Other organizations' databases are NotFound."""
    obj = db.get(Database, database_id)
    if obj is None or obj.organization_id != organization_id:
        raise NotFound("Database not found")
    return obj


def create_database(db: Session, *, organization_id: str, user_id: str, data: DatabaseCreate) -> Database:
    if data.columns is not None:
        columns = build_schema(db, organization_id=organization_id, specs=data.columns)
    else:
        columns = template_columns(data.template_id or BLANK_TEMPLATE_ID)
        if columns is None:
            raise InvalidColumnConfig(f"Unknown template '{data.template_id}'")

    obj = Database(
        organization_id=organization_id,
        name=data.name.strip(),
        description=data.description,
        schema={"columns": dump_columns(columns)},
        created_by_id=user_id,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info(
        "database created with %d columns", len(columns),
        extra={"database_id": obj.id, "organization_id": organization_id, "user_id": user_id},
    )
    return obj


def list_databases(
    db: Session, *, organization_id: str, page: int = 1, page_size: int = 20, search: Optional[str] = None
) -> Dict:
    q = db.query(Database).filter(Database.organization_id == organization_id)
    if search:
        q = q.filter(func.lower(Database.name).contains(search.strip().lower()))
    total = q.count()
    rows = (
        q.order_by(Database.updated_at.desc(), Database.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    counts = _entry_counts(db, [r.id for r in rows])
    return {
        "items": [
            {
                "id": r.id,
                "name": r.name,
                "description": r.description,
                "column_count": len(r.columns),
                "entry_count": counts.get(r.id, 0),
                "updated_at": r.updated_at,
            }
            for r in rows
        ],
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": math.ceil(total / page_size) if total else 0,
    }


def _entry_counts(db: Session, database_ids: List[str]) -> Dict[str, int]:
    if not database_ids:
        return {}
    rows = (
        db.query(DatabaseEntry.database_id, func.count(DatabaseEntry.id))
        .filter(DatabaseEntry.database_id.in_(database_ids))
        .group_by(DatabaseEntry.database_id)
        .all()
    )
    return {database_id: count for database_id, count in rows}


def list_for_relation(
    db: Session, *, organization_id: str, exclude_id: Optional[str] = None, scope_id: Optional[str] = None
) -> List[Dict]:
    """Candidate relation targets. ``scope_id`` narrows to one organization and never widens it."""
    if scope_id is not None and scope_id != organization_id:
        return []
    q = db.query(Database).filter(Database.organization_id == organization_id)
    if exclude_id:
        q = q.filter(Database.id != exclude_id)
    rows = q.order_by(Database.name.asc()).all()
    counts = _entry_counts(db, [r.id for r in rows])
    return [
        {
            "id": r.id,
            "name": r.name,
            "description": r.description,
            "column_count": len(r.columns),
            "entry_count": counts.get(r.id, 0),
            "updated_at": r.updated_at,
        }
        for r in rows
    ]


def update_database(db: Session, *, database: Database, data: DatabaseUpdate) -> Database:
    if data.name is not None:
        database.name = data.name.strip()
    if "description" in data.model_fields_set:
        database.description = data.description
    db.commit()
    db.refresh(database)
    snapshot_cache.invalidate(database.id)
    return database


def delete_database(db: Session, *, database: Database, user_id: Optional[str] = None) -> None:
    """Entries go with it. Relations elsewhere that target it resolve to null from now on."""
    database_id, organization_id = database.id, database.organization_id
    db.delete(database)
    db.commit()
    snapshot_cache.invalidate(database_id)
    logger.info(
        "database deleted",
        extra={"database_id": database_id, "organization_id": organization_id, "user_id": user_id},
    )


# ---- Read projections ----


def read_database(db: Session, *, database: Database) -> Dict:
    snapshot, entries = materialize(db, database.id)
    if snapshot is None:
        raise NotFound("Database not found")
    return {
        "id": database.id,
        "organization_id": database.organization_id,
        "name": database.name,
        "description": database.description,
        "columns": list(snapshot.columns),
        "created_by_id": database.created_by_id,
        "created_at": database.created_at,
        "updated_at": database.updated_at,
        "entries": entries,
    }


def render(db: Session, *, database_id: str, descriptor: ViewDescriptor) -> view_engine.Presentation:
    snapshot, entries = materialize(db, database_id)
    if snapshot is None:
        raise NotFound("Database not found")
    return view_engine.render(snapshot.columns, entries, descriptor)


def search_entries(db: Session, *, database: Database, query: str = "", limit: int = 20) -> List[Dict[str, str]]:
    """Title-only projection for relation pickers; case-insensitive substring on the title."""
    snapshot = get_snapshot(db, database.id)
    if snapshot is None:
        raise NotFound("Database not found")
    limit = max(1, min(limit, settings.SEARCH_LIMIT_MAX))
    needle = (query or "").strip().casefold()
    out = []
    for entry in snapshot.entries:
        title = snapshot.title_of(entry)
        if needle and needle not in title.casefold():
            continue
        out.append({"id": entry.id, "title": title})
        if len(out) == limit:
            break
    return out


def entry_titles(db: Session, *, database: Database, entry_ids: List[str]) -> List[Dict[str, str]]:
    """Titles for the given ids in request order; ids not in this database are skipped."""
    snapshot = get_snapshot(db, database.id)
    if snapshot is None:
        raise NotFound("Database not found")
    out = []
    for entry_id in entry_ids:
        entry = snapshot.entry(entry_id)
        if entry is not None:
            out.append({"id": entry.id, "title": snapshot.title_of(entry)})
    return out
