# File: /inline_db/crud/entries.py | Version: 1.0 | Title: Entry Store (single write path for entry rows)
from __future__ import annotations

import copy
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from inline_db.core.config import settings
from inline_db.core.errors import (
    ImportRowFailure,
    InlineDbError,
    InvalidEntryProperties,
    NotFound,
)
from inline_db.crud.snapshots import materialize, snapshot_cache
from inline_db.engine.values import CellValue, coerce_properties, coerce_value, with_link, without_link
from inline_db.models import Database, DatabaseEntry
from inline_db.schemas.columns import Column, RelationColumn

logger = logging.getLogger(__name__)


def get_entry(db: Session, *, organization_id: str, entry_id: str, for_update: bool = False) -> DatabaseEntry:
    q = (
        db.query(DatabaseEntry)
        .join(Database, Database.id == DatabaseEntry.database_id)
        .filter(DatabaseEntry.id == entry_id, Database.organization_id == organization_id)
    )
    if for_update:
        q = q.with_for_update(of=DatabaseEntry)
    entry = q.first()
    if entry is None:
        raise NotFound("Entry not found")
    return entry


def _next_position(db: Session, database_id: str) -> int:
    current = (
        db.query(func.max(DatabaseEntry.position))
        .filter(DatabaseEntry.database_id == database_id)
        .scalar()
    )
    return 0 if current is None else current + 1


def _coerce(columns: Sequence[Column], properties: Any) -> Dict[str, CellValue]:
    if not isinstance(properties, Mapping):
        raise InvalidEntryProperties("Entry properties must be an object")
    return coerce_properties(columns, properties)


def _commit(db: Session, database_id: str) -> None:
    db.commit()
    snapshot_cache.invalidate(database_id)


# ---- Create ----


def create_entry(
    db: Session, *, database: Database, properties: Mapping[str, Any], user_id: Optional[str] = None
) -> DatabaseEntry:
    values = _coerce(database.columns, properties)
    entry = DatabaseEntry(
        database_id=database.id,
        properties=values,
        position=_next_position(db, database.id),
        created_by_id=user_id,
    )
    db.add(entry)
    _commit(db, database.id)
    db.refresh(entry)
    logger.debug("entry created", extra={"database_id": database.id, "entry_id": entry.id})
    return entry


def bulk_create_entries(
    db: Session, *, database: Database, rows: Sequence[Any], user_id: Optional[str] = None
) -> Dict:
    """
    Create up to MAX_BULK_ENTRIES entries in one commit.

    Every row is coerced before anything is written; rows that cannot be
    written are reported as failures by index and the rest are created.
    """
    if len(rows) > settings.MAX_BULK_ENTRIES:
        raise InvalidEntryProperties(
            f"At most {settings.MAX_BULK_ENTRIES} entries can be created at once",
            detail={"received": len(rows)},
        )

    columns = database.columns
    failures: List[ImportRowFailure] = []
    accepted: List[Dict[str, CellValue]] = []
    for index, raw in enumerate(rows):
        try:
            accepted.append(_coerce(columns, raw))
        except InlineDbError as exc:
            failures.append(ImportRowFailure(index, exc.message))

    position = _next_position(db, database.id)
    created = []
    for offset, values in enumerate(accepted):
        entry = DatabaseEntry(
            database_id=database.id, properties=values, position=position + offset, created_by_id=user_id
        )
        db.add(entry)
        created.append(entry)
    if created:
        _commit(db, database.id)

    logger.info(
        "bulk create: %d of %d created", len(created), len(rows),
        extra={"database_id": database.id, "user_id": user_id},
    )
    return {
        "created": len(created),
        "total": len(rows),
        "ids": [e.id for e in created],
        "failures": [{"index": f.index, "reason": f.reason} for f in failures],
    }


# ---- Update ----


def update_entry(db: Session, *, entry: DatabaseEntry, properties: Mapping[str, Any]) -> DatabaseEntry:
    """Partial merge: only the given column ids change, everything else is kept (orphans too)."""
    values = _coerce(entry.database.columns, properties)
    merged = dict(entry.properties or {})
    merged.update(values)
    entry.properties = merged
    _commit(db, entry.database_id)
    db.refresh(entry)
    return entry


def update_cell(
    db: Session, *, organization_id: str, entry_id: str, column_id: str, value: Any
) -> DatabaseEntry:
    """Last write wins per cell: the row is re-read under a row lock before the map is rewritten."""
    entry = get_entry(db, organization_id=organization_id, entry_id=entry_id, for_update=True)
    column = _column(entry, column_id)
    merged = dict(entry.properties or {})
    merged[column_id] = coerce_value(column, value)
    entry.properties = merged
    _commit(db, entry.database_id)
    db.refresh(entry)
    return entry


def _column(entry: DatabaseEntry, column_id: str) -> Column:
    column = next((c for c in entry.database.columns if c.id == column_id), None)
    if column is None:
        raise NotFound(f"Column {column_id} not found")
    return column


def _relation_column(entry: DatabaseEntry, column_id: str) -> RelationColumn:
    column = _column(entry, column_id)
    if not isinstance(column, RelationColumn):
        raise InvalidEntryProperties(
            f"Column '{column.name}' is not a RELATION column", detail={"column_id": column_id}
        )
    return column


def add_relation_link(
    db: Session, *, organization_id: str, entry_id: str, column_id: str, target_id: str
) -> DatabaseEntry:
    entry = get_entry(db, organization_id=organization_id, entry_id=entry_id, for_update=True)
    column = _relation_column(entry, column_id)
    exists = (
        db.query(DatabaseEntry.id)
        .filter(
            DatabaseEntry.id == target_id,
            DatabaseEntry.database_id == column.relation.target_database_id,
        )
        .first()
    )
    if exists is None:
        raise NotFound("Target entry not found")

    merged = dict(entry.properties or {})
    merged[column_id] = with_link(column, merged.get(column_id), target_id)
    entry.properties = merged
    _commit(db, entry.database_id)
    db.refresh(entry)
    return entry


def remove_relation_link(
    db: Session, *, organization_id: str, entry_id: str, column_id: str, target_id: str
) -> DatabaseEntry:
    entry = get_entry(db, organization_id=organization_id, entry_id=entry_id, for_update=True)
    column = _relation_column(entry, column_id)
    merged = dict(entry.properties or {})
    merged[column_id] = without_link(column, merged.get(column_id), target_id)
    entry.properties = merged
    _commit(db, entry.database_id)
    db.refresh(entry)
    return entry


# ---- Duplicate / delete ----


def duplicate_entry(db: Session, *, entry: DatabaseEntry, user_id: Optional[str] = None) -> DatabaseEntry:
    copy_ = DatabaseEntry(
        database_id=entry.database_id,
        properties=copy.deepcopy(entry.properties or {}),
        position=_next_position(db, entry.database_id),
        created_by_id=user_id,
    )
    db.add(copy_)
    _commit(db, entry.database_id)
    db.refresh(copy_)
    logger.debug(
        "entry %s duplicated", entry.id, extra={"database_id": copy_.database_id, "entry_id": copy_.id}
    )
    return copy_


def delete_entry(db: Session, *, entry: DatabaseEntry) -> None:
    """Hard delete. Relation values elsewhere that point here are left dangling."""
    database_id = entry.database_id
    db.delete(entry)
    _commit(db, database_id)


# ---- Listing ----


def list_entries(db: Session, *, database: Database, page: int = 1, page_size: int = 50) -> Dict:
    _, entries = materialize(db, database.id)
    total = len(entries)
    start = (page - 1) * page_size
    return {
        "items": entries[start:start + page_size],
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": math.ceil(total / page_size) if total else 0,
    }
