# File: /inline_db/crud/snapshots.py | Version: 1.0 | Title: DB -> snapshot loading through the shared cache
from __future__ import annotations

import copy
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from inline_db.core.config import settings
from inline_db.engine.cache import SnapshotCache
from inline_db.engine.computed import ComputedColumnEngine, MaterializedEntry
from inline_db.engine.snapshot import DatabaseSnapshot, EntryRecord
from inline_db.models import Database, DatabaseEntry

snapshot_cache = SnapshotCache(ttl=settings.SNAPSHOT_CACHE_TTL_SECONDS)


def load_snapshot(db: Session, database_id: str) -> Optional[DatabaseSnapshot]:
    row = db.get(Database, database_id)
    if row is None:
        return None
    entries = (
        db.query(DatabaseEntry)
        .filter(DatabaseEntry.database_id == database_id)
        .order_by(DatabaseEntry.position.asc(), DatabaseEntry.created_at.asc(), DatabaseEntry.id.asc())
        .all()
    )
    return DatabaseSnapshot(
        id=row.id,
        organization_id=row.organization_id,
        name=row.name,
        description=row.description,
        columns=tuple(row.columns),
        entries=tuple(
            EntryRecord(
                id=e.id,
                database_id=e.database_id,
                properties=copy.deepcopy(e.properties or {}),
                position=e.position,
                created_at=e.created_at,
                updated_at=e.updated_at,
            )
            for e in entries
        ),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def get_snapshot(db: Session, database_id: str) -> Optional[DatabaseSnapshot]:
    return snapshot_cache.get(database_id, lambda key: load_snapshot(db, key))


def computed_engine(db: Session) -> ComputedColumnEngine:
    return ComputedColumnEngine(lambda key: get_snapshot(db, key))


def materialize(db: Session, database_id: str) -> Tuple[Optional[DatabaseSnapshot], List[MaterializedEntry]]:
    """Snapshot of ``database_id`` plus every entry with effective (computed) values."""
    snapshot = get_snapshot(db, database_id)
    if snapshot is None:
        return None, []
    return snapshot, computed_engine(db).materialize(snapshot)


def materialize_one(db: Session, database_id: str, entry_id: str) -> Optional[MaterializedEntry]:
    snapshot = get_snapshot(db, database_id)
    if snapshot is None:
        return None
    record = snapshot.entry(entry_id)
    if record is None:
        return None
    engine = computed_engine(db)
    engine.seed(snapshot)
    return engine.materialize_entry(snapshot, record)
