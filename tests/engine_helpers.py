# File: /tests/engine_helpers.py | Title: In-memory snapshot builders for engine tests
from datetime import datetime, timedelta

from inline_db.engine.computed import ComputedColumnEngine
from inline_db.engine.snapshot import DatabaseSnapshot, EntryRecord
from inline_db.schemas.columns import parse_columns

T0 = datetime(2024, 1, 1, 12, 0, 0)


def snapshot(db_id, columns, rows, org="org"):
    """rows: list of (entry_id, properties) in creation order."""
    return DatabaseSnapshot(
        id=db_id,
        organization_id=org,
        name=db_id,
        description=None,
        columns=tuple(parse_columns(columns)),
        entries=tuple(
            EntryRecord(
                id=entry_id,
                database_id=db_id,
                properties=props,
                position=i,
                created_at=T0 + timedelta(seconds=i),
                updated_at=T0 + timedelta(seconds=i),
            )
            for i, (entry_id, props) in enumerate(rows)
        ),
    )


def engine_over(*snapshots):
    by_id = {s.id: s for s in snapshots}
    return ComputedColumnEngine(by_id.get)
