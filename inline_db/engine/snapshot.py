# File: /inline_db/engine/snapshot.py | Version: 1.0 | Title: Immutable point-in-time database snapshots
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from inline_db.engine.values import format_value, is_empty
from inline_db.schemas.columns import Column, ColumnType


@dataclass(frozen=True)
class EntryRecord:
    id: str
    database_id: str
    properties: Dict[str, Any]
    position: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class DatabaseSnapshot:
    """Schema plus raw (stored) entries of one database, in creation order."""

    id: str
    organization_id: str
    name: str
    description: Optional[str]
    columns: Tuple[Column, ...]
    entries: Tuple[EntryRecord, ...]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    _by_id: Dict[str, EntryRecord] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        self._by_id.update({e.id: e for e in self.entries})

    def column(self, column_id: str) -> Optional[Column]:
        for col in self.columns:
            if col.id == column_id:
                return col
        return None

    def column_by_name(self, name: str) -> Optional[Column]:
        folded = name.strip().casefold()
        for col in self.columns:
            if col.name.casefold() == folded:
                return col
        return None

    def entry(self, entry_id: str) -> Optional[EntryRecord]:
        return self._by_id.get(entry_id)

    def title_column(self) -> Optional[Column]:
        for col in self.columns:
            if col.column_type is ColumnType.TEXT:
                return col
        return self.columns[0] if self.columns else None

    def title_of(self, entry: EntryRecord) -> str:
        col = self.title_column()
        if col is None:
            return "Untitled"
        raw = entry.properties.get(col.id)
        if is_empty(raw):
            return "Untitled"
        return format_value(raw)

    def select_columns(self) -> List[Column]:
        return [c for c in self.columns if c.column_type is ColumnType.SELECT]
