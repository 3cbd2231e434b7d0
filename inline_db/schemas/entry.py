# File: /inline_db/schemas/entry.py | Version: 1.0 | Title: Entry payloads (Pydantic v2, BaseSchema)
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from inline_db.schemas._base import BaseSchema


class EntryCreate(BaseSchema):
    properties: Dict[str, Any] = Field(default_factory=dict)


class EntryUpdate(BaseSchema):
    # Partial merge: only the given column ids change
    properties: Dict[str, Any]


class CellUpdate(BaseSchema):
    value: Optional[Any] = None


class EntryOut(BaseSchema):
    id: str
    database_id: str
    position: int
    properties: Dict[str, Any]  # stored values, orphan keys included
    values: Dict[str, Any] = Field(default_factory=dict)  # effective values incl. computed
    relations: Dict[str, List[Dict[str, str]]] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EntryList(BaseSchema):
    items: List[EntryOut]
    page: int
    page_size: int
    total: int
    total_pages: int


# ---- Bulk ----

class BulkEntriesCreate(BaseSchema):
    entries: List[EntryCreate] = Field(min_length=1)


class RowFailureOut(BaseSchema):
    index: int
    reason: str


class BulkCreateResult(BaseSchema):
    created: int
    total: int
    ids: List[str]
    failures: List[RowFailureOut] = []


# ---- Title projections (relation pickers) ----

class EntrySummary(BaseSchema):
    id: str
    title: str


class TitlesRequest(BaseSchema):
    entry_ids: List[str] = Field(default_factory=list, max_length=1000)
