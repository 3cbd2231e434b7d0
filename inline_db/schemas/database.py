# File: /inline_db/schemas/database.py | Version: 1.0 | Title: Database payloads (Pydantic v2, BaseSchema)
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from inline_db.schemas._base import BaseSchema
from inline_db.schemas.columns import Column, ColumnCreate
from inline_db.schemas.entry import EntryOut


# ---- Create / update ----

class DatabaseCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    columns: Optional[List[ColumnCreate]] = None
    template_id: Optional[str] = None  # ignored when columns are given

    @model_validator(mode="after")
    def _columns_or_template(self) -> "DatabaseCreate":
        if self.columns is not None and len(self.columns) == 0:
            raise ValueError("A database needs at least one column")
        return self


class DatabaseUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)


# ---- Output ----

class DatabaseOut(BaseSchema):
    id: str
    organization_id: str
    name: str
    description: Optional[str] = None
    columns: List[Column]
    created_by_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DatabaseDetail(DatabaseOut):
    entries: List[EntryOut] = []


class DatabaseSummary(BaseSchema):
    id: str
    name: str
    description: Optional[str] = None
    column_count: int
    entry_count: int
    updated_at: Optional[datetime] = None


class DatabaseList(BaseSchema):
    items: List[DatabaseSummary]
    page: int
    page_size: int
    total: int
    total_pages: int


class TemplateOut(BaseSchema):
    id: str
    name: str
    description: str
    columns: List[Column]
