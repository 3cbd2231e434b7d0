# File: /inline_db/schemas/imports.py | Version: 1.0 | Title: CSV import payloads
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import Field

from inline_db.schemas._base import BaseSchema
from inline_db.schemas.entry import RowFailureOut


class ImportRequest(BaseSchema):
    csv: str = Field(min_length=1)
    # header -> column id (None = skip); headers not listed keep their auto-mapping
    mapping: Optional[Dict[str, Optional[str]]] = None


class ImportReportOut(BaseSchema):
    state: str
    created: int
    total: int
    failures: List[RowFailureOut] = []
    summary: str
    error: Optional[str] = None
    mapping: Dict[str, Optional[str]]
