# File: /inline_db/schemas/view.py | Version: 2.0 | Title: View descriptor + persisted view state (Pydantic v2)
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from inline_db.schemas.filters import FilterRule, SortSpec

ViewType = Literal["table", "kanban", "gallery"]


class ViewState(BaseModel):
    """The part of a view the hosting editor block stores and round-trips."""

    view_type: ViewType = "table"
    filters: List[FilterRule] = Field(default_factory=list)
    sort_by: Optional[SortSpec] = None
    group_by: Optional[str] = None
    hidden_columns: List[str] = Field(default_factory=list)


class ViewDescriptor(ViewState):
    # Presentation-only; never persisted, reset/re-derived freely
    column_order: List[str] = Field(default_factory=list)
    column_widths: Dict[str, int] = Field(default_factory=dict)


# ---- Persisted view state (one per embedding location) ----


class DatabaseViewCreate(ViewState):
    location_id: str = Field(min_length=1, max_length=200)  # editor block id
    database_id: str


class DatabaseViewUpdate(BaseModel):
    view_type: Optional[ViewType] = None
    filters: Optional[List[FilterRule]] = None
    sort_by: Optional[SortSpec] = None
    clear_sort: bool = False
    group_by: Optional[str] = None
    clear_group_by: bool = False
    hidden_columns: Optional[List[str]] = None


class DatabaseViewOut(ViewState):
    id: str
    location_id: str
    database_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---- Presentations ----


class ColumnLayout(BaseModel):
    id: str
    name: str
    type: str
    width: int


class RowOut(BaseModel):
    id: str
    values: Dict[str, Any]
    relations: Dict[str, List[Dict[str, str]]] = Field(default_factory=dict)


class TablePresentation(BaseModel):
    view_type: Literal["table"] = "table"
    columns: List[ColumnLayout]
    rows: List[RowOut]
    total: int


class KanbanBucket(BaseModel):
    key: Optional[str]  # option value; None for "Uncategorized"
    label: str
    rows: List[RowOut]


class KanbanPresentation(BaseModel):
    view_type: Literal["kanban"] = "kanban"
    supported: bool
    group_by: Optional[str] = None
    buckets: List[KanbanBucket] = Field(default_factory=list)
    message: Optional[str] = None


class GalleryCard(BaseModel):
    id: str
    title: str
    preview: List[Dict[str, Any]]


class GalleryPresentation(BaseModel):
    view_type: Literal["gallery"] = "gallery"
    cards: List[GalleryCard]


Presentation = Annotated[
    Union[TablePresentation, KanbanPresentation, GalleryPresentation],
    Field(discriminator="view_type"),
]
