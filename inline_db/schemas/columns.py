# File: /inline_db/schemas/columns.py | Version: 1.0 | Title: Column tagged union (Pydantic v2 discriminated union)
from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ColumnType(str, Enum):
    TEXT = "TEXT"
    NUMBER = "NUMBER"
    SELECT = "SELECT"
    MULTI_SELECT = "MULTI_SELECT"
    STATUS = "STATUS"
    DATE = "DATE"
    PERSON = "PERSON"
    CHECKBOX = "CHECKBOX"
    URL = "URL"
    RELATION = "RELATION"
    ROLLUP = "ROLLUP"
    FORMULA = "FORMULA"


COMPUTED_TYPES = frozenset({ColumnType.ROLLUP, ColumnType.FORMULA})


class Aggregation(str, Enum):
    count = "count"
    count_values = "count_values"
    sum = "sum"
    avg = "avg"
    min = "min"
    max = "max"
    concat = "concat"
    percent_empty = "percent_empty"
    percent_not_empty = "percent_not_empty"


StatusColor = Literal["gray", "blue", "green", "yellow", "red", "purple"]
Cardinality = Literal["one", "many"]
FormulaResultType = Literal["text", "number", "date", "boolean"]


class StatusOption(BaseModel):
    id: Optional[str] = None  # generated when the column is created/updated
    name: str = Field(min_length=1, max_length=100)
    color: StatusColor = "gray"


class RelationConfig(BaseModel):
    target_database_id: str
    cardinality: Cardinality = "many"


class RollupConfig(BaseModel):
    source_relation_column_id: str
    target_column_id: str
    aggregation: Aggregation = Aggregation.count


class FormulaConfig(BaseModel):
    expression: str = Field(min_length=1, max_length=2000)
    result_type: FormulaResultType = "text"


class _ColumnBase(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    width: Optional[int] = Field(default=None, ge=50, le=500)

    model_config = ConfigDict(use_enum_values=False)

    @property
    def column_type(self) -> ColumnType:
        return ColumnType(self.type)  # type: ignore[attr-defined]

    @property
    def is_computed(self) -> bool:
        return self.column_type in COMPUTED_TYPES


class PlainColumn(_ColumnBase):
    type: Literal["TEXT", "NUMBER", "DATE", "PERSON", "CHECKBOX", "URL"]


class SelectColumn(_ColumnBase):
    type: Literal["SELECT", "MULTI_SELECT"]
    options: List[str] = Field(default_factory=list)


class StatusColumn(_ColumnBase):
    type: Literal["STATUS"]
    status_options: List[StatusOption] = Field(default_factory=list)

    def option_for(self, value: str) -> Optional[StatusOption]:
        folded = value.strip().casefold()
        for opt in self.status_options:
            if opt.id == value or opt.name.casefold() == folded:
                return opt
        return None


class RelationColumn(_ColumnBase):
    type: Literal["RELATION"]
    relation: RelationConfig


class RollupColumn(_ColumnBase):
    type: Literal["ROLLUP"]
    rollup: RollupConfig


class FormulaColumn(_ColumnBase):
    type: Literal["FORMULA"]
    formula: FormulaConfig


Column = Annotated[
    Union[
        PlainColumn,
        SelectColumn,
        StatusColumn,
        RelationColumn,
        RollupColumn,
        FormulaColumn,
    ],
    Field(discriminator="type"),
]

column_adapter: TypeAdapter = TypeAdapter(Column)
column_list_adapter: TypeAdapter = TypeAdapter(List[Column])


def parse_column(data: dict) -> Column:
    return column_adapter.validate_python(data)


def parse_columns(data: list) -> List[Column]:
    return column_list_adapter.validate_python(data)


def dump_columns(columns: List[Column]) -> list:
    return [c.model_dump(mode="json", exclude_none=True) for c in columns]


# ---- API payloads ----


class ColumnCreate(BaseModel):
    """Column spec for add/create. `id` is generated server-side when omitted."""

    id: Optional[str] = Field(default=None, min_length=1)
    name: str = Field(min_length=1, max_length=100)
    type: ColumnType
    width: Optional[int] = Field(default=None, ge=50, le=500)
    options: Optional[List[str]] = None
    status_options: Optional[List[StatusOption]] = None
    relation: Optional[RelationConfig] = None
    rollup: Optional[RollupConfig] = None
    formula: Optional[FormulaConfig] = None


class ColumnAdd(ColumnCreate):
    position: Optional[int] = Field(default=None, ge=0)


class ColumnUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[ColumnType] = None
    width: Optional[int] = Field(default=None, ge=50, le=500)
    options: Optional[List[str]] = None
    status_options: Optional[List[StatusOption]] = None
    relation: Optional[RelationConfig] = None
    rollup: Optional[RollupConfig] = None
    formula: Optional[FormulaConfig] = None
