# File: /inline_db/schemas/filters.py | Version: 2.0 | Title: View filter & sort schemas
from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FilterOperator(str, Enum):
    equals = "equals"
    not_equals = "notEquals"
    contains = "contains"
    not_contains = "notContains"
    is_empty = "isEmpty"
    is_not_empty = "isNotEmpty"
    gt = "gt"
    lt = "lt"
    gte = "gte"
    lte = "lte"


VALUELESS_OPERATORS = frozenset({FilterOperator.is_empty, FilterOperator.is_not_empty})


class FilterRule(BaseModel):
    column_id: str = Field(min_length=1)
    operator: FilterOperator
    value: Optional[Union[bool, float, str, List[Any]]] = None


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


class SortSpec(BaseModel):
    column_id: str = Field(min_length=1)
    direction: SortDirection = SortDirection.asc

    model_config = ConfigDict(from_attributes=True)
