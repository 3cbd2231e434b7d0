# File: /inline_db/engine/values.py | Version: 1.0 | Title: Cell value coercion (write time) and conformance (read time)
"""
Cell values form a closed set: ``None | str | float | bool | list[str]``.

``coerce_value`` runs when a value is written and never raises for bad input:
anything that cannot be parsed for the column's type is stored as null (or
``False`` for checkboxes). ``read_value`` runs when a stored value is read
back under the column's *current* type; stale values from an earlier type
that no longer fit read as null instead of being converted.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from inline_db.core.errors import CoercionFailure, InvalidEntryProperties
from inline_db.schemas.columns import (
    Column,
    ColumnType,
    RelationColumn,
    StatusColumn,
)

logger = logging.getLogger(__name__)

CellValue = Union[None, str, float, bool, List[str]]

TRUE_STRINGS = frozenset({"true", "yes", "y", "1", "on", "checked", "x"})


# ---- Generic helpers ----


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def format_number(value: float) -> str:
    if math.isfinite(value) and value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def format_value(value: Any) -> str:
    """Human text for a cell value, used by concat rollups and formula string math."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(v) for v in value if not is_empty(v))
    return str(value)


def as_number(value: Any, *, parse_strings: bool = False) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            f = float(value)
        except OverflowError:
            return None
        return f if math.isfinite(f) else None
    if parse_strings and isinstance(value, str):
        try:
            return _parse_number(value)
        except CoercionFailure:
            return None
    return None


def _parse_number(raw: Any) -> float:
    if isinstance(raw, bool):
        raise CoercionFailure(f"boolean {raw!r} is not a number")
    if isinstance(raw, (int, float)):
        try:
            f = float(raw)
        except OverflowError:
            raise CoercionFailure("number is too large")
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise CoercionFailure("empty number")
        try:
            f = float(text)
        except ValueError:
            raise CoercionFailure(f"{raw!r} is not a number")
    else:
        raise CoercionFailure(f"{type(raw).__name__} is not a number")
    if not math.isfinite(f):
        raise CoercionFailure(f"{raw!r} is not finite")
    return f


def _parse_date(raw: Any) -> str:
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    if not isinstance(raw, str):
        raise CoercionFailure(f"{type(raw).__name__} is not a date")
    text = raw.strip()
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        raise CoercionFailure(f"{raw!r} is not an ISO date")


def _as_text(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bool, int, float)):
        return format_value(raw)
    raise CoercionFailure(f"{type(raw).__name__} is not text")


def _string_list(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        items: Iterable[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = raw
    else:
        items = [raw]
    out: List[str] = []
    for item in items:
        if item is None:
            continue
        text = (item if isinstance(item, str) else format_value(item)).strip()
        if text and text not in out:
            out.append(text)
    return out


def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


# ---- Write path ----


def coerce_value(column: Column, raw: Any) -> CellValue:
    """Coerce an incoming value for ``column``. Never raises for bad input."""
    try:
        return _coerce(column, raw)
    except CoercionFailure as exc:
        logger.debug("coercion failed for column %s (%s): %s", column.id, column.type, exc)
        if column.column_type is ColumnType.CHECKBOX:
            return False
        return None


def _coerce(column: Column, raw: Any) -> CellValue:
    kind = column.column_type

    if kind is ColumnType.NUMBER:
        if raw is None:
            return None
        return _parse_number(raw)

    if kind is ColumnType.CHECKBOX:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, (int, float)):
            return raw != 0
        if isinstance(raw, str):
            return raw.strip().lower() in TRUE_STRINGS
        return False

    if kind is ColumnType.DATE:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        return _parse_date(raw)

    if kind is ColumnType.SELECT:
        text = _as_text(raw)
        if text is None or not text.strip():
            return None
        return text.strip()

    if isinstance(column, StatusColumn):
        text = _as_text(raw)
        if text is None or not text.strip():
            return None
        opt = column.option_for(text)
        return opt.id if opt is not None else text.strip()

    if kind is ColumnType.MULTI_SELECT:
        return _string_list(raw)

    if isinstance(column, RelationColumn):
        ids = _string_list(raw)
        if column.relation.cardinality == "one":
            return ids[0] if ids else None
        return ids

    if kind in (ColumnType.TEXT, ColumnType.URL, ColumnType.PERSON):
        return _as_text(raw)

    raise InvalidEntryProperties(
        f"Column '{column.name}' is computed and cannot be written",
        detail={"column_id": column.id},
    )


def coerce_properties(
    columns: Sequence[Column], properties: Mapping[str, Any]
) -> Dict[str, CellValue]:
    """Coerce a (partial) property map. Unknown column ids are dropped."""
    by_id = {c.id: c for c in columns}
    out: Dict[str, CellValue] = {}
    for column_id, raw in properties.items():
        column = by_id.get(column_id)
        if column is None:
            logger.debug("dropping value for unknown column %s", column_id)
            continue
        out[column_id] = coerce_value(column, raw)
    return out


def with_link(column: RelationColumn, current: Any, target_id: str) -> CellValue:
    if column.relation.cardinality == "one":
        return target_id
    ids = _string_list(current)
    if target_id not in ids:
        ids.append(target_id)
    return ids


def without_link(column: RelationColumn, current: Any, target_id: str) -> CellValue:
    if column.relation.cardinality == "one":
        return None if current == target_id else coerce_value(column, current)
    return [i for i in _string_list(current) if i != target_id]


# ---- Read path ----


def read_value(column: Column, raw: Any) -> CellValue:
    """Conform a stored value to the column's current type; stale shapes read as null."""
    kind = column.column_type

    if kind is ColumnType.NUMBER:
        return as_number(raw)

    if kind is ColumnType.CHECKBOX:
        return raw if isinstance(raw, bool) else None

    if kind is ColumnType.DATE:
        if isinstance(raw, str) and _is_iso_date(raw):
            return raw
        return None

    if kind in (
        ColumnType.TEXT,
        ColumnType.URL,
        ColumnType.PERSON,
        ColumnType.SELECT,
        ColumnType.STATUS,
    ):
        return raw if isinstance(raw, str) else None

    if kind is ColumnType.MULTI_SELECT:
        if isinstance(raw, list) and all(isinstance(v, str) for v in raw):
            return list(raw)
        return None

    if isinstance(column, RelationColumn):
        ids = relation_ids(raw)
        if column.relation.cardinality == "one":
            return ids[0] if ids else None
        return ids

    # ROLLUP / FORMULA are computed, never read from storage
    return None


def relation_ids(raw: Any) -> List[str]:
    """Linked ids of a stored relation value, in link order, regardless of cardinality."""
    if isinstance(raw, str):
        return [raw] if raw else []
    if isinstance(raw, list):
        return [v for v in raw if isinstance(v, str) and v]
    return []
