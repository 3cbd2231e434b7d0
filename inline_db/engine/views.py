# File: /inline_db/engine/views.py | Version: 1.0 | Title: View Engine (filter, sort, group, column layout)
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from inline_db.engine.computed import MaterializedEntry
from inline_db.engine.values import as_number, format_value, is_empty
from inline_db.schemas.columns import Column, ColumnType, SelectColumn
from inline_db.schemas.filters import FilterOperator, FilterRule, SortDirection, SortSpec
from inline_db.schemas.view import (
    ColumnLayout,
    GalleryCard,
    GalleryPresentation,
    KanbanBucket,
    KanbanPresentation,
    Presentation,
    RowOut,
    TablePresentation,
    ViewDescriptor,
)

DEFAULT_COLUMN_WIDTH = 150
UNCATEGORIZED = "Uncategorized"
GALLERY_PREVIEW_FIELDS = 3


# ---- Filtering ----


def _equals(value: Any, target: Any) -> bool:
    if isinstance(value, list):
        return any(_equals(item, target) for item in value)
    if target is None:
        return is_empty(value)
    if value is None:
        return False
    if isinstance(value, bool):
        if isinstance(target, bool):
            return value is target
        return format_value(value) == str(target).strip().lower()
    vn = as_number(value)
    if vn is not None:
        tn = as_number(target, parse_strings=True)
        return tn is not None and vn == tn
    return str(value) == format_value(target)


def _contains(value: Any, target: Any) -> bool:
    if target is None or is_empty(value):
        return False
    needle = format_value(target).casefold()
    if isinstance(value, list):
        return any(needle in format_value(item).casefold() for item in value)
    return needle in format_value(value).casefold()


def _compare(value: Any, target: Any) -> Optional[int]:
    """Three-way compare; None when the pair is not comparable (null never matches)."""
    if is_empty(value) or target is None or isinstance(value, (list, bool)):
        return None
    vn = as_number(value, parse_strings=isinstance(value, str))
    tn = as_number(target, parse_strings=True)
    if vn is not None and tn is not None:
        return (vn > tn) - (vn < tn)
    if isinstance(value, str) and isinstance(target, str):
        a, b = value.casefold(), target.casefold()
        return (a > b) - (a < b)
    return None


def matches(value: Any, rule: FilterRule) -> bool:
    op = rule.operator
    if op is FilterOperator.is_empty:
        return is_empty(value)
    if op is FilterOperator.is_not_empty:
        return not is_empty(value)
    if op is FilterOperator.equals:
        return _equals(value, rule.value)
    if op is FilterOperator.not_equals:
        return not _equals(value, rule.value)
    if op is FilterOperator.contains:
        return _contains(value, rule.value)
    if op is FilterOperator.not_contains:
        return not _contains(value, rule.value)

    cmp = _compare(value, rule.value)
    if cmp is None:
        return False
    if op is FilterOperator.gt:
        return cmp > 0
    if op is FilterOperator.gte:
        return cmp >= 0
    if op is FilterOperator.lt:
        return cmp < 0
    return cmp <= 0


def _filter_value(entry: MaterializedEntry, column_id: str) -> Any:
    if column_id in entry.relations:
        return [link["title"] for link in entry.relations[column_id]] or None
    return entry.values.get(column_id)


def apply_filters(
    entries: Sequence[MaterializedEntry], filters: Sequence[FilterRule]
) -> List[MaterializedEntry]:
    """All rules AND-combined over effective values. Unknown columns read as empty."""
    return [
        e for e in entries if all(matches(_filter_value(e, r.column_id), r) for r in filters)
    ]


# ---- Sorting ----


def _sort_key(value: Any) -> Tuple[int, Any]:
    if isinstance(value, bool):
        return (0, float(value))
    n = as_number(value)
    if n is not None:
        return (0, n)
    return (1, format_value(value).casefold())


def sort_entries(
    entries: Sequence[MaterializedEntry], sort: Optional[SortSpec]
) -> List[MaterializedEntry]:
    """Stable sort by effective value; empties last in both directions, ties keep creation order."""
    ordered = sorted(entries, key=lambda e: (e.position, e.created_at, e.id))
    if sort is None:
        return ordered
    present = [e for e in ordered if not is_empty(_filter_value(e, sort.column_id))]
    empty = [e for e in ordered if is_empty(_filter_value(e, sort.column_id))]
    present.sort(
        key=lambda e: _sort_key(_filter_value(e, sort.column_id)),
        reverse=sort.direction is SortDirection.desc,
    )
    return present + empty


# ---- Column layout (table only) ----


def reconcile_column_order(order: Sequence[str], schema_ids: Sequence[str]) -> List[str]:
    """Keep known ids in their given order, prune removed ones, append new ones in schema order."""
    known = set(schema_ids)
    out: List[str] = []
    for column_id in order:
        if column_id in known and column_id not in out:
            out.append(column_id)
    out.extend(c for c in schema_ids if c not in out)
    return out


def column_layout(columns: Sequence[Column], descriptor: ViewDescriptor) -> List[ColumnLayout]:
    by_id = {c.id: c for c in columns}
    hidden = set(descriptor.hidden_columns)
    layout = []
    for column_id in reconcile_column_order(descriptor.column_order, [c.id for c in columns]):
        if column_id in hidden:
            continue
        col = by_id[column_id]
        width = descriptor.column_widths.get(column_id) or col.width or DEFAULT_COLUMN_WIDTH
        layout.append(ColumnLayout(id=col.id, name=col.name, type=col.type, width=width))
    return layout


def _row(entry: MaterializedEntry, column_ids: Sequence[str]) -> RowOut:
    return RowOut(
        id=entry.id,
        values={c: entry.values.get(c) for c in column_ids},
        relations={c: entry.relations[c] for c in column_ids if c in entry.relations},
    )


# ---- Presentations ----


def render_table(
    columns: Sequence[Column], entries: Sequence[MaterializedEntry], descriptor: ViewDescriptor
) -> TablePresentation:
    layout = column_layout(columns, descriptor)
    visible = [c.id for c in layout]
    rows = sort_entries(apply_filters(entries, descriptor.filters), descriptor.sort_by)
    return TablePresentation(columns=layout, rows=[_row(e, visible) for e in rows], total=len(rows))


def resolve_group_column(columns: Sequence[Column], group_by: Optional[str]) -> Optional[SelectColumn]:
    selects = [c for c in columns if isinstance(c, SelectColumn) and c.column_type is ColumnType.SELECT]
    for col in selects:
        if col.id == group_by:
            return col
    return selects[0] if selects else None


def render_kanban(
    columns: Sequence[Column], entries: Sequence[MaterializedEntry], descriptor: ViewDescriptor
) -> KanbanPresentation:
    group_col = resolve_group_column(columns, descriptor.group_by)
    if group_col is None:
        return KanbanPresentation(
            supported=False, message="Kanban view requires a SELECT column."
        )

    hidden = set(descriptor.hidden_columns)
    visible = [c.id for c in columns if c.id not in hidden]
    buckets: Dict[Optional[str], List[RowOut]] = {opt: [] for opt in group_col.options}
    buckets[None] = []
    for entry in sort_entries(apply_filters(entries, descriptor.filters), None):
        value = entry.values.get(group_col.id)
        key = value if isinstance(value, str) and value in group_col.options else None
        buckets[key].append(_row(entry, visible))

    out = [KanbanBucket(key=opt, label=opt, rows=buckets[opt]) for opt in group_col.options]
    if buckets[None]:
        out.append(KanbanBucket(key=None, label=UNCATEGORIZED, rows=buckets[None]))
    return KanbanPresentation(supported=True, group_by=group_col.id, buckets=out)


def render_gallery(
    columns: Sequence[Column], entries: Sequence[MaterializedEntry], descriptor: ViewDescriptor
) -> GalleryPresentation:
    title_col = next((c for c in columns if c.column_type is ColumnType.TEXT), None)
    if title_col is None and columns:
        title_col = columns[0]
    hidden = set(descriptor.hidden_columns)
    preview_cols = [c for c in columns if c is not title_col and c.id not in hidden]

    cards = []
    for entry in sort_entries(apply_filters(entries, descriptor.filters), None):
        raw = _filter_value(entry, title_col.id) if title_col is not None else None
        title = "Untitled" if is_empty(raw) else format_value(raw)
        preview = []
        for col in preview_cols:
            value = _filter_value(entry, col.id)
            if is_empty(value):
                continue
            preview.append({"column_id": col.id, "name": col.name, "value": value})
            if len(preview) == GALLERY_PREVIEW_FIELDS:
                break
        cards.append(GalleryCard(id=entry.id, title=title, preview=preview))
    return GalleryPresentation(cards=cards)


def render(
    columns: Sequence[Column], entries: Sequence[MaterializedEntry], descriptor: ViewDescriptor
) -> Presentation:
    if descriptor.view_type == "kanban":
        return render_kanban(columns, entries, descriptor)
    if descriptor.view_type == "gallery":
        return render_gallery(columns, entries, descriptor)
    return render_table(columns, entries, descriptor)
