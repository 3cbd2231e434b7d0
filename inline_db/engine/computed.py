# File: /inline_db/engine/computed.py | Version: 1.0 | Title: Computed Column Engine (relations, rollups, formulas)
"""
Turns raw snapshots into effective per-column values.

Every reference (relation target database, rollup source/target column,
formula ``prop`` name, linked entry id) may dangle after a delete elsewhere.
A dangling reference yields ``None`` for the affected cell and nothing else:
no exception leaves this module. Recursive evaluation (rollup of a formula
of a rollup ...) carries a visited set of ``(database_id, entry_id,
column_id)``; re-entering a node short-circuits to ``None``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from inline_db.core.errors import UnresolvedReference
from inline_db.engine import formula as formula_lang
from inline_db.engine.snapshot import DatabaseSnapshot, EntryRecord
from inline_db.engine.values import (
    CellValue,
    as_number,
    format_value,
    is_empty,
    read_value,
    relation_ids,
)
from inline_db.schemas.columns import (
    Aggregation,
    Column,
    ColumnType,
    FormulaColumn,
    RelationColumn,
    RollupColumn,
)

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[str], Optional[DatabaseSnapshot]]
_Node = Tuple[str, str, str]


@dataclass
class MaterializedEntry:
    id: str
    database_id: str
    position: int
    created_at: datetime
    updated_at: datetime
    properties: Dict[str, Any]
    values: Dict[str, CellValue] = field(default_factory=dict)
    relations: Dict[str, List[Dict[str, str]]] = field(default_factory=dict)


def aggregate(aggregation: Aggregation, values: Sequence[Any], linked: int) -> CellValue:
    """Apply a rollup aggregation to target values (one per linked id, None when empty/dangling)."""
    present = [v for v in values if not is_empty(v)]

    if aggregation is Aggregation.count:
        return float(linked)
    if aggregation is Aggregation.count_values:
        return float(len(present))
    if aggregation is Aggregation.percent_empty:
        return (linked - len(present)) / linked if linked else 0.0
    if aggregation is Aggregation.percent_not_empty:
        return len(present) / linked if linked else 0.0
    if aggregation is Aggregation.concat:
        return ", ".join(format_value(v) for v in present) or None

    numbers = [n for n in (as_number(v) for v in present) if n is not None]
    if not numbers:
        return None
    if aggregation is Aggregation.sum:
        return float(sum(numbers))
    if aggregation is Aggregation.avg:
        return sum(numbers) / len(numbers)
    if aggregation is Aggregation.min:
        return min(numbers)
    if aggregation is Aggregation.max:
        return max(numbers)
    return None


class ComputedColumnEngine:
    """One instance per read; memoizes the snapshots it loads."""

    def __init__(self, load: SnapshotLoader) -> None:
        self._load = load
        self._snapshots: Dict[str, Optional[DatabaseSnapshot]] = {}

    def snapshot(self, database_id: str) -> Optional[DatabaseSnapshot]:
        if database_id not in self._snapshots:
            self._snapshots[database_id] = self._load(database_id)
        return self._snapshots[database_id]

    def seed(self, snapshot: DatabaseSnapshot) -> None:
        self._snapshots[snapshot.id] = snapshot

    # ---- Public API ----

    def materialize(self, snapshot: DatabaseSnapshot) -> List[MaterializedEntry]:
        self.seed(snapshot)
        return [self.materialize_entry(snapshot, e) for e in snapshot.entries]

    def materialize_entry(self, snapshot: DatabaseSnapshot, entry: EntryRecord) -> MaterializedEntry:
        out = MaterializedEntry(
            id=entry.id,
            database_id=entry.database_id,
            position=entry.position,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            properties=dict(entry.properties),
        )
        for column in snapshot.columns:
            out.values[column.id] = self.effective_value(snapshot, entry, column)
            if isinstance(column, RelationColumn):
                out.relations[column.id] = self.relation_links(
                    snapshot, column, entry.properties.get(column.id)
                )
        return out

    def effective_value(
        self,
        snapshot: DatabaseSnapshot,
        entry: EntryRecord,
        column: Column,
        visited: FrozenSet[_Node] = frozenset(),
    ) -> CellValue:
        node = (snapshot.id, entry.id, column.id)
        if node in visited:
            logger.debug("cycle detected at %s; short-circuiting to null", node)
            return None
        visited = visited | {node}
        try:
            if isinstance(column, RollupColumn):
                return self._rollup(snapshot, entry, column, visited)
            if isinstance(column, FormulaColumn):
                return self._formula(snapshot, entry, column, visited)
            return read_value(column, entry.properties.get(column.id))
        except UnresolvedReference as exc:
            logger.debug("unresolved reference in %s: %s", node, exc.message)
            return None

    def relation_links(
        self, snapshot: DatabaseSnapshot, column: RelationColumn, raw: Any
    ) -> List[Dict[str, str]]:
        """Resolvable linked entries as ``{id, title}``; dangling ids are skipped."""
        target = self._target_of(snapshot, column)
        if target is None:
            return []
        links = []
        for entry_id in relation_ids(read_value(column, raw) if raw is not None else None):
            linked = target.entry(entry_id)
            if linked is not None:
                links.append({"id": linked.id, "title": target.title_of(linked)})
        return links

    # ---- Internals ----

    def _target_of(self, snapshot: DatabaseSnapshot, column: RelationColumn) -> Optional[DatabaseSnapshot]:
        target = self.snapshot(column.relation.target_database_id)
        if target is None or target.organization_id != snapshot.organization_id:
            return None
        return target

    def _rollup(
        self,
        snapshot: DatabaseSnapshot,
        entry: EntryRecord,
        column: RollupColumn,
        visited: FrozenSet[_Node],
    ) -> CellValue:
        cfg = column.rollup
        source = snapshot.column(cfg.source_relation_column_id)
        if not isinstance(source, RelationColumn):
            raise UnresolvedReference(f"relation column {cfg.source_relation_column_id} is gone")
        target = self._target_of(snapshot, source)
        if target is None:
            raise UnresolvedReference(f"database {source.relation.target_database_id} is gone")
        target_column = target.column(cfg.target_column_id)
        if target_column is None:
            raise UnresolvedReference(f"target column {cfg.target_column_id} is gone")

        ids = relation_ids(read_value(source, entry.properties.get(source.id)))
        if cfg.aggregation is Aggregation.count:
            return float(len(ids))

        values: List[Any] = []
        for linked_id in ids:
            linked = target.entry(linked_id)
            if linked is None:
                values.append(None)
                continue
            values.append(self.effective_value(target, linked, target_column, visited))
        return aggregate(cfg.aggregation, values, len(ids))

    def _formula(
        self,
        snapshot: DatabaseSnapshot,
        entry: EntryRecord,
        column: FormulaColumn,
        visited: FrozenSet[_Node],
    ) -> CellValue:
        def lookup(name: str) -> Any:
            ref = snapshot.column_by_name(name)
            if ref is None:
                raise formula_lang.FormulaError(f"unknown column {name!r}")
            value = self.effective_value(snapshot, entry, ref, visited)
            if ref.column_type is ColumnType.RELATION:
                return [link["title"] for link in self.relation_links(snapshot, ref, value)]
            return value

        return formula_lang.evaluate_formula(
            column.formula.expression, lookup, column.formula.result_type
        )
