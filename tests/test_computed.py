# File: /tests/test_computed.py | Title: Computed Column Engine (relations, rollups, formulas)
import pytest

from inline_db.engine.computed import aggregate
from inline_db.schemas.columns import Aggregation

from engine_helpers import engine_over, snapshot

TASKS = [
    {"id": "t_name", "name": "Task", "type": "TEXT"},
    {"id": "t_hours", "name": "Hours", "type": "NUMBER"},
    {"id": "t_note", "name": "Note", "type": "TEXT"},
]


def projects(rollups, rows):
    columns = [
        {"id": "p_name", "name": "Project", "type": "TEXT"},
        {"id": "p_tasks", "name": "Tasks", "type": "RELATION", "relation": {"target_database_id": "tasks"}},
    ] + rollups
    return snapshot("projects", columns, rows)


def rollup(col_id, aggregation, target="t_hours", source="p_tasks"):
    return {
        "id": col_id,
        "name": col_id,
        "type": "ROLLUP",
        "rollup": {"source_relation_column_id": source, "target_column_id": target, "aggregation": aggregation},
    }


@pytest.fixture()
def tasks():
    return snapshot(
        "tasks",
        TASKS,
        [
            ("t1", {"t_name": "Design", "t_hours": 3.0, "t_note": "x"}),
            ("t2", {"t_name": "Build", "t_hours": 5.0}),
            ("t3", {"t_name": "", "t_hours": None, "t_note": "y"}),
        ],
    )


def values_of(engine, snap, entry_id):
    return engine.materialize_entry(snap, snap.entry(entry_id)).values


def test_rollup_aggregations(tasks):
    proj = projects(
        [
            rollup("count", "count"),
            rollup("count_values", "count_values"),
            rollup("sum", "sum"),
            rollup("avg", "avg"),
            rollup("min", "min"),
            rollup("max", "max"),
            rollup("concat", "concat", target="t_name"),
            rollup("pe", "percent_empty", target="t_note"),
            rollup("pne", "percent_not_empty", target="t_note"),
        ],
        [("p1", {"p_name": "Apollo", "p_tasks": ["t1", "t2", "t3"]})],
    )
    values = values_of(engine_over(proj, tasks), proj, "p1")
    assert values["count"] == 3.0
    assert values["count_values"] == 2.0
    assert values["sum"] == 8.0
    assert values["avg"] == 4.0
    assert values["min"] == 3.0
    assert values["max"] == 5.0
    assert values["concat"] == "Design, Build"
    assert values["pe"] == pytest.approx(1 / 3)
    assert values["pne"] == pytest.approx(2 / 3)


@pytest.mark.parametrize("props", [{}, {"p_tasks": []}, {"p_tasks": None}])
def test_rollup_count_is_zero_without_links(tasks, props):
    proj = projects([rollup("count", "count"), rollup("sum", "sum"), rollup("pe", "percent_empty")], [("p1", props)])
    values = values_of(engine_over(proj, tasks), proj, "p1")
    assert values["count"] == 0.0
    assert values["sum"] is None
    assert values["pe"] == 0.0


def test_rollup_count_equals_linked_ids_even_when_dangling(tasks):
    proj = projects([rollup("count", "count"), rollup("sum", "sum")], [("p1", {"p_tasks": ["t1", "gone"]})])
    values = values_of(engine_over(proj, tasks), proj, "p1")
    assert values["count"] == 2.0
    assert values["sum"] == 3.0


def test_rollup_with_deleted_target_column_is_null(tasks):
    proj = projects([rollup("sum", "sum", target="deleted_col")], [("p1", {"p_tasks": ["t1"]})])
    assert values_of(engine_over(proj, tasks), proj, "p1")["sum"] is None


def test_rollup_with_deleted_target_database_is_null():
    proj = projects([rollup("sum", "sum")], [("p1", {"p_tasks": ["t1"]})])
    engine = engine_over(proj)  # "tasks" no longer loads
    entry = engine.materialize_entry(proj, proj.entry("p1"))
    assert entry.values["sum"] is None
    assert entry.relations["p_tasks"] == []


def test_rollup_with_deleted_source_column_is_null(tasks):
    proj = projects([rollup("sum", "sum", source="missing")], [("p1", {"p_tasks": ["t1"]})])
    assert values_of(engine_over(proj, tasks), proj, "p1")["sum"] is None


def test_relation_links_skip_dangling_and_use_titles(tasks):
    proj = projects([], [("p1", {"p_tasks": ["t3", "gone", "t1"]})])
    entry = engine_over(proj, tasks).materialize_entry(proj, proj.entry("p1"))
    assert entry.relations["p_tasks"] == [{"id": "t3", "title": "Untitled"}, {"id": "t1", "title": "Design"}]
    assert entry.values["p_tasks"] == ["t3", "gone", "t1"]


def test_relation_to_other_organization_is_unresolved():
    foreign = snapshot("tasks", TASKS, [("t1", {"t_hours": 1.0})], org="other")
    proj = projects([rollup("count", "count"), rollup("sum", "sum")], [("p1", {"p_tasks": ["t1"]})])
    values = values_of(engine_over(proj, foreign), proj, "p1")
    assert values["count"] is None
    assert values["sum"] is None


def test_formula_reads_other_columns_by_name(tasks):
    cols = TASKS + [
        {"id": "f", "name": "Cost", "type": "FORMULA",
         "formula": {"expression": 'prop("hours") * 100', "result_type": "number"}},
        {"id": "g", "name": "Label", "type": "FORMULA",
         "formula": {"expression": 'concat(prop("Task"), ": ", prop("Cost"))'}},
    ]
    snap = snapshot("tasks", cols, [("t1", {"t_name": "Design", "t_hours": 2.0})])
    values = values_of(engine_over(snap), snap, "t1")
    assert values["f"] == 200.0
    assert values["g"] == "Design: 200"


def test_formula_cycle_short_circuits_to_null():
    cols = [
        {"id": "a", "name": "A", "type": "FORMULA", "formula": {"expression": 'prop("B") + 1', "result_type": "number"}},
        {"id": "b", "name": "B", "type": "FORMULA", "formula": {"expression": 'prop("A") + 1', "result_type": "number"}},
    ]
    snap = snapshot("loop", cols, [("e1", {})])
    values = values_of(engine_over(snap), snap, "e1")
    assert values["a"] is None
    assert values["b"] is None


def test_rollup_over_self_relation_cycle_terminates():
    cols = [
        {"id": "name", "name": "Name", "type": "TEXT"},
        {"id": "rel", "name": "Rel", "type": "RELATION", "relation": {"target_database_id": "self"}},
        {"id": "r", "name": "R", "type": "ROLLUP",
         "rollup": {"source_relation_column_id": "rel", "target_column_id": "r", "aggregation": "sum"}},
    ]
    snap = snapshot("self", cols, [("e1", {"rel": ["e2"]}), ("e2", {"rel": ["e1"]})])
    values = values_of(engine_over(snap), snap, "e1")
    assert values["r"] is None


def test_formula_over_relation_sees_titles(tasks):
    proj = projects(
        [{"id": "f", "name": "F", "type": "FORMULA", "formula": {"expression": 'concat(prop("Tasks"))'}}],
        [("p1", {"p_tasks": ["t1", "t2"]})],
    )
    assert values_of(engine_over(proj, tasks), proj, "p1")["f"] == "Design, Build"


def test_stale_stored_values_read_as_null():
    cols = [{"id": "n", "name": "N", "type": "NUMBER"}]
    snap = snapshot("stale", cols, [("e1", {"n": "twelve", "orphan": 1})])
    entry = engine_over(snap).materialize_entry(snap, snap.entry("e1"))
    assert entry.values == {"n": None}
    assert entry.properties["orphan"] == 1


def test_aggregate_helpers():
    assert aggregate(Aggregation.concat, [None, ""], 2) is None
    assert aggregate(Aggregation.percent_not_empty, [], 0) == 0.0
    assert aggregate(Aggregation.max, ["a"], 1) is None
