# File: /tests/test_values.py | Title: Write-time coercion and read-time conformance
import pytest

from inline_db.core.errors import InvalidEntryProperties
from inline_db.engine.values import (
    as_number,
    coerce_properties,
    coerce_value,
    format_value,
    is_empty,
    read_value,
    with_link,
    without_link,
)
from inline_db.schemas.columns import parse_column


def col(type_, **extra):
    return parse_column({"id": f"c_{type_.lower()}", "name": type_.title(), "type": type_, **extra})


@pytest.mark.parametrize("raw", ["abc", "", "  ", None, True, float("nan"), "inf", {"a": 1}])
def test_number_garbage_becomes_null(raw):
    assert coerce_value(col("NUMBER"), raw) is None


def test_number_parses_strings_and_ints():
    assert coerce_value(col("NUMBER"), " 42.5 ") == 42.5
    assert coerce_value(col("NUMBER"), 7) == 7.0


@pytest.mark.parametrize(
    "raw,expected",
    [("true", True), ("YES", True), ("y", True), ("1", True), ("on", True), ("checked", True),
     ("x", True), ("no", False), ("banana", False), (2, True), (0, False), (None, False)],
)
def test_checkbox_truth_strings(raw, expected):
    assert coerce_value(col("CHECKBOX"), raw) is expected


def test_date_keeps_calendar_date_only():
    c = col("DATE")
    assert coerce_value(c, "2024-03-05") == "2024-03-05"
    assert coerce_value(c, "2024-03-05T23:59:00+05:00") == "2024-03-05"
    assert coerce_value(c, "05/03/2024") is None
    assert coerce_value(c, "") is None


def test_status_name_maps_to_option_id():
    c = col("STATUS", status_options=[{"id": "s1", "name": "Done", "color": "green"}])
    assert coerce_value(c, "done") == "s1"
    assert coerce_value(c, "s1") == "s1"
    assert coerce_value(c, "Blocked") == "Blocked"
    assert coerce_value(c, "  ") is None


def test_multi_select_splits_and_dedupes():
    c = col("MULTI_SELECT", options=["a", "b"])
    assert coerce_value(c, "a, b, a") == ["a", "b"]
    assert coerce_value(c, ["b", "b", " c "]) == ["b", "c"]
    assert coerce_value(c, None) == []


def test_relation_respects_cardinality():
    one = col("RELATION", relation={"target_database_id": "db2", "cardinality": "one"})
    many = col("RELATION", relation={"target_database_id": "db2"})
    assert coerce_value(one, ["e1", "e2"]) == "e1"
    assert coerce_value(many, ["e1", "e1", "e2"]) == ["e1", "e2"]
    assert coerce_value(many, "e3") == ["e3"]


def test_text_stringifies_scalars():
    assert coerce_value(col("TEXT"), 3.0) == "3"
    assert coerce_value(col("URL"), None) is None


def test_computed_columns_are_not_writable():
    rollup = col("ROLLUP", rollup={"source_relation_column_id": "r", "target_column_id": "t"})
    with pytest.raises(InvalidEntryProperties):
        coerce_value(rollup, 1)


def test_coerce_properties_drops_unknown_columns():
    out = coerce_properties([col("NUMBER")], {"c_number": "5", "ghost": "x"})
    assert out == {"c_number": 5.0}


def test_read_value_treats_stale_shapes_as_null():
    assert read_value(col("NUMBER"), "12") is None
    assert read_value(col("DATE"), "not a date") is None
    assert read_value(col("MULTI_SELECT", options=[]), "a") is None
    assert read_value(col("CHECKBOX"), "true") is None
    many = col("RELATION", relation={"target_database_id": "db2"})
    assert read_value(many, "e1") == ["e1"]


def test_relation_link_helpers():
    many = col("RELATION", relation={"target_database_id": "db2"})
    assert with_link(many, ["e1"], "e1") == ["e1"]
    assert with_link(many, ["e1"], "e2") == ["e1", "e2"]
    assert without_link(many, ["e1", "e2"], "e1") == ["e2"]
    one = col("RELATION", relation={"target_database_id": "db2", "cardinality": "one"})
    assert with_link(one, "e1", "e2") == "e2"
    assert without_link(one, "e2", "e2") is None


def test_empty_and_format():
    assert is_empty(None) and is_empty("") and is_empty([])
    assert not is_empty(False) and not is_empty(0.0)
    assert format_value([1.0, "b", None]) == "1, b"
    assert format_value(2.5) == "2.5"


def test_oversized_integers_do_not_overflow():
    huge = 10**400
    assert coerce_value(col("NUMBER"), huge) is None
    assert coerce_value(col("TEXT"), huge) == str(huge)
    assert format_value(huge) == str(huge)
    assert as_number(huge) is None
    assert as_number("1" + "0" * 400, parse_strings=True) is None


def test_status_and_relation_dispatch_on_column_class():
    status = col("STATUS", status_options=[{"id": "s1", "name": "To do"}])
    assert coerce_value(status, " to do ") == "s1"
    assert read_value(status, "s1") == "s1"
    one = col("RELATION", relation={"target_database_id": "db2", "cardinality": "one"})
    assert coerce_value(one, "e1") == "e1"
    assert read_value(one, ["e1", "e2"]) == "e1"
