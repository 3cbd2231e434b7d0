# File: /tests/test_formula.py | Title: Formula language (parse, evaluate, validation)
import pytest

from inline_db.engine.formula import (
    FormulaError,
    check_expression,
    evaluate_formula,
    parse,
    referenced_columns,
    rename_column_reference,
)

VALUES = {"Price": 10.0, "Qty": 3.0, "Name": "Widget", "Tags": ["a", "b"], "Empty": None}


def lookup(name):
    return VALUES[name]


@pytest.mark.parametrize(
    "expression,result_type,expected",
    [
        ('prop("Price") * prop("Qty")', "number", 30.0),
        ('prop("Price") + 1 * 2', "number", 12.0),
        ('(prop("Price") + 1) * 2', "number", 22.0),
        ('-prop("Qty") + 5', "number", 2.0),
        ('concat(prop("Name"), " x", prop("Qty"))', "text", "Widget x3"),
        ('prop("Name") + "!"', "text", "Widget!"),
        ('length(prop("Tags"))', "number", 2.0),
        ('round(1.25, 1)', "number", 1.3),
        ('round(2.5)', "number", 3.0),
        ('floor(2.7) + ceil(0.2) + abs(-1)', "number", 4.0),
        ('min(3, 1, 2)', "number", 1.0),
        ('max(prop("Price"), prop("Qty"))', "number", 10.0),
        ('if(prop("Price") > 5, "big", "small")', "text", "big"),
        ('empty(prop("Empty"))', "boolean", True),
        ('prop("Qty") == 3', "boolean", True),
        ('"2024-01-05"', "date", "2024-01-05"),
    ],
)
def test_evaluates(expression, result_type, expected):
    assert evaluate_formula(expression, lookup, result_type) == expected


@pytest.mark.parametrize(
    "expression",
    ['prop("Price") / 0', 'prop("Price") % 0', 'prop("Name") * 2', "nosuch(1)", "1 +", 'prop("Nope")'],
)
def test_errors_evaluate_to_null(expression):
    def strict(name):
        if name not in VALUES:
            raise FormulaError(f"unknown column {name}")
        return VALUES[name]

    assert evaluate_formula(expression, strict, "number") is None


def test_null_propagates_through_arithmetic():
    assert evaluate_formula('prop("Empty") + 1', lookup, "number") is None


def test_if_is_lazy():
    # the untaken branch would divide by zero
    assert evaluate_formula('if(true, 1, 1 / 0)', lookup, "number") == 1.0


def test_referenced_columns_and_check():
    node = parse('if(prop("A") > 1, prop("B"), concat(prop("C")))')
    assert referenced_columns(node) == {"A", "B", "C"}
    assert check_expression('prop("a") + 1', {"A"}) is None
    assert "Unknown column" in check_expression('prop("Z")', {"A"})
    assert check_expression("1 +", {"A"}) is not None


def test_prop_requires_a_quoted_name():
    with pytest.raises(FormulaError):
        parse("prop(1)")


def test_round_digits_are_bounded():
    assert evaluate_formula("round(2.25, 15)", lookup, "number") == 2.25
    assert evaluate_formula("round(1, 1000000000)", lookup, "number") is None


@pytest.mark.parametrize(
    "expression",
    ["-" * 1500 + "1", "(" * 200 + "1" + ")" * 200, " + ".join(["1"] * 500)],
)
def test_deep_nesting_is_rejected(expression):
    with pytest.raises(FormulaError, match="nested"):
        parse(expression)
    assert "nested" in check_expression(expression, set())
    assert evaluate_formula(expression, lookup, "number") is None


def test_moderate_nesting_still_evaluates():
    assert evaluate_formula("-" * 10 + "1", lookup, "number") == 1.0
    assert evaluate_formula("(" * 20 + "2" + ")" * 20 + " * 3", lookup, "number") == 6.0


@pytest.mark.parametrize(
    "expression,expected",
    [
        ('prop("Score") * 2', 'prop("Points") * 2'),
        ("PROP( 'score' ) + prop(\"Other\")", 'PROP( "Points" ) + prop("Other")'),
        ('concat("Score", prop("Name"))', 'concat("Score", prop("Name"))'),
        ("prop(\"Score\") +", 'prop("Points") +'),
    ],
)
def test_rename_column_reference(expression, expected):
    assert rename_column_reference(expression, "Score", "Points") == expected


def test_rename_column_reference_escapes_quotes():
    renamed = rename_column_reference('prop("A")', "A", 'Say "hi"')
    assert renamed == 'prop("Say \\"hi\\"")'
    assert referenced_columns(parse(renamed)) == {'Say "hi"'}
