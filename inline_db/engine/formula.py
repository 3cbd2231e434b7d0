# File: /inline_db/engine/formula.py | Version: 1.0 | Title: Minimal, side-effect-free formula language
"""
Grammar (lowest to highest precedence)::

    expr     := additive (("==" | "!=" | "<" | "<=" | ">" | ">=") additive)?
    additive := term (("+" | "-") term)*
    term     := unary (("*" | "/" | "%") unary)*
    unary    := "-" unary | primary
    primary  := NUMBER | STRING | true | false | null
              | IDENT "(" [expr ("," expr)*] ")" | "(" expr ")"

``prop("Column name")`` reads another column of the current entry (names are
case-insensitive). The only other callables are the pure helpers in
``FUNCTIONS``. Evaluation sees nothing but the values handed in through the
``lookup`` callback: no clock, no I/O, no attribute access.

Any failure (syntax, unknown column, type mismatch, division by zero) makes
``evaluate_formula`` return ``None``.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Any, Callable, List, Optional, Set, Tuple

from inline_db.engine.values import CellValue, as_number, format_value, is_empty


class FormulaError(Exception):
    pass


# ---- AST ----


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Prop:
    name: str


@dataclass(frozen=True)
class Call:
    name: str
    args: Tuple[Any, ...]


@dataclass(frozen=True)
class Unary:
    op: str
    operand: Any


@dataclass(frozen=True)
class Binary:
    op: str
    left: Any
    right: Any


# ---- Tokenizer ----

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>\d+(?:\.\d*)?|\.\d+)
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<op>==|!=|<=|>=|[-+*/%<>(),])
    """,
    re.VERBOSE,
)

_ESCAPE_RE = re.compile(r"\\(.)")


def tokenize(source: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    pos = 0
    while pos < len(source):
        m = _TOKEN_RE.match(source, pos)
        if not m:
            raise FormulaError(f"Unexpected character {source[pos]!r} at {pos}")
        kind = m.lastgroup or ""
        text = m.group(kind)
        pos = m.end()
        if kind == "ws":
            continue
        if kind == "string":
            text = _ESCAPE_RE.sub(r"\1", text[1:-1])
        tokens.append((kind, text))
    tokens.append(("end", ""))
    return tokens


# ---- Parser ----

_COMPARE_OPS = {"==", "!=", "<", "<=", ">", ">="}

# Parenthesised, negated and chained operands all count towards the depth
MAX_NESTING = 64


class _Parser:
    def __init__(self, tokens: List[Tuple[str, str]]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    def peek(self) -> Tuple[str, str]:
        return self.tokens[self.pos]

    def take(self) -> Tuple[str, str]:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def expect_op(self, op: str) -> None:
        kind, text = self.take()
        if kind != "op" or text != op:
            raise FormulaError(f"Expected {op!r}, got {text or kind!r}")

    def descend(self, extra: int = 1) -> None:
        if self.depth + extra > MAX_NESTING:
            raise FormulaError(f"Expression is nested more than {MAX_NESTING} levels deep")

    def parse(self) -> Any:
        node = self.expr()
        if self.peek()[0] != "end":
            raise FormulaError(f"Unexpected {self.peek()[1]!r}")
        return node

    def expr(self) -> Any:
        self.descend()
        self.depth += 1
        try:
            left = self.additive()
            kind, text = self.peek()
            if kind == "op" and text in _COMPARE_OPS:
                self.take()
                return Binary(text, left, self.additive())
            return left
        finally:
            self.depth -= 1

    def additive(self) -> Any:
        node = self.term()
        chain = 0
        while self.peek()[0] == "op" and self.peek()[1] in ("+", "-"):
            chain += 1
            self.descend(chain)
            op = self.take()[1]
            node = Binary(op, node, self.term())
        return node

    def term(self) -> Any:
        node = self.unary()
        chain = 0
        while self.peek()[0] == "op" and self.peek()[1] in ("*", "/", "%"):
            chain += 1
            self.descend(chain)
            op = self.take()[1]
            node = Binary(op, node, self.unary())
        return node

    def unary(self) -> Any:
        if self.peek() == ("op", "-"):
            self.take()
            self.descend()
            self.depth += 1
            try:
                return Unary("-", self.unary())
            finally:
                self.depth -= 1
        return self.primary()

    def primary(self) -> Any:
        kind, text = self.take()
        if kind == "number":
            return Literal(float(text))
        if kind == "string":
            return Literal(text)
        if kind == "op" and text == "(":
            node = self.expr()
            self.expect_op(")")
            return node
        if kind == "ident":
            lowered = text.lower()
            if self.peek() == ("op", "("):
                self.take()
                args = self.arguments()
                if lowered == "prop":
                    if len(args) != 1 or not isinstance(args[0], Literal) or not isinstance(args[0].value, str):
                        raise FormulaError('prop() takes one quoted column name')
                    return Prop(args[0].value)
                if lowered not in FUNCTIONS and lowered != "if":
                    raise FormulaError(f"Unknown function {text!r}")
                return Call(lowered, tuple(args))
            if lowered == "true":
                return Literal(True)
            if lowered == "false":
                return Literal(False)
            if lowered == "null":
                return Literal(None)
            raise FormulaError(f"Unknown name {text!r}")
        raise FormulaError(f"Unexpected {text or kind!r}")

    def arguments(self) -> List[Any]:
        args: List[Any] = []
        if self.peek() == ("op", ")"):
            self.take()
            return args
        while True:
            args.append(self.expr())
            kind, text = self.take()
            if kind == "op" and text == ")":
                return args
            if not (kind == "op" and text == ","):
                raise FormulaError(f"Expected ',' or ')', got {text or kind!r}")


def parse(expression: str) -> Any:
    return _Parser(tokenize(expression)).parse()


@lru_cache(maxsize=512)
def compile_expression(expression: str) -> Any:
    return parse(expression)


def referenced_columns(node: Any) -> Set[str]:
    """Column names referenced through prop(...)."""
    if isinstance(node, Prop):
        return {node.name}
    if isinstance(node, Call):
        out: Set[str] = set()
        for arg in node.args:
            out |= referenced_columns(arg)
        return out
    if isinstance(node, Unary):
        return referenced_columns(node.operand)
    if isinstance(node, Binary):
        return referenced_columns(node.left) | referenced_columns(node.right)
    return set()


# ---- Evaluation ----


def _num(value: Any) -> float:
    n = as_number(value)
    if n is None:
        raise FormulaError(f"{value!r} is not a number")
    return n


MAX_ROUND_DIGITS = 15


def _round_half_up(value: Any, digits: Any = 0.0) -> float:
    places = int(_num(digits))
    if abs(places) > MAX_ROUND_DIGITS:
        raise FormulaError(f"round() takes at most {MAX_ROUND_DIGITS} digits")
    scale = 10 ** places
    return math.floor(_num(value) * scale + 0.5) / scale


def _length(value: Any) -> float:
    if isinstance(value, list):
        return float(len(value))
    return float(len(format_value(value)))


def _numbers(args: Tuple[Any, ...]) -> List[float]:
    values = [_num(a) for a in args if a is not None]
    if not values:
        raise FormulaError("no numeric arguments")
    return values


FUNCTIONS: dict = {
    "concat": lambda *args: "".join(format_value(a) for a in args),
    "length": _length,
    "round": _round_half_up,
    "floor": lambda x: float(math.floor(_num(x))),
    "ceil": lambda x: float(math.ceil(_num(x))),
    "abs": lambda x: abs(_num(x)),
    "min": lambda *args: min(_numbers(args)),
    "max": lambda *args: max(_numbers(args)),
    "empty": is_empty,
}


_FALSE_STRINGS = frozenset({"", "false", "no", "n", "0", "off"})


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return not is_empty(value) and bool(value)


def _binary(op: str, left: Any, right: Any) -> Any:
    if op == "==":
        return _equal(left, right)
    if op == "!=":
        return not _equal(left, right)
    if left is None or right is None:
        return None
    if op == "+":
        if isinstance(left, str) or isinstance(right, str):
            return format_value(left) + format_value(right)
        return _num(left) + _num(right)
    if op in ("<", "<=", ">", ">="):
        if isinstance(left, str) and isinstance(right, str):
            a, b = left, right
        else:
            a, b = _num(left), _num(right)  # type: ignore[assignment]
        if op == "<":
            return a < b
        if op == "<=":
            return a <= b
        if op == ">":
            return a > b
        return a >= b
    a, b = _num(left), _num(right)
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if b == 0:
        raise FormulaError("division by zero")
    if op == "/":
        return a / b
    return math.fmod(a, b)


def _equal(left: Any, right: Any) -> bool:
    ln, rn = as_number(left), as_number(right)
    if ln is not None and rn is not None:
        return ln == rn
    return left == right


def evaluate(node: Any, lookup: Callable[[str], Any]) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Prop):
        return lookup(node.name)
    if isinstance(node, Unary):
        value = evaluate(node.operand, lookup)
        return None if value is None else -_num(value)
    if isinstance(node, Binary):
        return _binary(node.op, evaluate(node.left, lookup), evaluate(node.right, lookup))
    if isinstance(node, Call):
        if node.name == "if":
            if len(node.args) != 3:
                raise FormulaError("if() takes three arguments")
            cond = evaluate(node.args[0], lookup)
            return evaluate(node.args[1] if _truthy(cond) else node.args[2], lookup)
        args = [evaluate(a, lookup) for a in node.args]
        try:
            return FUNCTIONS[node.name](*args)
        except TypeError as exc:
            raise FormulaError(f"bad arguments to {node.name}(): {exc}")
    raise FormulaError(f"Unknown node {node!r}")


def coerce_result(value: Any, result_type: str) -> CellValue:
    if value is None:
        return None
    if result_type == "number":
        return as_number(value, parse_strings=True)
    if result_type == "boolean":
        return _truthy(value)
    if result_type == "date":
        if not isinstance(value, str):
            return None
        try:
            return date.fromisoformat(value.strip()[:10]).isoformat()
        except ValueError:
            return None
    return format_value(value)


def evaluate_formula(
    expression: str, lookup: Callable[[str], Any], result_type: str = "text"
) -> CellValue:
    try:
        node = compile_expression(expression)
        return coerce_result(evaluate(node, lookup), result_type)
    except (FormulaError, ArithmeticError, RecursionError):
        return None


def check_expression(expression: str, known_names: Set[str]) -> Optional[str]:
    """Return an error message, or None when the expression is valid for the schema."""
    try:
        node = parse(expression)
    except FormulaError as exc:
        return str(exc)
    folded = {n.casefold() for n in known_names}
    missing = sorted(n for n in referenced_columns(node) if n.casefold() not in folded)
    if missing:
        return f"Unknown column(s): {', '.join(missing)}"
    return None


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def rename_column_reference(expression: str, old_name: str, new_name: str) -> str:
    """Rewrite ``prop("old_name")`` to ``prop("new_name")``; all other text is kept as written."""
    tokens = []
    pos = 0
    while pos < len(expression):
        m = _TOKEN_RE.match(expression, pos)
        if not m:
            return expression
        pos = m.end()
        if m.lastgroup != "ws":
            tokens.append(m)

    folded = old_name.casefold()
    out: List[str] = []
    last = 0
    for i in range(len(tokens) - 3):
        ident, lparen, name, rparen = tokens[i:i + 4]
        if (
            ident.lastgroup == "ident"
            and ident.group().lower() == "prop"
            and lparen.group() == "("
            and name.lastgroup == "string"
            and rparen.group() == ")"
            and _ESCAPE_RE.sub(r"\1", name.group()[1:-1]).casefold() == folded
        ):
            out.append(expression[last:name.start()])
            out.append(_quote(new_name))
            last = name.end()
    out.append(expression[last:])
    return "".join(out)
