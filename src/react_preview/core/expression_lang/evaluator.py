"""
Evaluator for the prop function expression language.

Evaluates expression and statement AST nodes against a scope (dict of
bindings). Does NOT use Python's eval()/exec(): this is a tree-walking
interpreter over the closed AST in ``react_preview.core.ir.expressions``.

Values follow JavaScript conventions where they differ from Python:
truthiness, ``==`` vs ``===``, string concatenation with ``+``,
``null`` (None) vs ``undefined`` (:data:`UNDEFINED`).
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable
from typing import Any

from react_preview.core.ir.expressions import (
    ArrayExpr,
    AssignStmt,
    BinaryExpr,
    BinaryOp,
    CallExpr,
    ConditionalExpr,
    DeclareStmt,
    Expr,
    ExprStmt,
    Identifier,
    IndexExpr,
    Literal,
    MemberExpr,
    ObjectExpr,
    ReturnStmt,
    SequenceExpr,
    Stmt,
    ThrowStmt,
    UnaryExpr,
    UnaryOp,
    UndefinedLiteral,
)

logger = logging.getLogger(__name__)


class _Undefined:
    """JavaScript ``undefined``. Falsy, distinct from None (``null``)."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


class ExpressionEvalError(Exception):
    """Error during expression evaluation."""


class ThrownValue(ExpressionEvalError):
    """A value raised by a ``throw`` statement."""

    def __init__(self, value: Any) -> None:
        self.value = value
        if isinstance(value, dict) and "message" in value:
            message = js_string(value["message"])
        else:
            message = js_string(value)
        super().__init__(message)


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def js_string(value: Any) -> str:
    """String conversion as performed by ``String(value)``."""
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, list):
        return ",".join("" if v is None or v is UNDEFINED else js_string(v) for v in value)
    if isinstance(value, dict):
        return "[object Object]"
    source = getattr(value, "source", None)
    if isinstance(source, str):
        return source
    return str(value)


def to_number(value: Any) -> int | float:
    """Numeric conversion as performed by ``Number(value)``."""
    if isinstance(value, bool):
        return int(value)
    if _is_number(value):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def truthy(value: Any) -> bool:
    """JavaScript truthiness: empty arrays and objects are truthy."""
    if value is None or value is UNDEFINED:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def type_of(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if callable(value):
        return "function"
    return "object"


def _normalize_number(value: float) -> int | float:
    if isinstance(value, float) and value.is_integer() and abs(value) < 2**53:
        return int(value)
    return value


# ---------------------------------------------------------------------------
# Built-ins (the only globals visible to prop functions)
# ---------------------------------------------------------------------------


def _is_finite(number: int | float) -> bool:
    return not isinstance(number, float) or math.isfinite(number)


def _js_round(value: Any) -> int | float:
    number = to_number(value)
    if not _is_finite(number):
        return number
    return math.floor(number + 0.5)


def _js_floor(value: Any) -> int | float:
    number = to_number(value)
    return math.floor(number) if _is_finite(number) else number


def _js_ceil(value: Any) -> int | float:
    number = to_number(value)
    return math.ceil(number) if _is_finite(number) else number


def _js_abs(value: Any) -> int | float:
    return abs(to_number(value))


def _js_sqrt(value: Any) -> int | float:
    number = to_number(value)
    if number < 0:
        return math.nan
    if not _is_finite(number):
        return number
    return _normalize_number(math.sqrt(number))


def _js_pow(base: Any, exponent: Any) -> int | float:
    """``Math.pow`` with IEEE results where Python would raise or go complex."""
    x, y = float(to_number(base)), float(to_number(exponent))
    if math.isnan(y):
        return math.nan
    if y == 0:
        return 1
    if math.isnan(x) or (abs(x) == 1 and math.isinf(y)):
        return math.nan
    odd = y.is_integer() and abs(y) < 2**53 and int(y) % 2 == 1
    if x == 0 and y < 0:
        return -math.inf if odd and math.copysign(1, x) < 0 else math.inf
    if x < 0 and math.isfinite(x) and math.isfinite(y) and not y.is_integer():
        return math.nan
    try:
        return _normalize_number(math.pow(x, y))
    except OverflowError:
        return -math.inf if x < 0 and odd else math.inf


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unexpected token {name}")


def _json_parse(text: Any) -> Any:
    try:
        return json.loads(js_string(text), parse_constant=_reject_constant)
    except ValueError as e:
        raise ThrownValue({"name": "SyntaxError", "message": str(e)}) from e


def _js_max(*args: Any) -> int | float:
    if not args:
        return -math.inf
    numbers = [to_number(a) for a in args]
    if any(isinstance(n, float) and math.isnan(n) for n in numbers):
        return math.nan
    return max(numbers)


def _js_min(*args: Any) -> int | float:
    if not args:
        return math.inf
    numbers = [to_number(a) for a in args]
    if any(isinstance(n, float) and math.isnan(n) for n in numbers):
        return math.nan
    return min(numbers)


def _parse_int(value: Any, radix: Any = 10) -> int | float:
    text = js_string(value).strip()
    try:
        return int(text, int(to_number(radix)))
    except ValueError:
        digits = ""
        for c in text:
            if c.isdigit() or (not digits and c in "+-"):
                digits += c
            else:
                break
        try:
            return int(digits)
        except ValueError:
            return math.nan


def _parse_float(value: Any) -> float:
    number = to_number(js_string(value).strip())
    return float(number)


def _json_stringify(value: Any, *_args: Any) -> str | _Undefined:
    if value is UNDEFINED or callable(value):
        return UNDEFINED
    return json.dumps(_to_json(value), separators=(",", ":"), ensure_ascii=False)


def _to_json(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: _to_json(v) for k, v in value.items() if v is not UNDEFINED and not callable(v)
        }
    if isinstance(value, list):
        return [None if v is UNDEFINED or callable(v) else _to_json(v) for v in value]
    return value


def _console(level: int) -> Callable[..., _Undefined]:
    def log(*args: Any) -> _Undefined:
        logger.log(level, " ".join(js_string(a) for a in args))
        return UNDEFINED

    return log


def _make_error(message: Any = "") -> dict[str, Any]:
    return {"name": "Error", "message": js_string(message)}


BUILTINS: dict[str, Any] = {
    "Math": {
        "PI": math.pi,
        "E": math.e,
        "abs": _js_abs,
        "floor": _js_floor,
        "ceil": _js_ceil,
        "round": _js_round,
        "sqrt": _js_sqrt,
        "pow": _js_pow,
        "max": _js_max,
        "min": _js_min,
    },
    "JSON": {
        "stringify": _json_stringify,
        "parse": _json_parse,
    },
    "console": {
        "log": _console(logging.INFO),
        "info": _console(logging.INFO),
        "warn": _console(logging.WARNING),
        "error": _console(logging.ERROR),
    },
    "Object": {
        "keys": lambda obj: list(obj.keys()) if isinstance(obj, dict) else [],
        "values": lambda obj: list(obj.values()) if isinstance(obj, dict) else [],
    },
    "Array": {"isArray": lambda value: isinstance(value, list)},
    "String": lambda value="": js_string(value),
    "Number": lambda value=0: to_number(value),
    "Boolean": lambda value=False: truthy(value),
    "Error": _make_error,
    "parseInt": _parse_int,
    "parseFloat": _parse_float,
    "isNaN": lambda value: math.isnan(float(to_number(value))),
    "NaN": math.nan,
    "Infinity": math.inf,
}

_STRING_METHODS: dict[str, Callable[..., Any]] = {
    "toUpperCase": lambda s: s.upper(),
    "toLowerCase": lambda s: s.lower(),
    "trim": lambda s: s.strip(),
    "includes": lambda s, sub: js_string(sub) in s,
    "startsWith": lambda s, sub: s.startswith(js_string(sub)),
    "endsWith": lambda s, sub: s.endswith(js_string(sub)),
    "indexOf": lambda s, sub: s.find(js_string(sub)),
    "slice": lambda s, start=0, end=None: s[int(to_number(start)) : None if end is None else int(to_number(end))],
    "concat": lambda s, *parts: s + "".join(js_string(p) for p in parts),
    "toString": lambda s: s,
}

_ARRAY_METHODS: dict[str, Callable[..., Any]] = {
    "join": lambda a, sep=",": js_string(sep).join("" if v is None or v is UNDEFINED else js_string(v) for v in a),
    "includes": lambda a, value: any(strict_equals(v, value) for v in a),
    "indexOf": lambda a, value: next((i for i, v in enumerate(a) if strict_equals(v, value)), -1),
    "slice": lambda a, start=0, end=None: a[int(to_number(start)) : None if end is None else int(to_number(end))],
    "concat": lambda a, *parts: a + [x for p in parts for x in (p if isinstance(p, list) else [p])],
    "map": lambda a, fn: [fn(v, i) for i, v in enumerate(a)],
    "filter": lambda a, fn: [v for i, v in enumerate(a) if truthy(fn(v, i))],
}


# ---------------------------------------------------------------------------
# Equality
# ---------------------------------------------------------------------------


def strict_equals(left: Any, right: Any) -> bool:
    """``===``"""
    if _is_number(left) and _is_number(right):
        return left == right
    if type_of(left) != type_of(right):
        return False
    if left is None or right is None:
        return left is right
    if isinstance(left, (str, bool)):
        return left == right
    return left is right


def loose_equals(left: Any, right: Any) -> bool:
    """``==``"""
    nullish = (None, UNDEFINED)
    if left in nullish or right in nullish:
        return left in nullish and right in nullish
    if type_of(left) == type_of(right):
        return strict_equals(left, right)
    primitives = ("number", "string", "boolean")
    if type_of(left) in primitives and type_of(right) in primitives:
        return to_number(left) == to_number(right)
    return False


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate(expr: Expr, scope: dict[str, Any]) -> Any:
    """Evaluate an expression against a scope dict.

    Identifiers resolve against *scope* first, then :data:`BUILTINS`.
    Nothing else is reachable: no Python attributes, no modules.

    Raises:
        ExpressionEvalError: If evaluation fails.
    """
    return _interpret(expr, scope)


def execute(statements: list[Stmt], scope: dict[str, Any]) -> Any:
    """Run function body statements; returns the ``return`` value or UNDEFINED.

    *scope* is mutated by declarations and assignments.

    Raises:
        ThrownValue: On a ``throw`` statement.
        ExpressionEvalError: If evaluation fails.
    """
    for stmt in statements:
        if isinstance(stmt, ReturnStmt):
            return UNDEFINED if stmt.value is None else _interpret(stmt.value, scope)
        if isinstance(stmt, ThrowStmt):
            raise ThrownValue(_interpret(stmt.value, scope))
        if isinstance(stmt, DeclareStmt):
            scope[stmt.name] = UNDEFINED if stmt.value is None else _interpret(stmt.value, scope)
        elif isinstance(stmt, AssignStmt):
            if stmt.name not in scope:
                raise ExpressionEvalError(f"{stmt.name} is not defined")
            scope[stmt.name] = _interpret(stmt.value, scope)
        elif isinstance(stmt, ExprStmt):
            _interpret(stmt.expr, scope)
        else:
            raise ExpressionEvalError(f"Unknown statement type: {type(stmt).__name__}")
    return UNDEFINED


def _interpret(expr: Expr, ctx: dict[str, Any]) -> Any:
    """Dispatch evaluation to the appropriate handler."""
    if isinstance(expr, Literal):
        return expr.value

    if isinstance(expr, UndefinedLiteral):
        return UNDEFINED

    if isinstance(expr, Identifier):
        if expr.name in ctx:
            return ctx[expr.name]
        if expr.name in BUILTINS:
            return BUILTINS[expr.name]
        raise ExpressionEvalError(f"{expr.name} is not defined")

    if isinstance(expr, MemberExpr):
        return _get_property(_interpret(expr.target, ctx), expr.name)

    if isinstance(expr, IndexExpr):
        target = _interpret(expr.target, ctx)
        return _get_property(target, _interpret(expr.index, ctx))

    if isinstance(expr, CallExpr):
        return _interpret_call(expr, ctx)

    if isinstance(expr, BinaryExpr):
        return _interpret_binary(expr, ctx)

    if isinstance(expr, UnaryExpr):
        return _interpret_unary(expr, ctx)

    if isinstance(expr, ConditionalExpr):
        if truthy(_interpret(expr.condition, ctx)):
            return _interpret(expr.then_expr, ctx)
        return _interpret(expr.else_expr, ctx)

    if isinstance(expr, ArrayExpr):
        return [_interpret(item, ctx) for item in expr.items]

    if isinstance(expr, ObjectExpr):
        return {key: _interpret(value, ctx) for key, value in expr.entries}

    if isinstance(expr, SequenceExpr):
        result: Any = UNDEFINED
        for item in expr.items:
            result = _interpret(item, ctx)
        return result

    raise ExpressionEvalError(f"Unknown expression type: {type(expr).__name__}")


def _get_property(target: Any, key: Any) -> Any:
    """Property lookup restricted to dicts, lists, and strings."""
    if target is None or target is UNDEFINED:
        raise ExpressionEvalError(f"Cannot read properties of {js_string(target)} (reading {key!r})")

    if isinstance(target, dict):
        return target.get(js_string(key) if not isinstance(key, str) else key, UNDEFINED)

    if isinstance(target, (list, str)):
        if key == "length":
            return len(target)
        if _is_number(key):
            index = int(key)
            if 0 <= index < len(target):
                return target[index]
            return UNDEFINED
        methods = _STRING_METHODS if isinstance(target, str) else _ARRAY_METHODS
        method = methods.get(key) if isinstance(key, str) else None
        if method is not None:
            return lambda *args: method(target, *args)

    return UNDEFINED


def _interpret_call(expr: CallExpr, ctx: dict[str, Any]) -> Any:
    func = _interpret(expr.callee, ctx)
    if not callable(func):
        raise ExpressionEvalError(f"{expr.callee} is not a function")
    args = [_interpret(a, ctx) for a in expr.args]
    try:
        return func(*args)
    except ExpressionEvalError:
        raise
    except (ValueError, ArithmeticError, TypeError) as e:
        raise ExpressionEvalError(f"{expr.callee}: {e}") from e


def _interpret_binary(expr: BinaryExpr, ctx: dict[str, Any]) -> Any:
    """Evaluate a binary expression."""
    # Short-circuit for logical operators
    if expr.op == BinaryOp.AND:
        left = _interpret(expr.left, ctx)
        if not truthy(left):
            return left
        return _interpret(expr.right, ctx)

    if expr.op == BinaryOp.OR:
        left = _interpret(expr.left, ctx)
        if truthy(left):
            return left
        return _interpret(expr.right, ctx)

    if expr.op == BinaryOp.NULLISH:
        left = _interpret(expr.left, ctx)
        if left is not None and left is not UNDEFINED:
            return left
        return _interpret(expr.right, ctx)

    left = _interpret(expr.left, ctx)
    right = _interpret(expr.right, ctx)

    if expr.op == BinaryOp.EQ:
        return loose_equals(left, right)
    if expr.op == BinaryOp.NE:
        return not loose_equals(left, right)
    if expr.op == BinaryOp.STRICT_EQ:
        return strict_equals(left, right)
    if expr.op == BinaryOp.STRICT_NE:
        return not strict_equals(left, right)

    if expr.op == BinaryOp.ADD:
        if isinstance(left, str) or isinstance(right, str):
            return js_string(left) + js_string(right)
        if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
            return js_string(left) + js_string(right)
        return to_number(left) + to_number(right)

    if expr.op in (BinaryOp.LT, BinaryOp.GT, BinaryOp.LE, BinaryOp.GE):
        return _compare(expr.op, left, right)

    a, b = to_number(left), to_number(right)
    if expr.op == BinaryOp.SUB:
        return a - b
    if expr.op == BinaryOp.MUL:
        return a * b
    if expr.op == BinaryOp.DIV:
        if b == 0:
            if a == 0 or math.isnan(a):
                return math.nan
            return math.inf if a > 0 else -math.inf
        return _normalize_number(a / b)
    if expr.op == BinaryOp.MOD:
        if b == 0:
            return math.nan
        return math.fmod(a, b) if isinstance(a, float) or isinstance(b, float) else int(math.fmod(a, b))

    raise ExpressionEvalError(f"Unknown binary op: {expr.op}")


def _compare(op: BinaryOp, left: Any, right: Any) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        a: Any = left
        b: Any = right
    else:
        a, b = to_number(left), to_number(right)
        if math.isnan(a) or math.isnan(b):
            return False
    if op == BinaryOp.LT:
        return a < b
    if op == BinaryOp.GT:
        return a > b
    if op == BinaryOp.LE:
        return a <= b
    return a >= b


def _interpret_unary(expr: UnaryExpr, ctx: dict[str, Any]) -> Any:
    """Evaluate a unary expression."""
    if expr.op == UnaryOp.TYPEOF:
        if isinstance(expr.operand, Identifier) and expr.operand.name not in ctx and expr.operand.name not in BUILTINS:
            return "undefined"
        return type_of(_interpret(expr.operand, ctx))

    val = _interpret(expr.operand, ctx)
    if expr.op == UnaryOp.NOT:
        return not truthy(val)
    if expr.op == UnaryOp.NEG:
        return -to_number(val)
    if expr.op == UnaryOp.POS:
        return to_number(val)
    raise ExpressionEvalError(f"Unknown unary op: {expr.op}")
