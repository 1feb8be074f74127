"""Tests for the restricted expression language used by prop functions.

Covers:
- Tokenizer: operators, keywords, strings, comments
- Parser: precedence, statements, function forms, error handling
- Evaluator: JS-flavoured arithmetic, equality, built-ins, throw/return
"""

from __future__ import annotations

import math

import pytest

from react_preview.core.expression_lang import (
    UNDEFINED,
    ExpressionEvalError,
    ExpressionParseError,
    ThrownValue,
    evaluate,
    execute,
    function_params,
    is_function_source,
    js_string,
    parse_expr,
    parse_function,
    parse_statements,
)
from react_preview.core.expression_lang.tokenizer import ExpressionTokenError, TokenKind, tokenize
from react_preview.core.ir.expressions import (
    BinaryExpr,
    BinaryOp,
    CallExpr,
    ConditionalExpr,
    DeclareStmt,
    Identifier,
    Literal,
    MemberExpr,
    ReturnStmt,
    SequenceExpr,
    ThrowStmt,
)


def run(source: str, **scope):
    return evaluate(parse_expr(source), dict(scope))


# ============================================================================
# Tokenizer tests
# ============================================================================


class TestTokenizer:
    """Tokenizer produces correct token sequences."""

    def test_arrow_and_strict_equality(self) -> None:
        kinds = [t.kind for t in tokenize("a => a === 1")]
        assert kinds == [
            TokenKind.IDENT,
            TokenKind.ARROW,
            TokenKind.IDENT,
            TokenKind.STRICT_EQ,
            TokenKind.INT,
            TokenKind.EOF,
        ]

    def test_longest_operator_wins(self) -> None:
        kinds = [t.kind for t in tokenize("!== != ! ?? ? && ||")][:-1]
        assert kinds == [
            TokenKind.STRICT_NE,
            TokenKind.NE,
            TokenKind.NOT,
            TokenKind.NULLISH,
            TokenKind.QUESTION,
            TokenKind.AND,
            TokenKind.OR,
        ]

    def test_keywords(self) -> None:
        tokens = tokenize("let const var return throw function new typeof undefined")
        assert [t.kind for t in tokens][:-1] == [
            TokenKind.LET,
            TokenKind.CONST,
            TokenKind.VAR,
            TokenKind.RETURN,
            TokenKind.THROW,
            TokenKind.FUNCTION,
            TokenKind.NEW,
            TokenKind.TYPEOF,
            TokenKind.UNDEFINED,
        ]

    def test_identifier_with_dollar(self) -> None:
        token = tokenize("$event_1")[0]
        assert token.kind == TokenKind.IDENT
        assert token.value == "$event_1"

    def test_string_escapes(self) -> None:
        assert tokenize(r"'it\'s'")[0].value == "it's"
        assert tokenize(r'"a\nb"')[0].value == "a\nb"

    def test_float(self) -> None:
        token = tokenize("2.5e3")[0]
        assert token.kind == TokenKind.FLOAT

    def test_line_comment_skipped(self) -> None:
        tokens = tokenize("1 // trailing note\n+ 2")
        assert [t.kind for t in tokens] == [
            TokenKind.INT,
            TokenKind.PLUS,
            TokenKind.INT,
            TokenKind.EOF,
        ]

    def test_unterminated_string(self) -> None:
        with pytest.raises(ExpressionTokenError):
            tokenize("'oops")

    def test_unexpected_character(self) -> None:
        with pytest.raises(ExpressionTokenError) as exc:
            tokenize("a # b")
        assert exc.value.pos == 2


# ============================================================================
# Parser tests
# ============================================================================


class TestParser:
    def test_multiplication_binds_tighter(self) -> None:
        expr = parse_expr("1 + 2 * 3")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == BinaryOp.ADD
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.op == BinaryOp.MUL

    def test_ternary(self) -> None:
        expr = parse_expr("x ? 'a' : 'b'")
        assert isinstance(expr, ConditionalExpr)
        assert expr.then_expr == Literal(value="a")

    def test_member_call(self) -> None:
        expr = parse_expr("console.log(1)")
        assert isinstance(expr, CallExpr)
        assert isinstance(expr.callee, MemberExpr)
        assert expr.callee.name == "log"
        assert expr.callee.target == Identifier(name="console")

    def test_sequence(self) -> None:
        expr = parse_expr("1, 2")
        assert isinstance(expr, SequenceExpr)
        assert len(expr.items) == 2

    def test_statements(self) -> None:
        stmts = parse_statements("let total = a + b; total = total * 2\nreturn total")
        assert isinstance(stmts[0], DeclareStmt)
        assert stmts[0].keyword == "let"
        assert isinstance(stmts[-1], ReturnStmt)
        assert len(stmts) == 3

    def test_throw_statement(self) -> None:
        stmts = parse_statements("throw new Error('bad')")
        assert isinstance(stmts[0], ThrowStmt)

    def test_arrow_expression_body(self) -> None:
        func = parse_function("(a, b) => a + b")
        assert func.params == ["a", "b"]
        assert isinstance(func.body[0], ReturnStmt)

    def test_arrow_single_param(self) -> None:
        assert parse_function("e => e").params == ["e"]

    def test_function_keyword(self) -> None:
        func = parse_function("function handle(e) { return 1; }")
        assert func.params == ["e"]

    def test_object_shorthand(self) -> None:
        value = run("({a, b: 2})", a=1)
        assert value == {"a": 1, "b": 2}

    def test_trailing_garbage(self) -> None:
        with pytest.raises(ExpressionParseError):
            parse_expr("1 2")

    def test_async_rejected(self) -> None:
        with pytest.raises(ExpressionParseError):
            parse_function("async () => 1")


class TestFunctionShape:
    @pytest.mark.parametrize(
        "source",
        ["() => 1", "(a, b) => a", "e => e", "function () {}", "function named(x) { }"],
    )
    def test_function_shaped(self, source: str) -> None:
        assert is_function_source(source)

    @pytest.mark.parametrize("source", ["1 + 1", "hello", "{a: 1}", ""])
    def test_not_function_shaped(self, source: str) -> None:
        assert not is_function_source(source)

    def test_params_best_effort(self) -> None:
        assert function_params("(x, y) => x") == ["x", "y"]
        assert function_params("v => v") == ["v"]


# ============================================================================
# Evaluator tests
# ============================================================================


class TestEvaluator:
    def test_arithmetic(self) -> None:
        assert run("1 + 2 * 3") == 7
        assert run("7 % 3") == 1
        assert run("6 / 3") == 2

    def test_division_by_zero(self) -> None:
        assert run("1 / 0") == math.inf
        assert math.isnan(run("0 / 0"))

    def test_string_concatenation(self) -> None:
        assert run("'n=' + 1") == "n=1"
        assert run("1 + '2'") == "12"

    def test_strict_vs_loose_equality(self) -> None:
        assert run("1 == '1'") is True
        assert run("1 === '1'") is False
        assert run("null == undefined") is True
        assert run("null === undefined") is False

    def test_logical_short_circuit(self) -> None:
        assert run("0 || 'fallback'") == "fallback"
        assert run("'' && missing") == ""
        assert run("null ?? 5") == 5
        assert run("0 ?? 5") == 0

    def test_typeof(self) -> None:
        assert run("typeof 1") == "number"
        assert run("typeof 'x'") == "string"
        assert run("typeof nothingHere") == "undefined"

    def test_builtins(self) -> None:
        assert run("Math.max(1, 5, 3)") == 5
        assert run("JSON.stringify({a: [1, 2]})") == '{"a":[1,2]}'
        assert run("parseInt('42px')") == 42
        assert run("String(true)") == "true"

    def test_string_and_array_methods(self) -> None:
        assert run("'abc'.toUpperCase()") == "ABC"
        assert run("name.length", name="four") == 4
        assert run("[1, 2, 3].includes(2)") is True
        assert run("items.join('-')", items=["a", "b"]) == "a-b"

    def test_member_on_missing_property(self) -> None:
        assert run("obj.missing", obj={}) is UNDEFINED

    def test_reading_from_undefined_fails(self) -> None:
        with pytest.raises(ExpressionEvalError):
            run("obj.a.b", obj={})

    def test_unknown_identifier(self) -> None:
        with pytest.raises(ExpressionEvalError):
            run("secret")

    def test_python_attributes_unreachable(self) -> None:
        assert run("s.__class__", s="x") is UNDEFINED
        assert run("f.__globals__", f=lambda: None) is UNDEFINED

    def test_calling_non_function(self) -> None:
        with pytest.raises(ExpressionEvalError):
            run("x()", x=1)

    @pytest.mark.parametrize(
        "source",
        ["Math.sqrt(-1)", "Math.floor(0 / 0)", "Math.ceil(0 / 0)", "Math.pow(-8, 0.5)"],
    )
    def test_math_domain_is_nan(self, source: str) -> None:
        result = run(source)
        assert isinstance(result, float)
        assert math.isnan(result)

    def test_math_infinities(self) -> None:
        assert run("Math.pow(0, -1)") == math.inf
        assert run("Math.pow(10, 400)") == math.inf
        assert run("Math.pow(-10, 401)") == -math.inf
        assert run("Math.floor(1 / 0)") == math.inf
        assert run("Math.abs(-1 / 0)") == math.inf
        assert run("Math.sqrt(1 / 0)") == math.inf

    def test_math_regular_values(self) -> None:
        assert run("Math.pow(2, 10)") == 1024
        assert run("Math.sqrt(16)") == 4
        assert run("Math.floor(-1.5)") == -2
        assert run("Math.ceil(1.2)") == 2

    def test_json_parse_error_is_thrown(self) -> None:
        with pytest.raises(ThrownValue) as exc:
            run("JSON.parse('x')")
        assert exc.value.value["name"] == "SyntaxError"

    def test_json_parse_rejects_nan(self) -> None:
        with pytest.raises(ThrownValue):
            run("JSON.parse('NaN')")

    def test_python_errors_in_calls_are_eval_errors(self) -> None:
        with pytest.raises(ExpressionEvalError):
            run("f(1)", f=lambda n: n / 0)
        with pytest.raises(ExpressionEvalError):
            run("f('x')", f=int)


class TestExecute:
    def test_body_then_return(self) -> None:
        stmts = parse_statements("let a = x + 1; a = a * 2; return a")
        assert execute(stmts, {"x": 1}) == 4

    def test_no_return_is_undefined(self) -> None:
        assert execute(parse_statements("let a = 1"), {}) is UNDEFINED

    def test_bare_return_is_undefined(self) -> None:
        assert execute(parse_statements("return;"), {}) is UNDEFINED

    def test_return_sequence_yields_last(self) -> None:
        assert execute(parse_statements("return 1, 2"), {}) == 2

    def test_throw_error_message(self) -> None:
        with pytest.raises(ThrownValue) as exc:
            execute(parse_statements("throw new Error('nope')"), {})
        assert str(exc.value) == "nope"

    def test_throw_plain_value(self) -> None:
        with pytest.raises(ThrownValue) as exc:
            execute(parse_statements("throw 'raw'"), {})
        assert str(exc.value) == "raw"
        assert exc.value.value == "raw"

    def test_assignment_to_undeclared(self) -> None:
        with pytest.raises(ExpressionEvalError):
            execute(parse_statements("ghost = 1"), {})


class TestJsString:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "null"),
            (UNDEFINED, "undefined"),
            (True, "true"),
            (2.0, "2"),
            (0.5, "0.5"),
            ([1, None, "a"], "1,,a"),
            ({"a": 1}, "[object Object]"),
        ],
    )
    def test_conversion(self, value, expected: str) -> None:
        assert js_string(value) == expected
