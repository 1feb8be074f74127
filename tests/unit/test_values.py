"""Tests for props interpretation, function synthesis and JS rendering."""

from __future__ import annotations

import math
from datetime import date
from pathlib import Path

import pytest

from react_preview.core.config import FunctionSpec
from react_preview.core.errors import ConfigError, PreviewFunctionError
from react_preview.core.expression_lang import UNDEFINED
from react_preview.core.values import (
    NOOP_SOURCE,
    PreviewFunction,
    build_function,
    compile_function_source,
    interpret,
    to_code,
)


class TestPassThrough:
    @pytest.mark.parametrize("value", ["Hi", 3, 2.5, True, False, ""])
    def test_scalars_unchanged(self, value) -> None:
        assert interpret(value) == value

    def test_sequence_interpreted_elementwise(self) -> None:
        assert interpret([1, {"kind": "string", "value": "a"}, {"x": 2}]) == [1, "a", {"x": 2}]

    def test_untagged_mapping_is_object(self) -> None:
        assert interpret({"a": {"b": 1}}) == {"a": {"b": 1}}

    def test_non_string_keys_become_strings(self) -> None:
        assert interpret({1: "one"}) == {"1": "one"}

    def test_interpret_is_idempotent_for_plain_data(self) -> None:
        data = {"a": [1, 2, {"b": "c"}], "d": True}
        assert interpret(interpret(data)) == data


class TestTaggedKinds:
    def test_string(self) -> None:
        assert interpret({"kind": "string", "value": "Hi"}) == "Hi"

    def test_number(self) -> None:
        assert interpret({"kind": "number", "value": 4}) == 4

    def test_boolean(self) -> None:
        assert interpret({"kind": "boolean", "value": False}) is False

    def test_null(self) -> None:
        assert interpret({"kind": "null"}) is None

    def test_undefined(self) -> None:
        assert interpret({"kind": "undefined"}) is UNDEFINED

    def test_object_recurses(self) -> None:
        value = {"kind": "object", "value": {"inner": {"kind": "number", "value": 1}}}
        assert interpret(value) == {"inner": 1}

    def test_empty_object_and_array(self) -> None:
        assert interpret({"kind": "object"}) == {}
        assert interpret({"kind": "array"}) == []

    def test_array_recurses(self) -> None:
        value = {"kind": "array", "value": [{"kind": "string", "value": "x"}, 2]}
        assert interpret(value) == ["x", 2]

    def test_unknown_kind(self) -> None:
        with pytest.raises(ConfigError) as exc:
            interpret({"label": {"kind": "date", "value": "2020-01-01"}})
        assert "date" in str(exc.value)
        assert "props.label" in str(exc.value)

    @pytest.mark.parametrize("value", [{"a", "b"}, b"\x00\x01", frozenset({1})])
    def test_values_without_js_form_rejected(self, value) -> None:
        with pytest.raises(ConfigError) as exc:
            interpret({"data": value})
        assert "props.data" in str(exc.value)
        assert type(value).__name__ in str(exc.value)

    def test_nested_tagged_payload_rejected(self) -> None:
        with pytest.raises(ConfigError) as exc:
            interpret({"kind": "string", "value": [b"raw"]})
        assert "props.value[0]" in str(exc.value)

    def test_dates_accepted(self) -> None:
        when = date(2020, 1, 1)
        assert interpret({"when": when}) == {"when": when}

    def test_object_payload_must_be_mapping(self) -> None:
        with pytest.raises(ConfigError):
            interpret({"kind": "object", "value": [1]})

    def test_array_payload_must_be_sequence(self) -> None:
        with pytest.raises(ConfigError):
            interpret({"kind": "array", "value": "abc"})

    def test_error_names_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "preview.yaml"
        with pytest.raises(ConfigError) as exc:
            interpret({"kind": "bogus"}, file=config_file)
        assert str(config_file) in str(exc.value)


class TestNulls:
    def test_strict_keeps_none(self) -> None:
        assert interpret({"a": None}) == {"a": None}

    def test_legacy_maps_none_to_object(self) -> None:
        assert interpret({"a": None}, strict=False) == {"a": {}}


class TestFunctionSpecs:
    def test_on_click_returns_one(self) -> None:
        on_click = interpret(
            {"kind": "function", "spec": {"parameters": ["event"], "returnExpressions": ["1"]}}
        )
        assert isinstance(on_click, PreviewFunction)
        assert on_click({"type": "click"}) == 1

    def test_throws_exact_message(self) -> None:
        func = interpret(
            {"kind": "function", "spec": {"throwsMessage": "Not allowed: \"quoted\""}}
        )
        for args in [(), (1,), ("a", "b")]:
            with pytest.raises(PreviewFunctionError) as exc:
                func(*args)
            assert exc.value.message == 'Not allowed: "quoted"'

    def test_body_runs_before_return(self) -> None:
        func = build_function(
            FunctionSpec(
                parameters=["a", "b"],
                body_statements="let total = a + b; total = total * 10",
                return_expressions=["total"],
            )
        )
        assert func(1, 2) == 30

    def test_multiple_return_expressions_yield_last(self) -> None:
        func = build_function(FunctionSpec(parameters=["x"], return_expressions=["x", "x + 1"]))
        assert func(1) == 2
        assert "return x, x + 1;" in func.source

    def test_no_return_is_undefined(self) -> None:
        func = build_function(FunctionSpec(parameters=["x"]))
        assert func(1) is UNDEFINED

    def test_missing_arguments_are_undefined(self) -> None:
        func = build_function(FunctionSpec(parameters=["x"], return_expressions=["typeof x"]))
        assert func() == "undefined"

    def test_throw_after_body(self) -> None:
        func = build_function(
            FunctionSpec(body_statements="let a = 1", throws_message="boom")
        )
        assert func.source == '() => {\nlet a = 1\nthrow new Error("boom");\n}'

    def test_source_is_renderable(self) -> None:
        func = build_function(FunctionSpec(parameters=["e"], return_expressions=["1"]))
        assert func.source == "(e) => {\nreturn 1;\n}"

    def test_invalid_parameter_name(self) -> None:
        with pytest.raises(ConfigError):
            interpret({"kind": "function", "spec": {"parameters": ["not valid"]}})

    def test_invalid_return_expression(self) -> None:
        with pytest.raises(ConfigError) as exc:
            interpret({"kind": "function", "spec": {"returnExpressions": ["1 +"]}})
        assert "returnExpressions[0]" in str(exc.value)

    def test_throw_and_return_together_rejected(self) -> None:
        with pytest.raises(ConfigError) as exc:
            interpret(
                {
                    "kind": "function",
                    "spec": {"returnExpressions": ["1"], "throwsMessage": "boom"},
                }
            )
        assert "mutually exclusive" in str(exc.value)

    @pytest.mark.parametrize(
        "expression", ["Math.sqrt(-1)", "Math.floor(0 / 0)", "Math.pow(-8, 0.5)"]
    )
    def test_math_domain_errors_return_nan(self, expression: str) -> None:
        func = interpret({"kind": "function", "spec": {"returnExpressions": [expression]}})
        assert math.isnan(func())

    def test_math_pow_zero_negative_is_infinity(self) -> None:
        func = interpret({"kind": "function", "spec": {"returnExpressions": ["Math.pow(0, -1)"]}})
        assert func() == math.inf

    def test_json_parse_failure_is_function_error(self) -> None:
        func = interpret({"kind": "function", "spec": {"returnExpressions": ["JSON.parse('x')"]}})
        with pytest.raises(PreviewFunctionError):
            func()

    def test_numeric_return_expression_coerced(self) -> None:
        func = interpret({"kind": "function", "spec": {"returnExpressions": 5}})
        assert func() == 5


class TestFunctionSource:
    def test_arrow_source(self) -> None:
        func = interpret({"kind": "function", "value": "(a) => a * 2"})
        assert func(4) == 8
        assert func.source == "(a) => a * 2"
        assert not func.is_opaque

    def test_function_keyword_source(self) -> None:
        func = compile_function_source("function (a, b) { const d = a - b; return d; }")
        assert not func.is_opaque
        assert func(5, 3) == 2

    def test_unsupported_syntax_is_opaque(self) -> None:
        func = compile_function_source("(items) => items.map(x => x * 2)")
        assert func.is_opaque
        assert func.params == ["items"]
        assert func.source == "(items) => items.map(x => x * 2)"
        with pytest.raises(PreviewFunctionError):
            func([1])

    def test_not_a_function(self) -> None:
        with pytest.raises(ConfigError):
            interpret({"kind": "function", "value": "42"})

    def test_non_string_source(self) -> None:
        with pytest.raises(ConfigError):
            interpret({"kind": "function", "value": 42})

    def test_no_spec_or_source_is_noop(self) -> None:
        func = interpret({"kind": "function"})
        assert func.source == NOOP_SOURCE
        assert func() is UNDEFINED

    def test_thrown_error_in_source(self) -> None:
        func = compile_function_source("() => { throw new Error('nope') }")
        with pytest.raises(PreviewFunctionError) as exc:
            func()
        assert exc.value.message == "nope"

    def test_evaluation_error_wrapped(self) -> None:
        func = compile_function_source("(o) => o.a.b")
        with pytest.raises(PreviewFunctionError):
            func({})

    def test_equality_by_source(self) -> None:
        assert compile_function_source("() => 1") == compile_function_source("() => 1")
        assert compile_function_source("() => 1") != compile_function_source("() => 2")


class TestToCode:
    def test_scalars(self) -> None:
        assert to_code(None) == "null"
        assert to_code(UNDEFINED) == "undefined"
        assert to_code(True) == "true"
        assert to_code(3) == "3"
        assert to_code(2.0) == "2"
        assert to_code('say "hi"') == '"say \\"hi\\""'

    def test_nested(self) -> None:
        value = {"a": [1, "x", None], "b": {"c": False}}
        assert to_code(value) == '{"a":[1,"x",null],"b":{"c":false}}'

    def test_function_renders_source(self) -> None:
        func = compile_function_source("(e) => e")
        assert to_code({"onClick": func}) == '{"onClick":(e) => e}'

    def test_key_order_preserved(self) -> None:
        assert to_code({"z": 1, "a": 2}) == '{"z":1,"a":2}'

    def test_unrenderable(self) -> None:
        with pytest.raises(TypeError):
            to_code(object())
