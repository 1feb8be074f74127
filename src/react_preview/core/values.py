"""
Value interpreter for preview file props.

Turns the YAML ``props`` tree into runtime values (:func:`interpret`) and
runtime values into JavaScript source text (:func:`to_code`).

A props value is one of:

- a plain scalar (``"Hi"``, ``3``, ``true``, ``null``), returned unchanged;
- a sequence, interpreted element by element;
- a tagged value ``{kind: <kind>, value: <payload>}`` where kind is one of
  ``object``, ``array``, ``string``, ``number``, ``boolean``, ``null``,
  ``undefined`` or ``function``;
- any other mapping, treated as an implicit object.

Functions are never compiled with eval/exec. They are parsed into the
restricted grammar of :mod:`react_preview.core.expression_lang` and run by its
tree-walking evaluator, with only their parameters and a closed set of
built-ins in scope.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from react_preview.core.config import FunctionSpec
from react_preview.core.errors import PreviewFunctionError, make_config_error
from react_preview.core.expression_lang import (
    UNDEFINED,
    ExpressionEvalError,
    ExpressionParseError,
    ThrownValue,
    execute,
    function_params,
    is_function_source,
    js_string,
    parse_expr,
    parse_function,
    parse_statements,
)
from react_preview.core.ir.expressions import (
    Literal,
    ReturnStmt,
    SequenceExpr,
    Stmt,
    ThrowStmt,
    UndefinedLiteral,
)

logger = logging.getLogger(__name__)

KIND_KEY = "kind"
VALUE_KEY = "value"
SPEC_KEY = "spec"


class ValueKind(StrEnum):
    """Discriminators accepted in tagged props values."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    UNDEFINED = "undefined"
    FUNCTION = "function"


class PreviewFunction:
    """
    A callable prop value that also knows its own JavaScript source.

    ``source`` is what the code generator writes into the entry file;
    calling the object runs ``body`` in the restricted evaluator. An
    *opaque* function (``body`` is None) was function-shaped but used syntax
    outside the restricted grammar: it still renders, but cannot be called
    from Python.
    """

    def __init__(self, params: list[str], source: str, body: list[Stmt] | None) -> None:
        self.params = list(params)
        self.source = source
        self.body = body

    @property
    def is_opaque(self) -> bool:
        return self.body is None

    def __call__(self, *args: Any) -> Any:
        if self.body is None:
            raise PreviewFunctionError(
                f"Function cannot be evaluated outside the browser: {self.source}"
            )
        scope: dict[str, Any] = {
            name: args[i] if i < len(args) else UNDEFINED for i, name in enumerate(self.params)
        }
        try:
            return execute(self.body, scope)
        except ThrownValue as e:
            raise PreviewFunctionError(str(e)) from e
        except ExpressionEvalError as e:
            raise PreviewFunctionError(f"{e} in {self.source}") from e

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PreviewFunction):
            return NotImplemented
        return self.source == other.source and self.params == other.params

    def __hash__(self) -> int:
        return hash(self.source)

    def __repr__(self) -> str:
        return f"PreviewFunction({self.source!r})"


NOOP_SOURCE = "() => {}"


def noop_function() -> PreviewFunction:
    """Callable used for a ``function`` value with neither spec nor source."""
    return PreviewFunction(params=[], source=NOOP_SOURCE, body=[])


# Scalars with a JavaScript literal form (bool is an int)
_PLAIN_SCALARS = (str, int, float, date, datetime)


class ValueInterpreter:
    """
    Interprets one props tree.

    Args:
        strict: When False, a bare ``null`` becomes ``{}`` (behaviour of
            early preview files). When True it stays ``None``.
        file: Preview file, used for error context only.
    """

    def __init__(self, strict: bool = True, file: Path | None = None) -> None:
        self.strict = strict
        self.file = file

    def interpret(self, value: Any, key_path: str = "props") -> Any:
        if isinstance(value, list):
            return [self.interpret(v, f"{key_path}[{i}]") for i, v in enumerate(value)]

        if value is None:
            return None if self.strict else {}

        if not isinstance(value, dict):
            return self._check_plain(value, key_path)

        if KIND_KEY in value:
            return self._interpret_tagged(value, key_path)

        return self._interpret_object(value, key_path)

    def _interpret_object(self, mapping: dict[Any, Any], key_path: str) -> dict[str, Any]:
        return {str(k): self.interpret(v, f"{key_path}.{k}") for k, v in mapping.items()}

    def _interpret_tagged(self, value: dict[str, Any], key_path: str) -> Any:
        raw_kind = value[KIND_KEY]
        try:
            kind = ValueKind(raw_kind)
        except ValueError:
            raise make_config_error(
                f"unrecognized value kind: {raw_kind!r}", self.file, key_path
            ) from None

        payload = value.get(VALUE_KEY)

        if kind == ValueKind.OBJECT:
            if payload is None:
                return {}
            if not isinstance(payload, dict):
                raise make_config_error(
                    "object value must be a mapping", self.file, f"{key_path}.value"
                )
            return self._interpret_object(payload, f"{key_path}.value")

        if kind == ValueKind.ARRAY:
            if payload is None:
                return []
            if not isinstance(payload, list):
                raise make_config_error(
                    "array value must be a sequence", self.file, f"{key_path}.value"
                )
            return [self.interpret(v, f"{key_path}.value[{i}]") for i, v in enumerate(payload)]

        if kind in (ValueKind.STRING, ValueKind.NUMBER, ValueKind.BOOLEAN):
            return self._check_plain(payload, f"{key_path}.value")

        if kind == ValueKind.NULL:
            return None

        if kind == ValueKind.UNDEFINED:
            return UNDEFINED

        return self._interpret_function(value, key_path)

    def _check_plain(self, value: Any, key_path: str) -> Any:
        """Reject YAML values (sets, binary) that have no JavaScript literal form."""
        if value is None or isinstance(value, _PLAIN_SCALARS):
            return value
        if isinstance(value, list):
            for i, item in enumerate(value):
                self._check_plain(item, f"{key_path}[{i}]")
        elif isinstance(value, dict):
            for k, item in value.items():
                self._check_plain(item, f"{key_path}.{k}")
        else:
            raise make_config_error(
                f"unsupported value of type {type(value).__name__}", self.file, key_path
            )
        return value

    def _interpret_function(self, value: dict[str, Any], key_path: str) -> PreviewFunction:
        spec_data = value.get(SPEC_KEY)
        if spec_data is not None:
            try:
                spec = FunctionSpec.model_validate(spec_data)
            except ValidationError as e:
                raise make_config_error(
                    f"invalid function spec: {e}", self.file, f"{key_path}.spec"
                ) from e
            return build_function(spec, file=self.file, key_path=f"{key_path}.spec")

        source = value.get(VALUE_KEY)
        if source is None:
            return noop_function()
        if not isinstance(source, str):
            raise make_config_error(
                "function value must be source text", self.file, f"{key_path}.value"
            )
        return compile_function_source(source, file=self.file, key_path=f"{key_path}.value")


def interpret(value: Any, *, strict: bool = True, file: Path | None = None) -> Any:
    """Interpret a props tree into runtime values.

    Args:
        value: Parsed YAML value.
        strict: Keep bare nulls as ``None`` (True) or map them to ``{}``.
        file: Preview file for error messages.

    Raises:
        ConfigError: On an unrecognized kind or an invalid function.
    """
    return ValueInterpreter(strict=strict, file=file).interpret(value)


# ---------------------------------------------------------------------------
# Function synthesis
# ---------------------------------------------------------------------------


def build_function(
    spec: FunctionSpec, *, file: Path | None = None, key_path: str = "spec"
) -> PreviewFunction:
    """Synthesize a callable from a structured function spec.

    The body statements run first, then either ``throw`` (when
    ``throws_message`` is set) or the return expressions, joined with the
    comma operator.
    """
    body_text = (spec.body_statements or "").strip()
    try:
        body = parse_statements(body_text) if body_text else []
    except ExpressionParseError as e:
        raise make_config_error(
            f"invalid body statements: {e}", file, f"{key_path}.bodyStatements"
        ) from e

    lines = [body_text] if body_text else []
    terminal: Stmt
    if spec.throws_message is not None:
        terminal = ThrowStmt(value=Literal(value=spec.throws_message))
        lines.append(f"throw new Error({json.dumps(spec.throws_message, ensure_ascii=False)});")
    else:
        returns = []
        for i, text in enumerate(spec.return_expressions):
            try:
                returns.append(parse_expr(text))
            except ExpressionParseError as e:
                raise make_config_error(
                    f"invalid return expression {text!r}: {e}",
                    file,
                    f"{key_path}.returnExpressions[{i}]",
                ) from e
        if not returns:
            terminal = ReturnStmt(value=UndefinedLiteral())
            lines.append("return;")
        else:
            joined = returns[0] if len(returns) == 1 else SequenceExpr(items=returns)
            terminal = ReturnStmt(value=joined)
            lines.append(f"return {', '.join(spec.return_expressions)};")

    source = "(" + ", ".join(spec.parameters) + ") => {\n" + "\n".join(lines) + "\n}"
    return PreviewFunction(params=spec.parameters, source=source, body=[*body, terminal])


def compile_function_source(
    source: str, *, file: Path | None = None, key_path: str = "value"
) -> PreviewFunction:
    """Compile raw function source text.

    Raises:
        ConfigError: If the text is not a function expression at all.
    """
    text = source.strip()
    if not is_function_source(text):
        raise make_config_error(f"not a function expression: {text!r}", file, key_path)
    try:
        func = parse_function(text)
    except ExpressionParseError as e:
        logger.debug("Keeping %r as an opaque function: %s", text, e)
        return PreviewFunction(params=function_params(text), source=text, body=None)
    return PreviewFunction(params=func.params, source=text, body=func.body)


# ---------------------------------------------------------------------------
# Code rendering
# ---------------------------------------------------------------------------


def to_code(value: Any) -> str:
    """Render a runtime value as a JavaScript literal.

    Strings and keys are JSON-quoted, functions render as their own source,
    mappings keep insertion order. The result is deterministic.
    """
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return js_string(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, PreviewFunction):
        return value.source
    if isinstance(value, (date, datetime)):
        return json.dumps(value.isoformat())
    if isinstance(value, dict):
        entries = ",".join(f"{json.dumps(str(k), ensure_ascii=False)}:{to_code(v)}" for k, v in value.items())
        return "{" + entries + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(to_code(v) for v in value) + "]"
    raise TypeError(f"Cannot render value of type {type(value).__name__}")
