"""
Restricted expression language for prop functions.

Tokenizer, parser, and evaluator for the small JavaScript-flavoured
grammar that preview files use to describe callable props.

Usage:
    from react_preview.core.expression_lang import parse_function, execute

    func = parse_function("(a, b) => a + b")
    result = execute(func.body, {"a": 1, "b": 2})
    # result == 3
"""

from react_preview.core.expression_lang.evaluator import (
    UNDEFINED,
    ExpressionEvalError,
    ThrownValue,
    evaluate,
    execute,
    js_string,
)
from react_preview.core.expression_lang.parser import (
    ExpressionParseError,
    function_params,
    is_function_source,
    parse_expr,
    parse_function,
    parse_statements,
)

__all__ = [
    "UNDEFINED",
    "ExpressionEvalError",
    "ExpressionParseError",
    "ThrownValue",
    "evaluate",
    "execute",
    "function_params",
    "is_function_source",
    "js_string",
    "parse_expr",
    "parse_function",
    "parse_statements",
]
