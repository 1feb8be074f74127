"""
Tokenizer for the prop function expression language.

Converts a JavaScript-flavoured source string into a sequence of typed tokens.
Only the subset needed by preview files is recognised: literals, identifiers,
operators, and the handful of keywords used by function bodies.
"""

from __future__ import annotations

import re
from enum import StrEnum, auto


class TokenKind(StrEnum):
    """Token types for the expression language."""

    # Literals
    INT = auto()
    FLOAT = auto()
    STRING = auto()

    # Identifiers and keywords
    IDENT = auto()
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    UNDEFINED = auto()
    LET = auto()
    CONST = auto()
    VAR = auto()
    RETURN = auto()
    THROW = auto()
    FUNCTION = auto()
    NEW = auto()
    TYPEOF = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    EQ = auto()  # ==
    NE = auto()  # !=
    STRICT_EQ = auto()  # ===
    STRICT_NE = auto()  # !==
    LT = auto()
    GT = auto()
    LE = auto()
    GE = auto()
    AND = auto()  # &&
    OR = auto()  # ||
    NULLISH = auto()  # ??
    NOT = auto()  # !
    ASSIGN = auto()  # =
    ARROW = auto()  # =>
    QUESTION = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    DOT = auto()
    COLON = auto()
    SEMICOLON = auto()

    # End of input
    EOF = auto()


class Token:
    """A single token from the expression tokenizer."""

    __slots__ = ("kind", "value", "pos")

    def __init__(self, kind: TokenKind, value: str, pos: int) -> None:
        self.kind = kind
        self.value = value
        self.pos = pos

    def __repr__(self) -> str:
        return f"Token({self.kind}, {self.value!r}, pos={self.pos})"


_KEYWORDS: dict[str, TokenKind] = {
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "null": TokenKind.NULL,
    "undefined": TokenKind.UNDEFINED,
    "let": TokenKind.LET,
    "const": TokenKind.CONST,
    "var": TokenKind.VAR,
    "return": TokenKind.RETURN,
    "throw": TokenKind.THROW,
    "function": TokenKind.FUNCTION,
    "new": TokenKind.NEW,
    "typeof": TokenKind.TYPEOF,
}

# Longest operators first
_OPERATORS: list[tuple[str, TokenKind]] = [
    ("===", TokenKind.STRICT_EQ),
    ("!==", TokenKind.STRICT_NE),
    ("==", TokenKind.EQ),
    ("!=", TokenKind.NE),
    ("<=", TokenKind.LE),
    (">=", TokenKind.GE),
    ("&&", TokenKind.AND),
    ("||", TokenKind.OR),
    ("??", TokenKind.NULLISH),
    ("=>", TokenKind.ARROW),
    ("+", TokenKind.PLUS),
    ("-", TokenKind.MINUS),
    ("*", TokenKind.STAR),
    ("/", TokenKind.SLASH),
    ("%", TokenKind.PERCENT),
    ("<", TokenKind.LT),
    (">", TokenKind.GT),
    ("!", TokenKind.NOT),
    ("=", TokenKind.ASSIGN),
    ("?", TokenKind.QUESTION),
    ("(", TokenKind.LPAREN),
    (")", TokenKind.RPAREN),
    ("[", TokenKind.LBRACKET),
    ("]", TokenKind.RBRACKET),
    ("{", TokenKind.LBRACE),
    ("}", TokenKind.RBRACE),
    (",", TokenKind.COMMA),
    (".", TokenKind.DOT),
    (":", TokenKind.COLON),
    (";", TokenKind.SEMICOLON),
]

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "b": "\b", "f": "\f", "v": "\v"}

# Number pattern: int or float
_NUMBER_RE = re.compile(r"\d+(\.\d+)?([eE][+-]?\d+)?")
# Identifier: letter, underscore or dollar followed by alphanumerics/underscores/dollars
_IDENT_RE = re.compile(r"[a-zA-Z_$][a-zA-Z0-9_$]*")


class ExpressionTokenError(Exception):
    """Error during expression tokenization."""

    def __init__(self, message: str, pos: int) -> None:
        super().__init__(message)
        self.pos = pos


def tokenize(source: str) -> list[Token]:
    """Tokenize an expression string into a list of tokens."""
    tokens: list[Token] = []
    i = 0
    n = len(source)

    while i < n:
        c = source[i]

        # Skip whitespace
        if c in " \t\n\r":
            i += 1
            continue

        # Line comments
        if source.startswith("//", i):
            newline = source.find("\n", i)
            i = n if newline == -1 else newline + 1
            continue

        # String literals
        if c in ('"', "'"):
            i, tok = _read_string(source, i)
            tokens.append(tok)
            continue

        # Numbers
        if c.isdigit():
            m = _NUMBER_RE.match(source, i)
            assert m is not None
            num_str = m.group(0)
            if m.group(1) or m.group(2):
                tokens.append(Token(TokenKind.FLOAT, num_str, i))
            else:
                tokens.append(Token(TokenKind.INT, num_str, i))
            i = m.end()
            continue

        # Identifiers and keywords
        if c.isalpha() or c in "_$":
            m = _IDENT_RE.match(source, i)
            assert m is not None
            word = m.group(0)
            kind = _KEYWORDS.get(word, TokenKind.IDENT)
            tokens.append(Token(kind, word, i))
            i = m.end()
            continue

        for text, kind in _OPERATORS:
            if source.startswith(text, i):
                tokens.append(Token(kind, text, i))
                i += len(text)
                break
        else:
            raise ExpressionTokenError(f"Unexpected character: {c!r}", i)

    tokens.append(Token(TokenKind.EOF, "", n))
    return tokens


def _read_string(source: str, start: int) -> tuple[int, Token]:
    """Read a quoted string literal."""
    quote = source[start]
    i = start + 1
    n = len(source)
    chars: list[str] = []

    while i < n:
        c = source[i]
        if c == "\\":
            if i + 1 < n:
                escaped = source[i + 1]
                chars.append(_ESCAPES.get(escaped, escaped))
                i += 2
                continue
            raise ExpressionTokenError("Unterminated escape sequence", i)
        if c == "\n":
            raise ExpressionTokenError("Unterminated string literal", start)
        if c == quote:
            return i + 1, Token(TokenKind.STRING, "".join(chars), start)
        chars.append(c)
        i += 1

    raise ExpressionTokenError("Unterminated string literal", start)
