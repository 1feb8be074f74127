"""
Recursive descent parser for the prop function expression language.

Grammar (precedence low to high):
    function    → "function" IDENT? "(" params ")" block
                | "(" params ")" "=>" (block | expr)
                | IDENT "=>" (block | expr)
    block       → "{" statement* "}"
    statement   → ("let" | "const" | "var") IDENT ("=" expr)? ";"?
                | IDENT "=" expr ";"?
                | "return" sequence? ";"?
                | "throw" sequence ";"?
                | sequence ";"?
    sequence    → expr ("," expr)*
    expr        → or_expr ("?" expr ":" expr)?
    or_expr     → and_expr (("||" | "??") and_expr)*
    and_expr    → equality ("&&" equality)*
    equality    → relational (("==" | "!=" | "===" | "!==") relational)*
    relational  → addition (("<" | ">" | "<=" | ">=") addition)*
    addition    → multiply (("+" | "-") multiply)*
    multiply    → unary (("*" | "/" | "%") unary)*
    unary       → ("!" | "-" | "+" | "typeof") unary | postfix
    postfix     → primary ("." IDENT | "[" expr "]" | "(" args ")")*
    primary     → literal | IDENT | "new" postfix | "(" sequence ")" | array | object
"""

from __future__ import annotations

import re
from collections.abc import Callable

from react_preview.core.expression_lang.tokenizer import (
    ExpressionTokenError,
    Token,
    TokenKind,
    tokenize,
)
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
    FunctionDef,
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

# Leading shape of something that is meant to be a function
_FUNCTION_SHAPE_RE = re.compile(
    r"^\s*(async\s+)?("
    r"function\b"
    r"|\([^()]*\)\s*=>"
    r"|[A-Za-z_$][A-Za-z0-9_$]*\s*=>"
    r")"
)

_PARAMS_RE = re.compile(r"^\s*(?:async\s+)?(?:function\b[^(]*)?\(([^()]*)\)|^\s*([A-Za-z_$][\w$]*)\s*=>")


class ExpressionParseError(Exception):
    """Error during expression parsing."""

    def __init__(self, message: str, pos: int = 0) -> None:
        super().__init__(message)
        self.pos = pos


_EQUALITY_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.EQ: BinaryOp.EQ,
    TokenKind.NE: BinaryOp.NE,
    TokenKind.STRICT_EQ: BinaryOp.STRICT_EQ,
    TokenKind.STRICT_NE: BinaryOp.STRICT_NE,
}

_RELATIONAL_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.LT: BinaryOp.LT,
    TokenKind.GT: BinaryOp.GT,
    TokenKind.LE: BinaryOp.LE,
    TokenKind.GE: BinaryOp.GE,
}

_MULTIPLY_OPS: dict[TokenKind, BinaryOp] = {
    TokenKind.STAR: BinaryOp.MUL,
    TokenKind.SLASH: BinaryOp.DIV,
    TokenKind.PERCENT: BinaryOp.MOD,
}

_UNARY_OPS: dict[TokenKind, UnaryOp] = {
    TokenKind.NOT: UnaryOp.NOT,
    TokenKind.MINUS: UnaryOp.NEG,
    TokenKind.PLUS: UnaryOp.POS,
    TokenKind.TYPEOF: UnaryOp.TYPEOF,
}

_DECLARATION_KINDS = (TokenKind.LET, TokenKind.CONST, TokenKind.VAR)


class _Parser:
    """Recursive descent parser for expressions and statements."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]  # EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def expect(self, kind: TokenKind) -> Token:
        tok = self.current
        if tok.kind != kind:
            raise ExpressionParseError(
                f"Expected {kind}, got {tok.kind} ({tok.value!r})",
                tok.pos,
            )
        return self.advance()

    def match(self, *kinds: TokenKind) -> Token | None:
        if self.current.kind in kinds:
            return self.advance()
        return None

    def expect_end(self) -> None:
        if self.current.kind != TokenKind.EOF:
            raise ExpressionParseError(
                f"Unexpected token after expression: {self.current.value!r}",
                self.current.pos,
            )

    # -- Functions --

    def parse_function(self) -> FunctionDef:
        """function (...) { ... } | (...) => body | name => body"""
        if self.current.kind == TokenKind.IDENT and self.current.value == "async":
            raise ExpressionParseError("async functions are not supported", self.current.pos)

        if self.match(TokenKind.FUNCTION):
            self.match(TokenKind.IDENT)
            params = self._parse_params()
            return FunctionDef(params=params, body=self.parse_block())

        if self.current.kind == TokenKind.IDENT and self.peek(1).kind == TokenKind.ARROW:
            params = [self.advance().value]
        else:
            params = self._parse_params()
        self.expect(TokenKind.ARROW)

        if self.current.kind == TokenKind.LBRACE:
            return FunctionDef(params=params, body=self.parse_block())
        return FunctionDef(params=params, body=[ReturnStmt(value=self.parse_expr())])

    def _parse_params(self) -> list[str]:
        """'(' (IDENT (',' IDENT)*)? ')'"""
        self.expect(TokenKind.LPAREN)
        params: list[str] = []
        if self.current.kind != TokenKind.RPAREN:
            params.append(self.expect(TokenKind.IDENT).value)
            while self.match(TokenKind.COMMA):
                params.append(self.expect(TokenKind.IDENT).value)
        self.expect(TokenKind.RPAREN)
        return params

    def parse_block(self) -> list[Stmt]:
        """'{' statement* '}'"""
        self.expect(TokenKind.LBRACE)
        body = self.parse_statements(until=TokenKind.RBRACE)
        self.expect(TokenKind.RBRACE)
        return body

    # -- Statements --

    def parse_statements(self, until: TokenKind = TokenKind.EOF) -> list[Stmt]:
        statements: list[Stmt] = []
        while self.current.kind not in (until, TokenKind.EOF):
            if self.match(TokenKind.SEMICOLON):
                continue
            statements.append(self.parse_statement())
        return statements

    def parse_statement(self) -> Stmt:
        tok = self.current
        stmt: Stmt

        if tok.kind in _DECLARATION_KINDS:
            self.advance()
            name = self.expect(TokenKind.IDENT).value
            value = self.parse_expr() if self.match(TokenKind.ASSIGN) else None
            stmt = DeclareStmt(keyword=tok.value, name=name, value=value)
        elif tok.kind == TokenKind.RETURN:
            self.advance()
            if self.current.kind in (TokenKind.SEMICOLON, TokenKind.RBRACE, TokenKind.EOF):
                stmt = ReturnStmt(value=None)
            else:
                stmt = ReturnStmt(value=self.parse_sequence())
        elif tok.kind == TokenKind.THROW:
            self.advance()
            stmt = ThrowStmt(value=self.parse_sequence())
        elif tok.kind == TokenKind.IDENT and self.peek(1).kind == TokenKind.ASSIGN:
            name = self.advance().value
            self.advance()  # =
            stmt = AssignStmt(name=name, value=self.parse_expr())
        else:
            stmt = ExprStmt(expr=self.parse_sequence())

        self.match(TokenKind.SEMICOLON)
        return stmt

    # -- Expressions --

    def parse_sequence(self) -> Expr:
        """expr (',' expr)*"""
        items = [self.parse_expr()]
        while self.match(TokenKind.COMMA):
            items.append(self.parse_expr())
        if len(items) == 1:
            return items[0]
        return SequenceExpr(items=items)

    def parse_expr(self) -> Expr:
        """or_expr ('?' expr ':' expr)?"""
        condition = self.parse_or_expr()
        if self.match(TokenKind.QUESTION):
            then_expr = self.parse_expr()
            self.expect(TokenKind.COLON)
            else_expr = self.parse_expr()
            return ConditionalExpr(condition=condition, then_expr=then_expr, else_expr=else_expr)
        return condition

    def parse_or_expr(self) -> Expr:
        """and_expr (('||' | '??') and_expr)*"""
        left = self.parse_and_expr()
        while self.current.kind in (TokenKind.OR, TokenKind.NULLISH):
            op = BinaryOp.OR if self.advance().kind == TokenKind.OR else BinaryOp.NULLISH
            right = self.parse_and_expr()
            left = BinaryExpr(op=op, left=left, right=right)
        return left

    def parse_and_expr(self) -> Expr:
        """equality ('&&' equality)*"""
        left = self.parse_binary(_EQUALITY_OPS, self.parse_relational)
        while self.match(TokenKind.AND):
            right = self.parse_binary(_EQUALITY_OPS, self.parse_relational)
            left = BinaryExpr(op=BinaryOp.AND, left=left, right=right)
        return left

    def parse_relational(self) -> Expr:
        return self.parse_binary(_RELATIONAL_OPS, self.parse_addition)

    def parse_addition(self) -> Expr:
        """multiply (('+' | '-') multiply)*"""
        left = self.parse_binary(_MULTIPLY_OPS, self.parse_unary)
        while self.current.kind in (TokenKind.PLUS, TokenKind.MINUS):
            op = BinaryOp.ADD if self.advance().kind == TokenKind.PLUS else BinaryOp.SUB
            right = self.parse_binary(_MULTIPLY_OPS, self.parse_unary)
            left = BinaryExpr(op=op, left=left, right=right)
        return left

    def parse_binary(
        self, ops: dict[TokenKind, BinaryOp], operand: Callable[[], Expr]
    ) -> Expr:
        """Left-associative chain of one precedence level."""
        left = operand()
        while self.current.kind in ops:
            op = ops[self.advance().kind]
            right = operand()
            left = BinaryExpr(op=op, left=left, right=right)
        return left

    def parse_unary(self) -> Expr:
        """('!' | '-' | '+' | 'typeof') unary | postfix"""
        if self.current.kind in _UNARY_OPS:
            op = _UNARY_OPS[self.advance().kind]
            return UnaryExpr(op=op, operand=self.parse_unary())
        return self.parse_postfix()

    def parse_postfix(self) -> Expr:
        """primary ('.' IDENT | '[' expr ']' | '(' args ')')*"""
        expr = self.parse_primary()
        while True:
            if self.match(TokenKind.DOT):
                name_tok = self.advance()
                if not name_tok.value or not (name_tok.value[0].isalpha() or name_tok.value[0] in "_$"):
                    raise ExpressionParseError(
                        f"Expected property name, got {name_tok.value!r}", name_tok.pos
                    )
                expr = MemberExpr(target=expr, name=name_tok.value)
            elif self.match(TokenKind.LBRACKET):
                index = self.parse_sequence()
                self.expect(TokenKind.RBRACKET)
                expr = IndexExpr(target=expr, index=index)
            elif self.current.kind == TokenKind.LPAREN:
                expr = CallExpr(callee=expr, args=self._parse_args())
            else:
                return expr

    def _parse_args(self) -> list[Expr]:
        """'(' (expr (',' expr)*)? ')'"""
        self.expect(TokenKind.LPAREN)
        args: list[Expr] = []
        if self.current.kind != TokenKind.RPAREN:
            args.append(self.parse_expr())
            while self.match(TokenKind.COMMA):
                args.append(self.parse_expr())
        self.expect(TokenKind.RPAREN)
        return args

    def parse_primary(self) -> Expr:
        """literal | IDENT | 'new' postfix | '(' sequence ')' | array | object"""
        tok = self.current

        if tok.kind == TokenKind.LPAREN:
            self.advance()
            expr = self.parse_sequence()
            self.expect(TokenKind.RPAREN)
            return expr

        if tok.kind == TokenKind.LBRACKET:
            return self._parse_array()
        if tok.kind == TokenKind.LBRACE:
            return self._parse_object()

        # Constructors behave like plain calls (new Error("x") == Error("x"))
        if tok.kind == TokenKind.NEW:
            self.advance()
            return self.parse_postfix()

        if tok.kind == TokenKind.INT:
            self.advance()
            return Literal(value=int(tok.value))
        if tok.kind == TokenKind.FLOAT:
            self.advance()
            return Literal(value=float(tok.value))
        if tok.kind == TokenKind.STRING:
            self.advance()
            return Literal(value=tok.value)
        if tok.kind == TokenKind.TRUE:
            self.advance()
            return Literal(value=True)
        if tok.kind == TokenKind.FALSE:
            self.advance()
            return Literal(value=False)
        if tok.kind == TokenKind.NULL:
            self.advance()
            return Literal(value=None)
        if tok.kind == TokenKind.UNDEFINED:
            self.advance()
            return UndefinedLiteral()

        if tok.kind == TokenKind.IDENT:
            self.advance()
            return Identifier(name=tok.value)

        raise ExpressionParseError(
            f"Unexpected token: {tok.kind} ({tok.value!r})",
            tok.pos,
        )

    def _parse_array(self) -> ArrayExpr:
        """'[' (expr (',' expr)* ','?)? ']'"""
        self.expect(TokenKind.LBRACKET)
        items: list[Expr] = []
        while self.current.kind != TokenKind.RBRACKET:
            items.append(self.parse_expr())
            if not self.match(TokenKind.COMMA):
                break
        self.expect(TokenKind.RBRACKET)
        return ArrayExpr(items=items)

    def _parse_object(self) -> ObjectExpr:
        """'{' (key (':' expr)? (',' key (':' expr)?)* ','?)? '}'"""
        self.expect(TokenKind.LBRACE)
        entries: list[tuple[str, Expr]] = []
        while self.current.kind != TokenKind.RBRACE:
            key_tok = self.advance()
            if key_tok.kind not in (TokenKind.IDENT, TokenKind.STRING, TokenKind.INT):
                raise ExpressionParseError(f"Invalid object key: {key_tok.value!r}", key_tok.pos)
            if self.match(TokenKind.COLON):
                value = self.parse_expr()
            elif key_tok.kind == TokenKind.IDENT:
                value = Identifier(name=key_tok.value)
            else:
                raise ExpressionParseError(f"Expected ':' after {key_tok.value!r}", key_tok.pos)
            entries.append((key_tok.value, value))
            if not self.match(TokenKind.COMMA):
                break
        self.expect(TokenKind.RBRACE)
        return ObjectExpr(entries=entries)


def _tokens(source: str) -> list[Token]:
    try:
        return tokenize(source)
    except ExpressionTokenError as e:
        raise ExpressionParseError(str(e), e.pos) from e


def parse_expr(source: str) -> Expr:
    """Parse an expression string into an AST.

    Args:
        source: Expression string (e.g., "count + 1")

    Returns:
        Parsed expression AST.

    Raises:
        ExpressionParseError: If the expression is invalid.
    """
    parser = _Parser(_tokens(source))
    expr = parser.parse_sequence()
    parser.expect_end()
    return expr


def parse_statements(source: str) -> list[Stmt]:
    """Parse a block of ``;`` or newline separated statements."""
    parser = _Parser(_tokens(source))
    statements = parser.parse_statements()
    parser.expect_end()
    return statements


def parse_function(source: str) -> FunctionDef:
    """Parse a function expression (arrow or ``function`` form).

    Raises:
        ExpressionParseError: If the source is not a supported function.
    """
    parser = _Parser(_tokens(source))
    func = parser.parse_function()
    parser.match(TokenKind.SEMICOLON)
    parser.expect_end()
    return func


def is_function_source(source: str) -> bool:
    """True if the text starts like a function expression."""
    return bool(_FUNCTION_SHAPE_RE.match(source))


def function_params(source: str) -> list[str]:
    """Best-effort parameter names of function-shaped source text."""
    m = _PARAMS_RE.match(source)
    if m is None:
        return []
    if m.group(2):
        return [m.group(2)]
    return [p.strip() for p in m.group(1).split(",") if p.strip()]
