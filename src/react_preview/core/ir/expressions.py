"""
Expression and statement types for synthesized prop functions.

This module defines the closed AST that function bodies in preview files
are parsed into. Anything outside this set of node types cannot be
executed from Python; see ``react_preview.core.expression_lang``.

Supports:
- Arithmetic: +, -, *, /, %
- Comparison: ==, !=, ===, !==, <, >, <=, >=
- Logic: &&, ||, ??, !
- Conditionals: cond ? a : b
- Member access and calls: value.length, items[0], Math.max(a, b)
- Array and object literals
- Statements: let/const/var declarations, assignment, return, throw
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


class BinaryOp(StrEnum):
    """Binary operators for expressions."""

    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    # Comparison
    EQ = "=="
    NE = "!="
    STRICT_EQ = "==="
    STRICT_NE = "!=="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="
    # Logical
    AND = "&&"
    OR = "||"
    NULLISH = "??"


class UnaryOp(StrEnum):
    """Unary operators for expressions."""

    NEG = "-"
    POS = "+"
    NOT = "!"
    TYPEOF = "typeof"


# ---------------------------------------------------------------------------
# Expression nodes
# ---------------------------------------------------------------------------


class Literal(BaseModel):
    """A literal value: int, float, str, bool, or None (null)."""

    value: int | float | str | bool | None = Field(description="The literal value")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, str):
            return f'"{self.value}"'
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return str(self.value)


class UndefinedLiteral(BaseModel):
    """The ``undefined`` keyword."""

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "undefined"


class Identifier(BaseModel):
    """Reference to a parameter, local binding, or built-in."""

    name: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.name


class MemberExpr(BaseModel):
    """Property access: target.name"""

    target: Expr
    name: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.target}.{self.name}"


class IndexExpr(BaseModel):
    """Computed property access: target[index]"""

    target: Expr
    index: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.target}[{self.index}]"


class CallExpr(BaseModel):
    """Function call: callee(arg1, arg2, ...)."""

    callee: Expr
    args: list[Expr] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        args_str = ", ".join(str(a) for a in self.args)
        return f"{self.callee}({args_str})"


class BinaryExpr(BaseModel):
    """Binary operation: left op right."""

    op: BinaryOp
    left: Expr
    right: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


class UnaryExpr(BaseModel):
    """Unary operation: op operand."""

    op: UnaryOp
    operand: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        if self.op == UnaryOp.TYPEOF:
            return f"typeof {self.operand}"
        return f"{self.op.value}{self.operand}"


class ConditionalExpr(BaseModel):
    """Ternary: condition ? then_expr : else_expr"""

    condition: Expr
    then_expr: Expr
    else_expr: Expr

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"({self.condition} ? {self.then_expr} : {self.else_expr})"


class ArrayExpr(BaseModel):
    """Array literal: [a, b, c]"""

    items: list[Expr] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "[" + ", ".join(str(i) for i in self.items) + "]"


class ObjectExpr(BaseModel):
    """Object literal: {key: value, ...}. Keys keep source order."""

    entries: list[tuple[str, Expr]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.entries) + "}"


class SequenceExpr(BaseModel):
    """Comma operator: evaluates every item, yields the last."""

    items: list[Expr]

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return ", ".join(str(i) for i in self.items)


# ---------------------------------------------------------------------------
# Statement nodes
# ---------------------------------------------------------------------------


class DeclareStmt(BaseModel):
    """let/const/var name = value"""

    keyword: str
    name: str
    value: Expr | None = None

    model_config = ConfigDict(frozen=True)


class AssignStmt(BaseModel):
    """name = value"""

    name: str
    value: Expr

    model_config = ConfigDict(frozen=True)


class ExprStmt(BaseModel):
    """Expression evaluated for its side effects."""

    expr: Expr

    model_config = ConfigDict(frozen=True)


class ReturnStmt(BaseModel):
    """return value"""

    value: Expr | None = None

    model_config = ConfigDict(frozen=True)


class ThrowStmt(BaseModel):
    """throw value"""

    value: Expr

    model_config = ConfigDict(frozen=True)


class FunctionDef(BaseModel):
    """A parsed function: parameter names plus body statements."""

    params: list[str] = Field(default_factory=list)
    body: list[Stmt] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Union types
# ---------------------------------------------------------------------------

Expr = (
    Literal
    | UndefinedLiteral
    | Identifier
    | MemberExpr
    | IndexExpr
    | CallExpr
    | BinaryExpr
    | UnaryExpr
    | ConditionalExpr
    | ArrayExpr
    | ObjectExpr
    | SequenceExpr
)

Stmt = DeclareStmt | AssignStmt | ExprStmt | ReturnStmt | ThrowStmt

# Rebuild models for recursive forward references
MemberExpr.model_rebuild()
IndexExpr.model_rebuild()
CallExpr.model_rebuild()
BinaryExpr.model_rebuild()
UnaryExpr.model_rebuild()
ConditionalExpr.model_rebuild()
ArrayExpr.model_rebuild()
ObjectExpr.model_rebuild()
SequenceExpr.model_rebuild()
DeclareStmt.model_rebuild()
AssignStmt.model_rebuild()
ExprStmt.model_rebuild()
ReturnStmt.model_rebuild()
ThrowStmt.model_rebuild()
FunctionDef.model_rebuild()
