"""
Intermediate representation for react-preview.

- expressions: AST for synthesized prop functions
- preview: the resolved PreviewDescriptor
"""

from .expressions import BinaryOp, Expr, FunctionDef, Stmt, UnaryOp
from .preview import ImportStyle, Language, PreviewDescriptor

__all__ = [
    "BinaryOp",
    "Expr",
    "FunctionDef",
    "ImportStyle",
    "Language",
    "PreviewDescriptor",
    "Stmt",
    "UnaryOp",
]
