"""Utility modules for plclang."""

from plclang.utils.errors import (
    LexError,
    ParseError,
    PlcError,
    SemanticError,
    SourceLocation,
    StructuralError,
    TypeMismatchError,
    UnboundNameError,
)

__all__ = [
    "LexError",
    "ParseError",
    "PlcError",
    "SemanticError",
    "SourceLocation",
    "StructuralError",
    "TypeMismatchError",
    "UnboundNameError",
]
