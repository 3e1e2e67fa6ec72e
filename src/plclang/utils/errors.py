"""
Error types and source location tracking for the plclang pipeline.

Every stage fails fast: the first malformed token, grammar violation,
semantic problem or runtime fault raises one of the exceptions below and
nothing downstream runs.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Attributes:
        line: 1-indexed line number
        column: 1-indexed column number
        offset: 0-indexed character offset from start of source
        filename: Optional filename for error reporting
    """

    line: int
    column: int
    offset: int = 0
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"

    @classmethod
    def from_offset(
        cls, source: str, offset: int, filename: Optional[str] = None
    ) -> "SourceLocation":
        """Compute line and column for an offset into source."""
        offset = max(0, min(offset, len(source)))
        line = source.count("\n", 0, offset) + 1
        line_start = source.rfind("\n", 0, offset) + 1
        return cls(line=line, column=offset - line_start + 1, offset=offset, filename=filename)


def source_line_at(source: str, offset: int) -> str:
    """Return the full line of source containing offset."""
    offset = max(0, min(offset, len(source)))
    start = source.rfind("\n", 0, offset) + 1
    end = source.find("\n", offset)
    if end == -1:
        end = len(source)
    return source[start:end]


class PlcError(Exception):
    """Base exception for all plclang errors."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def offset(self) -> Optional[int]:
        """The 0-indexed source offset of the error, if known."""
        return self.location.offset if self.location else None

    def _format_message(self) -> str:
        parts = []

        if self.location:
            parts.append(f"[{self.location}]")

        parts.append(self.message)

        if self.source_line and self.location:
            parts.append(f"\n    {self.source_line}")
            # Caret under the error column
            padding = " " * (4 + self.location.column - 1)
            parts.append(f"\n{padding}^")

        return " ".join(parts) if not self.source_line else parts[0] + " " + "".join(parts[1:])


class LexError(PlcError):
    """Raised when the lexer cannot begin or continue a token."""

    pass


class ParseError(PlcError):
    """Raised when the parser encounters a grammar violation."""

    pass


class AnnotationError(PlcError):
    """Raised when an AST annotation slot is read before analysis filled it."""

    pass


# =============================================================================
# Semantic errors
# =============================================================================


class SemanticError(PlcError):
    """Raised when analysis rejects a program."""

    pass


class UnboundNameError(SemanticError):
    """Raised when a variable, function or arity cannot be resolved."""

    def __init__(
        self,
        name: str,
        kind: str = "variable",
        arity: Optional[int] = None,
        candidates: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> None:
        self.name = name
        self.kind = kind
        self.arity = arity
        # Names that were visible where the lookup failed
        self.candidates = candidates or []
        if arity is not None:
            message = f"Unbound {kind} '{name}/{arity}'"
        else:
            message = f"Unbound {kind} '{name}'"
        super().__init__(message, **kwargs)


class TypeMismatchError(SemanticError):
    """Raised when a source type is not assignable to a target type."""

    def __init__(self, target: Any, source: Any, **kwargs: Any) -> None:
        self.target = target
        self.source = source
        super().__init__(f"Expected type {target}, received {source}", **kwargs)


class StructuralError(SemanticError):
    """Raised for malformed constructs such as empty bodies or non-binary groups."""

    pass


class LiteralRangeError(SemanticError):
    """Raised when a numeric literal does not fit its type's range."""

    pass


# =============================================================================
# Runtime errors
# =============================================================================


class RuntimeError(PlcError):
    """Raised while executing an analyzed program."""

    pass


class TypeViolation(RuntimeError):
    """Raised when a value is used at the wrong runtime kind."""

    pass


class ArithmeticError(RuntimeError):
    """Raised when dividing by zero."""

    pass
