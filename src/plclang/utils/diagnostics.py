"""
Rust-like error diagnostics for plclang.

Turns a PlcError into a diagnostic with source context, rendered like:

    error[E0301]: Unbound variable 'cuont'
      --> counter.plc:4:12
       |
     4 |     RETURN cuont;
       |            ^^^^^
       |
       = help: did you mean 'count'?
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from plclang.utils.errors import (
    AnnotationError,
    ArithmeticError,
    LexError,
    LiteralRangeError,
    ParseError,
    PlcError,
    StructuralError,
    TypeMismatchError,
    TypeViolation,
    UnboundNameError,
)


# =============================================================================
# Error Codes Catalog
# =============================================================================


class ErrorCode:
    """
    Centralized catalog of error codes for plclang diagnostics.

    Error codes are organized by stage:
    - E01xx: Lexical errors
    - E02xx: Syntax errors
    - E03xx: Semantic errors
    - E04xx: Runtime errors
    """

    E0101 = "E0101"  # malformed token
    E0201 = "E0201"  # grammar violation
    E0301 = "E0301"  # unbound name
    E0302 = "E0302"  # type mismatch
    E0303 = "E0303"  # malformed construct
    E0304 = "E0304"  # literal out of range
    E0305 = "E0305"  # unanalyzed tree
    E0401 = "E0401"  # runtime type violation
    E0402 = "E0402"  # division by zero


ERROR_DESCRIPTIONS: dict[str, str] = {
    ErrorCode.E0101: "malformed token",
    ErrorCode.E0201: "syntax error",
    ErrorCode.E0301: "unbound name",
    ErrorCode.E0302: "type mismatch",
    ErrorCode.E0303: "malformed construct",
    ErrorCode.E0304: "literal out of range",
    ErrorCode.E0305: "missing analysis",
    ErrorCode.E0401: "runtime type violation",
    ErrorCode.E0402: "division by zero",
}

# Most specific classes first
_ERROR_CODES: list[tuple[type, str]] = [
    (LexError, ErrorCode.E0101),
    (ParseError, ErrorCode.E0201),
    (UnboundNameError, ErrorCode.E0301),
    (TypeMismatchError, ErrorCode.E0302),
    (StructuralError, ErrorCode.E0303),
    (LiteralRangeError, ErrorCode.E0304),
    (AnnotationError, ErrorCode.E0305),
    (TypeViolation, ErrorCode.E0401),
    (ArithmeticError, ErrorCode.E0402),
]


def error_code_for(error: PlcError) -> str:
    """Return the catalog code for an error, or an empty string."""
    for error_type, code in _ERROR_CODES:
        if isinstance(error, error_type):
            return code
    return ""


# =============================================================================
# Diagnostic Types
# =============================================================================


class DiagnosticLevel(Enum):
    """Severity level of a diagnostic message."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"
    HELP = "help"

    def color_code(self) -> str:
        """Get ANSI color code for this level."""
        colors = {
            DiagnosticLevel.ERROR: "\033[91m",  # Red
            DiagnosticLevel.WARNING: "\033[93m",  # Yellow
            DiagnosticLevel.NOTE: "\033[96m",  # Cyan
            DiagnosticLevel.HELP: "\033[92m",  # Green
        }
        return colors.get(self, "")


@dataclass(frozen=True, slots=True)
class SourceSpan:
    """
    A span of source code on a single line.

    Attributes:
        line: 1-indexed line number
        start_col: 1-indexed starting column number
        end_col: 1-indexed ending column number (exclusive)
        filename: Filename for display
    """

    line: int
    start_col: int
    end_col: int
    filename: str = "<input>"

    @classmethod
    def from_location(
        cls, line: int, col: int, length: int = 1, filename: str = "<input>"
    ) -> "SourceSpan":
        """Create a span from a single location with a given length."""
        return cls(line=line, start_col=col, end_col=col + max(1, length), filename=filename)

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.start_col}"

    @property
    def length(self) -> int:
        return max(1, self.end_col - self.start_col)


@dataclass
class Diagnostic:
    """
    A diagnostic message with source context.

    Attributes:
        code: Error code (e.g., "E0301")
        level: Severity level
        message: The main diagnostic message
        span: Where in the source the problem is, if known
        notes: Additional notes to display
        helps: Help messages with suggestions
    """

    code: str
    level: DiagnosticLevel
    message: str
    span: Optional[SourceSpan] = None
    notes: list[str] = field(default_factory=list)
    helps: list[str] = field(default_factory=list)

    def render(self, source_code: str, use_color: bool = True) -> str:
        """
        Render this diagnostic as a formatted string.

        Args:
            source_code: The original source code for context
            use_color: Whether to use ANSI color codes

        Returns:
            A formatted multi-line string representation
        """
        lines: list[str] = []
        source_lines = source_code.splitlines()

        reset = "\033[0m" if use_color else ""
        bold = "\033[1m" if use_color else ""
        blue = "\033[94m" if use_color else ""
        green = "\033[92m" if use_color else ""
        level_color = self.level.color_code() if use_color else ""

        level_str = self.level.value
        code_desc = ERROR_DESCRIPTIONS.get(self.code, "")
        if code_desc:
            header = f"{level_color}{bold}{level_str}[{self.code}]{reset}: {bold}{self.message}{reset}"
        else:
            header = f"{level_color}{bold}{level_str}{reset}: {bold}{self.message}{reset}"
        lines.append(header)

        if self.span is not None:
            lines.append(f"  {blue}-->{reset} {self.span}")

            if 1 <= self.span.line <= len(source_lines):
                source_line = source_lines[self.span.line - 1]
                padding = " " * (self.span.start_col - 1)
                underline = "^" * self.span.length
                lines.append(f"   {blue}|{reset}")
                lines.append(f"{blue}{self.span.line:3} |{reset} {source_line}")
                lines.append(f"   {blue}|{reset} {padding}{level_color}{underline}{reset}")
                lines.append(f"   {blue}|{reset}")

        for note in self.notes:
            lines.append(f"   {blue}={reset} {bold}note:{reset} {note}")

        for help_msg in self.helps:
            lines.append(f"   {blue}={reset} {green}help:{reset} {help_msg}")

        return "\n".join(lines)

    def to_simple_message(self) -> str:
        """Get a simple one-line error message."""
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


def _span_length(error: PlcError) -> int:
    """Guess how many columns to underline, stopping at whitespace or punctuation."""
    if isinstance(error, UnboundNameError):
        return len(error.name)
    if error.source_line is None or error.location is None:
        return 1
    rest = error.source_line[error.location.column - 1:]
    for i, char in enumerate(rest):
        if char.isspace() or char in "(),:;":
            return max(1, i)
    return max(1, len(rest))


def diagnostic_from_error(error: PlcError, filename: str = "<input>") -> Diagnostic:
    """
    Build a diagnostic from a pipeline error.

    Unbound names get "did you mean" help drawn from the names that were
    visible where the lookup failed.
    """
    span = None
    if error.location is not None:
        span = SourceSpan.from_location(
            error.location.line,
            error.location.column,
            _span_length(error),
            error.location.filename or filename,
        )

    diagnostic = Diagnostic(
        code=error_code_for(error),
        level=DiagnosticLevel.ERROR,
        message=error.message,
        span=span,
    )

    if isinstance(error, UnboundNameError):
        suggestions = suggest_similar(error.name, error.candidates)
        if suggestions:
            quoted = " or ".join(f"'{name}'" for name in suggestions)
            diagnostic.helps.append(f"did you mean {quoted}?")
    elif isinstance(error, TypeMismatchError):
        diagnostic.notes.append(f"expected {error.target}, found {error.source}")

    return diagnostic


def render_error(
    error: PlcError, source: str, filename: str = "<input>", use_color: bool = True
) -> str:
    """Render a pipeline error against its source."""
    return diagnostic_from_error(error, filename).render(source, use_color)


# =============================================================================
# String Similarity (Levenshtein Distance)
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate the Levenshtein (edit) distance between two strings.

    Args:
        s1: First string
        s2: Second string

    Returns:
        The edit distance as an integer
    """
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))

    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def suggest_similar(
    name: str,
    candidates: list[str],
    max_distance: int = 2,
    max_suggestions: int = 3,
) -> list[str]:
    """
    Find names close to name, closest first, for "did you mean?" help.

    Args:
        name: The name to find suggestions for
        candidates: Valid names to compare against
        max_distance: Maximum edit distance to consider
        max_suggestions: Maximum number of suggestions to return
    """
    scored = []
    for candidate in candidates:
        if candidate == name or abs(len(candidate) - len(name)) > max_distance:
            continue
        distance = levenshtein_distance(name.lower(), candidate.lower())
        if distance <= max_distance:
            scored.append((candidate, distance))

    scored.sort(key=lambda x: (x[1], x[0]))
    return [candidate for candidate, _ in scored[:max_suggestions]]
