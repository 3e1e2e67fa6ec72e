"""
Token definitions for the plclang lexer.

Keywords are not a separate token type: ``LET``, ``DEF``, ``AND`` and the
rest are lexed as identifiers and recognised by the parser from their text.
"""

from dataclasses import dataclass
from enum import Enum, auto

from plclang.utils.errors import SourceLocation


class TokenType(Enum):
    """Enumeration of all token types in plclang."""

    IDENTIFIER = auto()
    INTEGER = auto()
    DECIMAL = auto()
    CHARACTER = auto()
    STRING = auto()
    OPERATOR = auto()


# Whitespace skipped between tokens
WHITESPACE: frozenset[str] = frozenset(" \t\n\r\b")

# Operators that may take a trailing '='
COMPARISON_PREFIXES: frozenset[str] = frozenset("<>!=")

# Two-character escapes legal in character and string literals
ESCAPES: dict[str, str] = {
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "'": "'",
    '"': '"',
    "\\": "\\",
}


@dataclass(frozen=True, slots=True)
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        literal: The exact source text consumed for this token
        location: Source location of the token's first character
    """

    type: TokenType
    literal: str
    location: SourceLocation

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.literal!r}, {self.location.offset})"

    @property
    def offset(self) -> int:
        """The 0-indexed source offset of the token."""
        return self.location.offset

    @property
    def end_offset(self) -> int:
        """The offset just past the token's last character."""
        return self.location.offset + len(self.literal)
