"""
plclang Lexer (Tokenizer).

Transforms source text into a list of tokens using one character of
lookahead to pick between identifiers, numbers, character and string
literals, and operators.
"""

from typing import Iterator, Optional

from plclang.compiler.tokens import (
    COMPARISON_PREFIXES,
    ESCAPES,
    WHITESPACE,
    Token,
    TokenType,
)
from plclang.utils.errors import LexError, SourceLocation


def _is_letter(char: Optional[str]) -> bool:
    return char is not None and char.isascii() and char.isalpha()


def _is_digit(char: Optional[str]) -> bool:
    return char is not None and char in "0123456789"


class Lexer:
    """
    Tokenizer for plclang source code.

    The lexer recognises:
    - Identifiers (keywords included): a letter, then letters, digits, ``_`` or ``-``
    - Integer and decimal literals with an optional sign
    - Character literals (``'a'``, ``'\\n'``) and string literals
    - One or two character operators

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        # or iterate: for token in lexer: ...
    """

    def __init__(self, source: str, filename: Optional[str] = None) -> None:
        """
        Initialize the lexer with source code.

        Args:
            source: The source code to tokenize
            filename: Optional filename for error reporting
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

        # Track the start of the current line for error reporting
        self._line_start = 0
        # Location where the token being read began
        self._token_start: Optional[SourceLocation] = None

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        peek_pos = self.pos + 1
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _location(self) -> SourceLocation:
        """Create a SourceLocation for the current position."""
        return SourceLocation(
            line=self.line,
            column=self.column,
            offset=self.pos,
            filename=self.filename,
        )

    def _current_line_text(self) -> str:
        """Extract the current line of source for error messages."""
        end = self.source.find("\n", self._line_start)
        if end == -1:
            end = len(self.source)
        return self.source[self._line_start:end]

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
            self._line_start = self.pos
        else:
            self.column += 1

        return char

    def _error(self, message: str) -> LexError:
        """Build a LexError at the current position."""
        return LexError(message, self._location(), self._current_line_text())

    def _emit(self, token_type: TokenType) -> Token:
        """Emit a token for everything consumed since the token started."""
        start = self._token_start
        token = Token(token_type, self.source[start.offset:self.pos], start)
        self.tokens.append(token)
        return token

    def _skip_whitespace(self) -> None:
        """Skip one run of insignificant whitespace."""
        while self._current_char is not None and self._current_char in WHITESPACE:
            self._advance()

    def _read_identifier(self) -> Token:
        """Read an identifier or keyword."""
        self._advance()
        while self._current_char is not None and (
            _is_letter(self._current_char)
            or _is_digit(self._current_char)
            or self._current_char in "_-"
        ):
            self._advance()
        return self._emit(TokenType.IDENTIFIER)

    def _read_number(self) -> Token:
        """
        Read an integer or decimal literal.

        A lone leading zero ends the integer part; digits after it start
        a new token.
        """
        if self._current_char in "+-":
            self._advance()

        if self._current_char == "0":
            self._advance()
        else:
            while _is_digit(self._current_char):
                self._advance()

        if self._current_char == ".":
            if not _is_digit(self._peek_char):
                self._advance()
                raise self._error("Expected digits after decimal point")
            self._advance()
            while _is_digit(self._current_char):
                self._advance()
            return self._emit(TokenType.DECIMAL)

        return self._emit(TokenType.INTEGER)

    def _read_escape(self) -> None:
        """Consume a two-character escape sequence, reporting bad ones at the backslash."""
        backslash = self._location()
        line_text = self._current_line_text()
        self._advance()
        if self._current_char is None or self._current_char not in ESCAPES:
            raise LexError("Invalid escape sequence", backslash, line_text)
        self._advance()

    def _read_character(self) -> Token:
        """Read a character literal such as 'a' or '\\n'."""
        self._advance()  # opening quote

        char = self._current_char
        if char is None or char in "'\n\r":
            raise self._error("Expected a character in character literal")
        if char == "\\":
            self._read_escape()
        else:
            self._advance()

        if self._current_char != "'":
            raise self._error("Unterminated character literal")
        self._advance()
        return self._emit(TokenType.CHARACTER)

    def _read_string(self) -> Token:
        """Read a double-quoted string literal."""
        self._advance()  # opening quote

        while self._current_char is not None and self._current_char not in '"\n\r':
            if self._current_char == "\\":
                self._read_escape()
            else:
                self._advance()

        if self._current_char != '"':
            raise self._error("Unterminated string literal")
        self._advance()
        return self._emit(TokenType.STRING)

    def _read_operator(self) -> Token:
        """Read a one or two character operator."""
        char = self._advance()
        if char in COMPARISON_PREFIXES and self._current_char == "=":
            self._advance()
        return self._emit(TokenType.OPERATOR)

    def _next_token(self) -> Token:
        """Classify and read the token starting at the current position."""
        self._token_start = self._location()
        char = self._current_char

        if _is_letter(char):
            return self._read_identifier()
        if _is_digit(char) or (char in "+-" and _is_digit(self._peek_char)):
            return self._read_number()
        if char == "'":
            return self._read_character()
        if char == '"':
            return self._read_string()
        return self._read_operator()

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source and return the token list.

        Returns:
            List of tokens in source order

        Raises:
            LexError: At the first position that cannot form a token
        """
        self.tokens = []
        self._skip_whitespace()
        while self._current_char is not None:
            self._next_token()
            self._skip_whitespace()
        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        return iter(self.tokenize())


def tokenize(source: str, filename: Optional[str] = None) -> list[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer(source, filename).tokenize()
