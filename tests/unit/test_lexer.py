"""Tests for the plclang lexer."""

import pytest

from plclang.compiler.lexer import tokenize as lex
from plclang.compiler.tokens import TokenType
from plclang.utils.errors import LexError


def kinds_and_text(tokens):
    return [(t.type, t.literal) for t in tokens]


class TestIdentifiers:
    """Identifier and keyword lexing."""

    @pytest.mark.parametrize(
        "source",
        ["getName", "x", "thelongest-name_1", "LET", "camelCase123"],
    )
    def test_single_identifier(self, tokenize, source):
        """Letters, digits, underscores and hyphens form one identifier."""
        tokens = tokenize(source)
        assert kinds_and_text(tokens) == [(TokenType.IDENTIFIER, source)]

    def test_hyphen_joins_identifier(self, tokenize):
        """A hyphen directly after a letter continues the identifier."""
        assert kinds_and_text(tokenize("i-1")) == [(TokenType.IDENTIFIER, "i-1")]

    def test_leading_digit_splits(self, tokenize):
        """An identifier cannot start with a digit."""
        assert kinds_and_text(tokenize("1fish")) == [
            (TokenType.INTEGER, "1"),
            (TokenType.IDENTIFIER, "fish"),
        ]

    def test_underscore_cannot_start(self, tokenize):
        """A leading underscore is an operator, not an identifier start."""
        assert kinds_and_text(tokenize("_x")) == [
            (TokenType.OPERATOR, "_"),
            (TokenType.IDENTIFIER, "x"),
        ]


class TestNumbers:
    """Integer and decimal literal lexing."""

    @pytest.mark.parametrize("source", ["1", "0", "123", "-1", "+10", "2147483648"])
    def test_integer(self, tokenize, source):
        """Digits with an optional sign form an INTEGER."""
        assert kinds_and_text(tokenize(source)) == [(TokenType.INTEGER, source)]

    @pytest.mark.parametrize("source", ["1.0", "123.456", "-0.25", "+3.5", "0.5"])
    def test_decimal(self, tokenize, source):
        """A fractional part makes a DECIMAL."""
        assert kinds_and_text(tokenize(source)) == [(TokenType.DECIMAL, source)]

    def test_leading_zero_ends_integer(self, tokenize):
        """Digits after a lone leading zero start a new token."""
        assert kinds_and_text(tokenize("01")) == [
            (TokenType.INTEGER, "0"),
            (TokenType.INTEGER, "1"),
        ]

    def test_sign_with_space_is_operator(self, tokenize):
        """A sign not directly followed by a digit is an operator."""
        assert kinds_and_text(tokenize("x - 1")) == [
            (TokenType.IDENTIFIER, "x"),
            (TokenType.OPERATOR, "-"),
            (TokenType.INTEGER, "1"),
        ]

    def test_missing_fraction_digits(self, tokenize):
        """A decimal point must be followed by a digit."""
        with pytest.raises(LexError) as exc_info:
            tokenize("1.")
        assert exc_info.value.offset == 2

    def test_missing_fraction_before_identifier(self, tokenize):
        """The error is reported after the point, not at the next token."""
        with pytest.raises(LexError) as exc_info:
            tokenize("12.x")
        assert exc_info.value.offset == 3


class TestCharacters:
    """Character literal lexing."""

    @pytest.mark.parametrize("source", ["'c'", "'\\n'", "'\\''", "'\"'", "'\\\\'", "' '"])
    def test_character(self, tokenize, source):
        """A single character or escape between single quotes."""
        assert kinds_and_text(tokenize(source)) == [(TokenType.CHARACTER, source)]

    def test_empty_character(self, tokenize):
        """An empty character literal fails at the closing quote."""
        with pytest.raises(LexError) as exc_info:
            tokenize("''")
        assert exc_info.value.offset == 1

    def test_multiple_characters(self, tokenize):
        """Only one character is allowed."""
        with pytest.raises(LexError) as exc_info:
            tokenize("'ab'")
        assert exc_info.value.offset == 2

    def test_unterminated_character(self, tokenize):
        """End of input before the closing quote is an error."""
        with pytest.raises(LexError):
            tokenize("'a")

    def test_invalid_escape(self, tokenize):
        """Only the fixed escape set is legal."""
        with pytest.raises(LexError) as exc_info:
            tokenize("'\\q'")
        assert exc_info.value.offset == 1


class TestStrings:
    """String literal lexing."""

    @pytest.mark.parametrize(
        "source",
        ['""', '"abc"', '"Hello, World!"', '"a\\tb\\nc"', '"say \\"hi\\""', '"\'"'],
    )
    def test_string(self, tokenize, source):
        """Any run of characters and escapes between double quotes."""
        assert kinds_and_text(tokenize(source)) == [(TokenType.STRING, source)]

    def test_unterminated_string(self, tokenize):
        """A string must be closed."""
        with pytest.raises(LexError) as exc_info:
            tokenize('"unterminated')
        assert exc_info.value.offset == 13
        assert "Unterminated string" in exc_info.value.message

    def test_newline_in_string(self, tokenize):
        """A raw newline ends the string with an error."""
        with pytest.raises(LexError) as exc_info:
            tokenize('"a\nb"')
        assert exc_info.value.offset == 2

    def test_invalid_escape(self, tokenize):
        """The error points at the backslash that starts the bad escape."""
        with pytest.raises(LexError) as exc_info:
            tokenize('"bad\\q"')
        assert exc_info.value.offset == 4


class TestOperators:
    """Operator lexing."""

    @pytest.mark.parametrize("source", ["<=", ">=", "!=", "==", "<", ">", "!", "=", "(", ";", "."])
    def test_single_operator(self, tokenize, source):
        """Comparison prefixes take a trailing '='; everything else is one character."""
        assert kinds_and_text(tokenize(source)) == [(TokenType.OPERATOR, source)]

    def test_double_ampersand(self, tokenize):
        """Only <, >, ! and = combine with a following character."""
        assert kinds_and_text(tokenize("&&")) == [
            (TokenType.OPERATOR, "&"),
            (TokenType.OPERATOR, "&"),
        ]

    def test_equals_chain(self, tokenize):
        """Three equals signs lex as '==' then '='."""
        assert [t.literal for t in tokenize("===")] == ["==", "="]


class TestWhitespaceAndPositions:
    """Whitespace skipping and offset bookkeeping."""

    def test_all_whitespace_kinds(self, tokenize):
        """Space, tab, newline, carriage return and backspace separate tokens."""
        tokens = tokenize("one \b\t\r\ntwo")
        assert [t.literal for t in tokens] == ["one", "two"]
        assert tokens[1].offset == 8

    def test_empty_source(self, tokenize):
        """Empty and blank input produce no tokens."""
        assert tokenize("") == []
        assert tokenize("   \n\t ") == []

    def test_line_and_column(self, tokenize):
        """Tokens record their line and column."""
        tokens = tokenize("LET\n  x")
        assert tokens[1].location.line == 2
        assert tokens[1].location.column == 3
        assert tokens[1].offset == 6

    def test_text_is_exact_substring(self):
        """Every token's text is the exact source slice at its offset."""
        source = "LET x: Integer = -12.5; print(\"a\\tb\", 'c');"
        for token in lex(source):
            assert source[token.offset:token.end_offset] == token.literal


class TestHelloWorld:
    """The canonical first program."""

    def test_token_stream(self, tokenize):
        """Every keyword, name, delimiter and literal is its own token."""
        tokens = tokenize('DEF main(): Integer DO print("Hello, World!"); RETURN 0; END')
        assert [t.literal for t in tokens] == [
            "DEF", "main", "(", ")", ":", "Integer", "DO",
            "print", "(", '"Hello, World!"', ")", ";",
            "RETURN", "0", ";", "END",
        ]
        assert tokens[9].type == TokenType.STRING
        assert tokens[13].type == TokenType.INTEGER
