"""
plclang Parser.

A recursive descent parser that transforms a token list into an Abstract
Syntax Tree. Keywords arrive as IDENTIFIER tokens, so grammar rules
match them by their text. Expression precedence, lowest first:

    logical         AND OR
    comparison      < <= > >= == !=
    additive        + -
    multiplicative  * /
    secondary       receiver.name, receiver.name(args)
    primary         literals, ( binary ), name, name(args)
"""

import re
from decimal import Decimal
from typing import Optional, Union

from plclang.compiler.ast_nodes import (
    Access,
    Assignment,
    Binary,
    Declaration,
    Expression,
    ExpressionStatement,
    Field,
    For,
    Function,
    Group,
    If,
    Literal,
    LiteralKind,
    Method,
    Return,
    Source,
    Statement,
    While,
)
from plclang.compiler.lexer import Lexer
from plclang.compiler.tokens import ESCAPES, Token, TokenType
from plclang.utils.errors import ParseError, SourceLocation, source_line_at

# A token pattern is either a token type or the exact text of the token
Pattern = Union[TokenType, str]

_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)

COMPARISON_OPERATORS = ("<", "<=", ">", ">=", "==", "!=")


def decode_escapes(text: str) -> str:
    """Replace each two-character escape in text with the character it names."""
    return _ESCAPE_RE.sub(lambda m: ESCAPES[m.group(1)], text)


class Parser:
    """
    Recursive descent parser for plclang.

    Usage:
        parser = Parser(tokens, source=source_code)
        ast = parser.parse()
    """

    def __init__(
        self,
        tokens: list[Token],
        source: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> None:
        """
        Initialize the parser with a token list.

        Args:
            tokens: List of tokens from the lexer
            source: Optional source text, used to show the offending line in errors
            filename: Optional filename for error reporting
        """
        self.tokens = tokens
        self.pos = 0
        self._source = source
        self._filename = filename

    # -------------------------------------------------------------------------
    # Token helpers
    # -------------------------------------------------------------------------

    @property
    def _current(self) -> Optional[Token]:
        """Get the current token, or None at end of input."""
        if self.pos >= len(self.tokens):
            return None
        return self.tokens[self.pos]

    @property
    def _previous(self) -> Token:
        """Get the previous token."""
        return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    @staticmethod
    def _matches(token: Token, pattern: Pattern) -> bool:
        if isinstance(pattern, TokenType):
            return token.type == pattern
        return token.literal == pattern

    def _check(self, *patterns: Pattern) -> bool:
        """Check if the current token matches one of the given patterns."""
        token = self._current
        return token is not None and any(self._matches(token, p) for p in patterns)

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current
        if token is None:
            raise self._error("Unexpected end of input")
        self.pos += 1
        return token

    def _match(self, *patterns: Pattern) -> bool:
        """Consume current token if it matches one of the given patterns."""
        if self._check(*patterns):
            self.pos += 1
            return True
        return False

    def _expect(self, pattern: Pattern, message: str) -> Token:
        """Consume current token if it matches, else raise error."""
        if self._check(pattern):
            return self._advance()
        raise self._error(message)

    def _error_location(self) -> SourceLocation:
        """Location of the current token, or just past the last one at end of input."""
        if self._current is not None:
            return self._current.location
        if not self.tokens:
            return SourceLocation(1, 1, 0, self._filename)
        last = self.tokens[-1]
        if self._source is not None:
            return SourceLocation.from_offset(self._source, last.end_offset, self._filename)
        return SourceLocation(
            line=last.location.line,
            column=last.location.column + len(last.literal),
            offset=last.end_offset,
            filename=self._filename,
        )

    def _error(self, message: str) -> ParseError:
        """Create a parse error pointing at the offending token."""
        location = self._error_location()
        found = f"'{self._current.literal}'" if self._current is not None else "end of input"
        source_line = None
        if self._source is not None:
            source_line = source_line_at(self._source, location.offset)
        return ParseError(f"{message}, found {found}", location, source_line)

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def parse(self) -> Source:
        """
        Parse the entire token list into a Source node.

        Returns:
            The root Source node

        Raises:
            ParseError: On the first grammar violation
        """
        location = self._current.location if self._current else None
        fields: list[Field] = []
        methods: list[Method] = []

        while not self._is_at_end():
            if self._check("LET"):
                if methods:
                    raise self._error("Fields must be declared before methods")
                fields.append(self._parse_field())
            elif self._check("DEF"):
                methods.append(self._parse_method())
            else:
                raise self._error("Expected 'LET' or 'DEF'")

        if not methods:
            raise self._error("Expected at least one method")

        return Source(fields, methods, location)

    def _parse_field(self) -> Field:
        """
        Parse a field declaration.

        Handles: LET [CONST] name : Type [= expr] ;
        """
        location = self._advance().location
        constant = self._match("CONST")
        name = self._expect(TokenType.IDENTIFIER, "Expected field name").literal
        self._expect(":", "Expected ':' after field name")
        type_name = self._expect(TokenType.IDENTIFIER, "Expected field type").literal

        value = None
        if self._match("="):
            value = self.parse_expression()

        self._expect(";", "Expected ';' after field declaration")
        return Field(name, type_name, constant, value, location)

    def _parse_method(self) -> Method:
        """
        Parse a method definition.

        Handles: DEF name ( [p : T {, p : T}] ) [: R] DO statements END
        """
        location = self._advance().location
        name = self._expect(TokenType.IDENTIFIER, "Expected method name").literal
        self._expect("(", "Expected '(' after method name")

        parameters: list[str] = []
        parameter_types: list[str] = []
        if not self._check(")"):
            while True:
                parameters.append(
                    self._expect(TokenType.IDENTIFIER, "Expected parameter name").literal
                )
                self._expect(":", "Expected ':' after parameter name")
                parameter_types.append(
                    self._expect(TokenType.IDENTIFIER, "Expected parameter type").literal
                )
                if not self._match(","):
                    break
        self._expect(")", "Expected ')' after parameters")

        return_type = None
        if self._match(":"):
            return_type = self._expect(TokenType.IDENTIFIER, "Expected return type").literal

        self._expect("DO", "Expected 'DO' before method body")
        statements = self._parse_block("END")
        self._expect("END", "Expected 'END' after method body")

        return Method(name, parameters, parameter_types, return_type, statements, location)

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def _parse_block(self, *terminators: str) -> list[Statement]:
        """Parse statements until one of the terminator keywords (not consumed)."""
        statements: list[Statement] = []
        while not self._check(*terminators):
            if self._is_at_end():
                expected = " or ".join(f"'{t}'" for t in terminators)
                raise self._error(f"Expected {expected}")
            statements.append(self.parse_statement())
        return statements

    def parse_statement(self) -> Statement:
        """Parse a single statement, dispatching on its leading keyword."""
        if self._check("LET"):
            return self._parse_declaration()
        if self._check("IF"):
            return self._parse_if()
        if self._check("FOR"):
            return self._parse_for()
        if self._check("WHILE"):
            return self._parse_while()
        if self._check("RETURN"):
            return self._parse_return()
        return self._parse_expression_or_assignment()

    def _parse_declaration(self) -> Declaration:
        """
        Parse a local declaration.

        Handles: LET name [: Type] [= expr] ;
        """
        location = self._advance().location
        name = self._expect(TokenType.IDENTIFIER, "Expected variable name").literal

        type_name = None
        if self._match(":"):
            type_name = self._expect(TokenType.IDENTIFIER, "Expected variable type").literal

        value = None
        if self._match("="):
            value = self.parse_expression()

        self._expect(";", "Expected ';' after declaration")
        return Declaration(name, type_name, value, location)

    def _parse_if(self) -> If:
        """
        Parse a conditional.

        Handles: IF expr DO statements [ELSE statements] END
        """
        location = self._advance().location
        condition = self.parse_expression()
        self._expect("DO", "Expected 'DO' after condition")

        then_statements = self._parse_block("ELSE", "END")
        else_statements: list[Statement] = []
        if self._match("ELSE"):
            else_statements = self._parse_block("END")
        self._expect("END", "Expected 'END' after if statement")

        return If(condition, then_statements, else_statements, location)

    def _parse_for(self) -> For:
        """
        Parse a C-style loop.

        Handles: FOR ( [name = expr] ; expr ; [name = expr] ) statements END
        """
        location = self._advance().location
        self._expect("(", "Expected '(' after FOR")

        initialization = None
        if not self._check(";"):
            initialization = self._parse_loop_assignment()
        self._expect(";", "Expected ';' after loop initialization")

        condition = self.parse_expression()
        self._expect(";", "Expected ';' after loop condition")

        increment = None
        if not self._check(")"):
            increment = self._parse_loop_assignment()
        self._expect(")", "Expected ')' after loop header")

        statements = self._parse_block("END")
        self._expect("END", "Expected 'END' after loop body")

        return For(initialization, condition, increment, statements, location)

    def _parse_loop_assignment(self) -> Assignment:
        """Handles: name = expr (no trailing ';')"""
        token = self._expect(TokenType.IDENTIFIER, "Expected loop variable name")
        self._expect("=", "Expected '=' after loop variable")
        value = self.parse_expression()
        return Assignment(Access(None, token.literal, token.location), value, token.location)

    def _parse_while(self) -> While:
        """
        Parse a while loop.

        Handles: WHILE expr DO statements END
        """
        location = self._advance().location
        condition = self.parse_expression()
        self._expect("DO", "Expected 'DO' after condition")
        statements = self._parse_block("END")
        self._expect("END", "Expected 'END' after while body")
        return While(condition, statements, location)

    def _parse_return(self) -> Return:
        """Handles: RETURN expr ;"""
        location = self._advance().location
        value = self.parse_expression()
        self._expect(";", "Expected ';' after return value")
        return Return(value, location)

    def _parse_expression_or_assignment(self) -> Statement:
        """
        Parse an expression statement or an assignment.

        Handles: expr ; and expr = expr ;
        """
        location = self._current.location if self._current else None
        expression = self.parse_expression()

        if self._match("="):
            value = self.parse_expression()
            self._expect(";", "Expected ';' after assignment")
            return Assignment(expression, value, location)

        self._expect(";", "Expected ';' after expression")
        return ExpressionStatement(expression, location)

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        """Parse an expression at the lowest precedence level."""
        return self._parse_logical()

    def _parse_binary_level(self, operators: tuple[str, ...], operand) -> Expression:
        """Parse a left-associative chain of one precedence level."""
        left = operand()
        while self._check(*operators):
            token = self._advance()
            right = operand()
            left = Binary(token.literal, left, right, token.location)
        return left

    def _parse_logical(self) -> Expression:
        """Handles: comparison {(AND | OR) comparison}"""
        return self._parse_binary_level(("AND", "OR"), self._parse_comparison)

    def _parse_comparison(self) -> Expression:
        """Handles: additive {(< | <= | > | >= | == | !=) additive}"""
        return self._parse_binary_level(COMPARISON_OPERATORS, self._parse_additive)

    def _parse_additive(self) -> Expression:
        """Handles: multiplicative {(+ | -) multiplicative}"""
        return self._parse_binary_level(("+", "-"), self._parse_multiplicative)

    def _parse_multiplicative(self) -> Expression:
        """Handles: secondary {(* | /) secondary}"""
        return self._parse_binary_level(("*", "/"), self._parse_secondary)

    def _parse_secondary(self) -> Expression:
        """Handles: primary {. name [( args )]}"""
        expression = self._parse_primary()
        while self._match("."):
            token = self._expect(TokenType.IDENTIFIER, "Expected member name after '.'")
            if self._match("("):
                arguments = self._parse_arguments()
                expression = Function(expression, token.literal, arguments, token.location)
            else:
                expression = Access(expression, token.literal, token.location)
        return expression

    def _parse_arguments(self) -> list[Expression]:
        """Parse a call's arguments after '(' up to and including ')'."""
        arguments: list[Expression] = []
        if not self._check(")"):
            while True:
                arguments.append(self.parse_expression())
                if not self._match(","):
                    break
        self._expect(")", "Expected ')' after arguments")
        return arguments

    def _parse_primary(self) -> Expression:
        """
        Parse a primary expression.

        Handles: TRUE, FALSE, NIL, numbers, characters, strings,
        ( expr ), name and name(args)
        """
        token = self._current
        if token is None:
            raise self._error("Expected expression")

        if self._match("TRUE"):
            return Literal(LiteralKind.BOOLEAN, True, token.location)
        if self._match("FALSE"):
            return Literal(LiteralKind.BOOLEAN, False, token.location)
        if self._match("NIL"):
            return Literal(LiteralKind.NIL, None, token.location)
        if self._match(TokenType.INTEGER):
            return Literal(LiteralKind.INTEGER, int(token.literal), token.location)
        if self._match(TokenType.DECIMAL):
            return Literal(LiteralKind.DECIMAL, Decimal(token.literal), token.location)
        if self._match(TokenType.CHARACTER):
            value = decode_escapes(token.literal[1:-1])
            return Literal(LiteralKind.CHARACTER, value, token.location)
        if self._match(TokenType.STRING):
            value = decode_escapes(token.literal[1:-1])
            return Literal(LiteralKind.STRING, value, token.location)

        if self._match("("):
            expression = self.parse_expression()
            self._expect(")", "Expected ')' after expression")
            return Group(expression, token.location)

        if self._match(TokenType.IDENTIFIER):
            if self._match("("):
                arguments = self._parse_arguments()
                return Function(None, token.literal, arguments, token.location)
            return Access(None, token.literal, token.location)

        raise self._error("Expected expression")


def parse(source: str, filename: Optional[str] = None) -> Source:
    """
    Convenience function to lex and parse source code.

    Args:
        source: The source code to parse
        filename: Optional filename for error reporting

    Returns:
        The root Source node
    """
    tokens = Lexer(source, filename).tokenize()
    return Parser(tokens, source, filename).parse()
