"""
Pytest configuration and shared fixtures for plclang tests.
"""

import io
from dataclasses import dataclass

import pytest

from plclang.compiler.analyzer import Analyzer
from plclang.compiler.ast_nodes import Source
from plclang.compiler.codegen import JavaGenerator
from plclang.compiler.environment import PlcObject, Scope
from plclang.compiler.interpreter import Interpreter
from plclang.compiler.lexer import Lexer
from plclang.compiler.parser import Parser
from plclang.compiler.tokens import Token


@dataclass
class RunResult:
    """Outcome of running a program: main's value plus printed output."""

    value: PlcObject
    output: str
    interpreter: Interpreter


@pytest.fixture
def lexer_factory():
    """Factory fixture for creating lexers."""

    def _create_lexer(source: str, filename: str = "test.plc") -> Lexer:
        return Lexer(source, filename)

    return _create_lexer


@pytest.fixture
def tokenize(lexer_factory):
    """Fixture to tokenize source code."""

    def _tokenize(source: str) -> list[Token]:
        return lexer_factory(source).tokenize()

    return _tokenize


@pytest.fixture
def parser_factory(tokenize):
    """Factory fixture for creating parsers from source."""

    def _create_parser(source: str) -> Parser:
        return Parser(tokenize(source), source, "test.plc")

    return _create_parser


@pytest.fixture
def parse(parser_factory):
    """Fixture to parse a whole program."""

    def _parse(source: str) -> Source:
        return parser_factory(source).parse()

    return _parse


@pytest.fixture
def parse_statement(parser_factory):
    """Fixture to parse a single statement."""

    def _parse_statement(source: str):
        return parser_factory(source).parse_statement()

    return _parse_statement


@pytest.fixture
def parse_expression(parser_factory):
    """Fixture to parse a single expression."""

    def _parse_expression(source: str):
        return parser_factory(source).parse_expression()

    return _parse_expression


@pytest.fixture
def analyze(parse):
    """Fixture to parse and analyze a whole program, returning the tree."""

    def _analyze(source: str) -> Source:
        tree = parse(source)
        Analyzer().analyze(tree)
        return tree

    return _analyze


@pytest.fixture
def run_program(analyze):
    """Fixture to analyze and run a program, capturing print output."""

    def _run(source: str) -> RunResult:
        tree = analyze(source)
        stdout = io.StringIO()
        interpreter = Interpreter(stdout=stdout)
        value = interpreter.run(tree)
        return RunResult(value, stdout.getvalue(), interpreter)

    return _run


@pytest.fixture
def evaluate(parse_expression):
    """Fixture to analyze and evaluate a standalone expression."""

    def _evaluate(source: str, scope: Scope | None = None) -> PlcObject:
        expression = parse_expression(source)
        Analyzer(scope).analyze(expression)
        return Interpreter().evaluate(expression)

    return _evaluate


@pytest.fixture
def generate(analyze):
    """Fixture to compile a program to Java."""

    def _generate(source: str) -> str:
        return JavaGenerator().generate(analyze(source))

    return _generate
