"""
plclang Compiler Package.

This package contains the pipeline stages, run strictly in order:
- Lexer: Tokenizes source text
- Parser: Produces an Abstract Syntax Tree from tokens
- Analyzer: Resolves names and checks types, annotating the AST
- Interpreter: Executes the analyzed AST
- JavaGenerator: Renders the analyzed AST as Java
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, TextIO

from plclang.compiler.analyzer import Analyzer
from plclang.compiler.ast_nodes import Source
from plclang.compiler.codegen import JavaGenerator
from plclang.compiler.environment import PlcObject
from plclang.compiler.interpreter import Interpreter
from plclang.compiler.lexer import Lexer
from plclang.compiler.parser import Parser
from plclang.utils.errors import PlcError, SourceLocation, source_line_at


def _attach_source(error: PlcError, source: str, filename: Optional[str]) -> PlcError:
    """Fill in line, column and source text for an error that only knows its offset."""
    if error.location is not None and error.source_line is None:
        error.location = SourceLocation.from_offset(source, error.location.offset, filename)
        error.source_line = source_line_at(source, error.location.offset)
        error.args = (error._format_message(),)
    return error


def compile_source(source: str, filename: Optional[str] = None) -> Source:
    """
    Lex, parse and analyze source code.

    Args:
        source: plclang source code string
        filename: Optional filename for error reporting

    Returns:
        The analyzed Source node

    Raises:
        LexError, ParseError, SemanticError: On the first problem found
    """
    tokens = Lexer(source, filename).tokenize()
    tree = Parser(tokens, source, filename).parse()
    try:
        Analyzer().analyze(tree)
    except PlcError as e:
        raise _attach_source(e, source, filename)
    return tree


def compile_file(filepath: str) -> Source:
    """Read, lex, parse and analyze a plclang file."""
    path = Path(filepath)
    return compile_source(path.read_text(encoding="utf-8"), str(path))


def generate_source(source: str, filename: Optional[str] = None) -> str:
    """
    Compile source code and render it as Java.

    Returns:
        Generated Java source code
    """
    return JavaGenerator().generate(compile_source(source, filename))


def run_source(
    source: str,
    filename: Optional[str] = None,
    stdout: Optional[TextIO] = None,
) -> PlcObject:
    """
    Compile and run source code.

    Args:
        source: plclang source code string
        filename: Optional filename for error reporting
        stdout: Stream that print writes to (default: sys.stdout)

    Returns:
        The value main returned, or NIL if main raised a runtime error
    """
    tree = compile_source(source, filename)
    return Interpreter(stdout=stdout).run(tree)


__all__ = [
    "Analyzer",
    "Interpreter",
    "JavaGenerator",
    "Lexer",
    "Parser",
    "compile_file",
    "compile_source",
    "generate_source",
    "run_source",
]
