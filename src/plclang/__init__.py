"""
plclang - a small imperative teaching language.

Source text is lexed, parsed, analyzed and then either interpreted
directly or rendered as Java.
"""

from plclang.compiler import compile_file, compile_source, generate_source, run_source
from plclang.compiler.analyzer import Analyzer
from plclang.compiler.interpreter import Interpreter
from plclang.compiler.lexer import Lexer
from plclang.compiler.parser import Parser

__version__ = "0.1.0"
__all__ = [
    "compile_source",
    "compile_file",
    "generate_source",
    "run_source",
    "Analyzer",
    "Interpreter",
    "Lexer",
    "Parser",
]
