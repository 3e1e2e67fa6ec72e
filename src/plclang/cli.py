"""
plclang Command-Line Interface.

Usage:
    plclang tokens program.plc      # List tokens
    plclang ast program.plc         # Dump the syntax tree
    plclang check program.plc       # Lex, parse and analyze
    plclang run program.plc         # Run main(); exit code is its result
    plclang generate program.plc -o Main.java
"""

import argparse
import logging
import os
import sys
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Optional

from plclang import __version__
from plclang.compiler import compile_source
from plclang.compiler.ast_nodes import ASTNode
from plclang.compiler.codegen import JavaGenerator
from plclang.compiler.environment import INTEGER_TYPE
from plclang.compiler.interpreter import Interpreter
from plclang.compiler.lexer import Lexer
from plclang.compiler.parser import Parser
from plclang.utils.diagnostics import render_error
from plclang.utils.errors import PlcError


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.CYAN = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.RESET = ""


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


_init_colors()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="plclang",
        description="plclang - a small imperative teaching language",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="warning",
        help="Logging level (default: warning)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("tokens", "List the tokens of a program"),
        ("ast", "Print the syntax tree of a program"),
        ("check", "Lex, parse and analyze a program"),
        ("run", "Run a program's main method"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("input", help="Input file, or - for stdin")

    generate_parser = subparsers.add_parser("generate", aliases=["gen"], help="Render a program as Java")
    generate_parser.add_argument("input", help="Input file, or - for stdin")
    generate_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output Java file (default: stdout)",
    )

    return parser


def _read_input(name: str) -> tuple[str, str]:
    """Return (source, display filename) for a path or '-'."""
    if name == "-":
        return sys.stdin.read(), "<stdin>"
    return Path(name).read_text(encoding="utf-8"), name


def _report(error: PlcError, source: str, filename: str) -> None:
    use_color = sys.stderr.isatty() and not os.environ.get("NO_COLOR")
    print(render_error(error, source, filename, use_color=use_color), file=sys.stderr)


def _print_ast(node: Any, indent: int = 0, label: str = "") -> None:
    """Pretty print a syntax tree."""
    prefix = "  " * indent + (f"{label}: " if label else "")
    if isinstance(node, list):
        if not node:
            return
        print(f"{prefix}[")
        for item in node:
            _print_ast(item, indent + 1)
        print("  " * indent + "]")
    elif isinstance(node, ASTNode) and is_dataclass(node):
        scalars = []
        children = []
        for f in fields(node):
            if not f.init or f.name == "location":
                continue
            value = getattr(node, f.name)
            if isinstance(value, (ASTNode, list)):
                children.append((f.name, value))
            elif value is not None:
                scalars.append(f"{f.name}={value!r}")
        print(f"{prefix}{type(node).__name__}({', '.join(scalars)})")
        for name, child in children:
            _print_ast(child, indent + 1, name)


# =============================================================================
# Commands
# =============================================================================


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle the tokens command."""
    source, filename = _read_input(args.input)
    try:
        for token in Lexer(source, filename).tokenize():
            print(f"{token.location}\t{token.type.name}\t{token.literal}")
    except PlcError as e:
        _report(e, source, filename)
        return 1
    return 0


def cmd_ast(args: argparse.Namespace) -> int:
    """Handle the ast command."""
    source, filename = _read_input(args.input)
    try:
        tokens = Lexer(source, filename).tokenize()
        tree = Parser(tokens, source, filename).parse()
    except PlcError as e:
        _report(e, source, filename)
        return 1
    _print_ast(tree)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    source, filename = _read_input(args.input)
    try:
        compile_source(source, filename)
    except PlcError as e:
        _report(e, source, filename)
        return 1
    print(f"{Colors.GREEN}OK:{Colors.RESET} {filename}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Handle the run command. The exit code is main's Integer result."""
    source, filename = _read_input(args.input)
    try:
        tree = compile_source(source, filename)
    except PlcError as e:
        _report(e, source, filename)
        return 1

    interpreter = Interpreter()
    result = interpreter.run(tree)
    if interpreter.last_error is not None:
        _report(interpreter.last_error, source, filename)
        return 1
    if result.type == INTEGER_TYPE:
        return result.value
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    """Handle the generate command."""
    source, filename = _read_input(args.input)
    try:
        tree = compile_source(source, filename)
    except PlcError as e:
        _report(e, source, filename)
        return 1

    java = JavaGenerator().generate(tree)
    if args.output is None:
        print(java)
    else:
        args.output.write_text(java + "\n", encoding="utf-8")
        print(f"{Colors.GREEN}Generated:{Colors.RESET} {filename} -> {args.output}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    command_handlers = {
        "tokens": cmd_tokens,
        "ast": cmd_ast,
        "check": cmd_check,
        "run": cmd_run,
        "generate": cmd_generate,
        "gen": cmd_generate,
    }

    handler = command_handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except OSError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
