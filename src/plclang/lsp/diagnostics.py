"""
Diagnostic generation for the plclang language server.

Runs the lexer, parser and analyzer over a document and converts the
first error (the pipeline stops at the first one) into an LSP diagnostic.
"""

from typing import Optional

from lsprotocol import types

from plclang.compiler.analyzer import Analyzer
from plclang.compiler.ast_nodes import Source
from plclang.compiler.lexer import Lexer
from plclang.compiler.parser import Parser
from plclang.utils.diagnostics import diagnostic_from_error
from plclang.utils.errors import PlcError

SOURCE_NAME = "plclang"


class DiagnosticProvider:
    """
    Generates LSP diagnostics from plclang source code.

    After get_diagnostics() the parsed tree is available as ``tree`` when
    parsing succeeded, even if analysis failed.
    """

    def __init__(self, source: str, uri: str) -> None:
        """
        Initialize the diagnostic provider.

        Args:
            source: The source code to analyze
            uri: The document URI for location information
        """
        self.source = source
        self.uri = uri
        self.tree: Optional[Source] = None
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            List of LSP diagnostic objects (empty for a valid program)
        """
        self._diagnostics = []
        self.tree = None

        try:
            tokens = Lexer(self.source, filename=self.uri).tokenize()
            self.tree = Parser(tokens, source=self.source, filename=self.uri).parse()
            Analyzer().analyze(self.tree)
        except PlcError as e:
            self._add_error(e)

        return self._diagnostics

    def _add_error(self, error: PlcError) -> None:
        """
        Add a pipeline error as an LSP diagnostic.

        Args:
            error: The error raised by a pipeline stage
        """
        location = error.location
        compiler_diagnostic = diagnostic_from_error(error, self.uri)
        line = 0
        character = 0
        length = 1
        if location is not None:
            line = max(0, location.line - 1)  # Convert to 0-indexed
            character = max(0, location.column - 1)
        if compiler_diagnostic.span is not None:
            length = compiler_diagnostic.span.length

        message_parts = [error.message]
        message_parts.extend(f"note: {note}" for note in compiler_diagnostic.notes)
        message_parts.extend(f"help: {help_msg}" for help_msg in compiler_diagnostic.helps)

        diagnostic = types.Diagnostic(
            range=types.Range(
                start=types.Position(line=line, character=character),
                end=types.Position(line=line, character=character + length),
            ),
            message="\n".join(message_parts),
            severity=types.DiagnosticSeverity.Error,
            source=SOURCE_NAME,
            code=compiler_diagnostic.code or None,
        )

        self._diagnostics.append(diagnostic)


def get_diagnostics_for_document(source: str, uri: str) -> list[types.Diagnostic]:
    """
    Convenience function to get diagnostics for a document.

    Args:
        source: The source code
        uri: The document URI

    Returns:
        List of LSP diagnostics
    """
    return DiagnosticProvider(source, uri).get_diagnostics()
