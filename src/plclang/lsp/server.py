"""
plclang Language Server Protocol (LSP) Server.

Publishes diagnostics as documents are opened, edited and saved, and
provides a document outline of fields and methods.

Usage:
    # Start the server in stdio mode (for IDE integration)
    plclang-lsp

    # Start in TCP mode (for debugging)
    plclang-lsp --tcp --port 2088
"""

import argparse
import logging
from typing import Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from plclang import __version__
from plclang.compiler.ast_nodes import Source
from plclang.lsp.diagnostics import DiagnosticProvider

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("plclang-lsp")


def _position(node) -> types.Position:
    if node.location is None:
        return types.Position(line=0, character=0)
    return types.Position(line=node.location.line - 1, character=node.location.column - 1)


def document_symbols(tree: Source) -> list[types.DocumentSymbol]:
    """Build outline symbols for a parsed program."""
    symbols = []
    for field in tree.fields:
        start = _position(field)
        end = types.Position(line=start.line, character=start.character + 3)
        symbols.append(
            types.DocumentSymbol(
                name=field.name,
                detail=("CONST " if field.constant else "") + field.type_name,
                kind=types.SymbolKind.Field,
                range=types.Range(start=start, end=end),
                selection_range=types.Range(start=start, end=end),
            )
        )
    for method in tree.methods:
        start = _position(method)
        end = types.Position(line=start.line, character=start.character + 3)
        parameters = ", ".join(
            f"{name}: {type_name}"
            for name, type_name in zip(method.parameters, method.parameter_type_names)
        )
        detail = f"({parameters})"
        if method.return_type_name:
            detail += f": {method.return_type_name}"
        symbols.append(
            types.DocumentSymbol(
                name=method.name,
                detail=detail,
                kind=types.SymbolKind.Method,
                range=types.Range(start=start, end=end),
                selection_range=types.Range(start=start, end=end),
            )
        )
    return symbols


class PlcLanguageServer(LanguageServer):
    """
    Language Server Protocol implementation for plclang.

    Keeps the last parsed tree per document for the outline view.
    """

    def __init__(self) -> None:
        super().__init__(name="plclang-lsp", version=f"v{__version__}")
        self._trees: dict[str, Optional[Source]] = {}
        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register all LSP request and notification handlers."""
        self.feature(types.TEXT_DOCUMENT_DID_OPEN)(self._on_did_open)
        self.feature(types.TEXT_DOCUMENT_DID_CHANGE)(self._on_did_change)
        self.feature(types.TEXT_DOCUMENT_DID_SAVE)(self._on_did_save)
        self.feature(types.TEXT_DOCUMENT_DID_CLOSE)(self._on_did_close)
        self.feature(types.TEXT_DOCUMENT_DOCUMENT_SYMBOL)(self._on_document_symbol)

    def _analyze_document(self, uri: str, text: str) -> None:
        """Analyze a document, cache its tree and publish its diagnostics."""
        provider = DiagnosticProvider(text, uri)
        diagnostics = provider.get_diagnostics()
        self._trees[uri] = provider.tree
        self._publish_diagnostics(uri, diagnostics)

    def _publish_diagnostics(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    def _on_did_open(self, params: types.DidOpenTextDocumentParams) -> None:
        document = params.text_document
        logger.info("Document opened: %s", document.uri)
        self._analyze_document(document.uri, document.text)

    def _on_did_change(self, params: types.DidChangeTextDocumentParams) -> None:
        uri = params.text_document.uri
        document = self.workspace.get_text_document(uri)
        logger.debug("Document changed: %s", uri)
        self._analyze_document(uri, document.source)

    def _on_did_save(self, params: types.DidSaveTextDocumentParams) -> None:
        uri = params.text_document.uri
        logger.info("Document saved: %s", uri)
        document = self.workspace.get_text_document(uri)
        self._analyze_document(uri, document.source)

    def _on_did_close(self, params: types.DidCloseTextDocumentParams) -> None:
        uri = params.text_document.uri
        logger.info("Document closed: %s", uri)
        self._trees.pop(uri, None)
        self._publish_diagnostics(uri, [])

    def _on_document_symbol(
        self, params: types.DocumentSymbolParams
    ) -> Optional[list[types.DocumentSymbol]]:
        tree = self._trees.get(params.text_document.uri)
        if tree is None:
            return None
        return document_symbols(tree)


def create_server() -> PlcLanguageServer:
    """Create a plclang language server instance."""
    return PlcLanguageServer()


def main() -> None:
    """
    Main entry point for the plclang language server.

    Starts the server in stdio mode unless --tcp is given.
    """
    parser = argparse.ArgumentParser(
        description="plclang Language Server",
        prog="plclang-lsp",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2088,
        help="Port to listen on in TCP mode (default: 2088)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )
    args = parser.parse_args()

    logging.getLogger("plclang-lsp").setLevel(getattr(logging, args.log_level.upper()))

    server = create_server()
    if args.tcp:
        logger.info("Starting plclang LSP in TCP mode on %s:%s", args.host, args.port)
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting plclang LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
