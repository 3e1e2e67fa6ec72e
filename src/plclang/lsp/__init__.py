"""Language server for plclang, built on pygls."""

from plclang.lsp.diagnostics import DiagnosticProvider, get_diagnostics_for_document

__all__ = ["DiagnosticProvider", "get_diagnostics_for_document"]
