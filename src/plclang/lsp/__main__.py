"""
Entry point for running the plclang LSP server as a module.

Usage:
    python -m plclang.lsp
    python -m plclang.lsp --tcp --port 2088
"""

from plclang.lsp.server import main

if __name__ == "__main__":
    main()
