"""
CLI layer for standards-sync.

Provides a Typer application whose commands delegate to the library
packages. All behaviour lives there; this package handles only terminal
transport: argument parsing, coloured output and table formatting.

Entry point::

    standards-sync --help
"""

from standards_sync.cli.app import app

__all__ = ["app"]
