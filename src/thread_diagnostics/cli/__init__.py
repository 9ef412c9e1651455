"""CLI package for thread diagnostics.

This package provides a Typer-based command-line interface for inspecting
and cleaning up diagnostics folders.

Example usage:
    thread-diagnostics folders
    thread-diagnostics clean --dry-run
    thread-diagnostics demo --threads 4
"""

from thread_diagnostics.cli.main import app

__all__ = ["app"]
