"""Entry point for running thread diagnostics as a module.

This module serves as a thin wrapper around the Typer CLI application.

Usage:
    python -m thread_diagnostics folders      # List diagnostics folders
    python -m thread_diagnostics clean        # Delete expired folders
    python -m thread_diagnostics --help       # Show all commands
"""


def main() -> None:
    """Main entry point - delegates to Typer CLI app."""
    from thread_diagnostics.cli.main import app

    app()


if __name__ == "__main__":
    main()
