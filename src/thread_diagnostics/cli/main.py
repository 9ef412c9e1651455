"""Main CLI application for thread diagnostics.

Provides a unified command-line interface using Typer with Rich
integration for terminal output.

Usage:
    thread-diagnostics folders [OPTIONS]    List diagnostics folders
    thread-diagnostics show FOLDER          Show per-thread logs of a run
    thread-diagnostics clean [OPTIONS]      Delete expired folders
    thread-diagnostics demo [OPTIONS]       Produce a sample run
    thread-diagnostics --help               Show help
"""

import typer
from rich.console import Console

from thread_diagnostics.cli import clean_commands, commands
from thread_diagnostics.config import get_settings
from thread_diagnostics.core.logging import configure_logging

# Create the main Typer app
app = typer.Typer(
    name="thread-diagnostics",
    help="Thread diagnostics CLI - inspect and clean per-thread diagnostics folders.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
)

console = Console()

# Register inspection commands (folders, show, demo)
app.command(name="folders")(commands.folders)
app.command(name="show")(commands.show)
app.command(name="demo")(commands.demo)

# Register cleanup command
app.command(name="clean")(clean_commands.clean)


@app.callback(invoke_without_command=True)  # type: ignore[untyped-decorator]
def main(ctx: typer.Context) -> None:
    """Thread diagnostics CLI.

    Lists, shows and cleans the per-run diagnostics folders written by
    the diagnostics service.

    Use 'thread-diagnostics COMMAND --help' for more information on a command.
    """
    settings = get_settings()
    configure_logging(settings.log_format, settings.log_level)

    if ctx.invoked_subcommand is None:
        console.print()
        console.print("[bold blue]Thread Diagnostics[/bold blue]")
        console.print()
        console.print("Use [green]thread-diagnostics --help[/green] to see available commands.")
        console.print()
        raise typer.Exit(0)


if __name__ == "__main__":
    app()
