"""Shared utilities for CLI commands.

Provides console output helpers and formatting used across commands.
"""

import datetime
from pathlib import Path
from typing import NoReturn

from rich.console import Console

from thread_diagnostics.config import Settings, get_settings

# Shared console instance for consistent output
console = Console()


def resolve_data_dir(data_dir: Path | None, settings: Settings | None = None) -> Path:
    """Pick the directory holding diagnostics folders.

    Args:
        data_dir: Explicit directory from the command line, if any.
        settings: Settings to fall back on.

    Returns:
        The command-line directory, else the configured one.
    """
    if data_dir is not None:
        return data_dir
    return (settings or get_settings()).get_data_dir()


def format_size(size_bytes: int) -> str:
    """Format a byte count for humans, e.g. ``1.5 KB``."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def format_age(age: datetime.timedelta) -> str:
    """Format an age as ``2d 3h``, ``5h 12m`` or ``42s``."""
    seconds = max(int(age.total_seconds()), 0)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]{message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]{message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message in blue."""
    console.print(f"[blue]{message}[/blue]")


def exit_with_error(message: str, code: int = 1) -> NoReturn:
    """Print an error message and exit with the given code.

    Args:
        message: Error message to display.
        code: Exit code (default 1).
    """
    print_error(message)
    raise SystemExit(code)
