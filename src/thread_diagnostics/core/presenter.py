"""Blocking error presentation.

An error presenter shows a message to the user and returns only once the
user acknowledged it. The diagnostics service calls it from whichever
thread reported the error, so that thread stalls until acknowledgment.

Two presenters are provided:
- ConsolePresenter: a rich panel on stderr, acknowledged with Enter
- DialogPresenter: a modal tkinter error box with an OK button
"""

import sys
import threading
from typing import Literal, Protocol

from rich.console import Console
from rich.panel import Panel
from rich.text import Text


class ErrorPresenter(Protocol):
    """Anything able to show an error and block until acknowledged."""

    def show_error(self, message: str, caption: str = "Error") -> None: ...


class ConsolePresenter:
    """Show errors in a red panel and wait for Enter.

    Without an interactive stdin (services, CI) the panel is shown and
    the call returns immediately.
    """

    def __init__(self, console: Console | None = None, wait: bool = True) -> None:
        self._console = console or Console(stderr=True)
        self._wait = wait
        # One prompt on stdin at a time
        self._lock = threading.Lock()

    def show_error(self, message: str, caption: str = "Error") -> None:
        panel = Panel(
            Text(message),
            title=f"[bold]{caption}[/bold]",
            border_style="red",
            expand=False,
        )
        with self._lock:
            self._console.print(panel)
            if not self._wait or not sys.stdin or not sys.stdin.isatty():
                return
            try:
                self._console.input("[dim]Press Enter to continue...[/dim]")
            except EOFError:
                # stdin closed, nobody left to acknowledge
                pass


class DialogPresenter:
    """Show errors in a modal OK dialog.

    tkinter is imported on first use so that headless installs without Tk
    can still use the console presenter.
    """

    def show_error(self, message: str, caption: str = "Error") -> None:
        import tkinter
        from tkinter import messagebox

        root = tkinter.Tk()
        root.withdraw()
        try:
            messagebox.showerror(caption, message, parent=root)
        finally:
            root.destroy()


def create_presenter(kind: Literal["console", "dialog"] = "console") -> ErrorPresenter:
    """Create the error presenter named in the settings.

    Args:
        kind: "console" or "dialog".

    Returns:
        A presenter instance.

    Raises:
        ValueError: For an unknown presenter kind.
    """
    if kind == "console":
        return ConsolePresenter()
    if kind == "dialog":
        return DialogPresenter()
    raise ValueError(f"Unknown error presenter: {kind}")
