"""Colored console output for main-thread diagnostics."""

from enum import Enum
from typing import TextIO

from rich.console import Console


class ConsoleColor(Enum):
    """Colors available for tinting console lines."""

    WHITE = "white"
    GRAY = "bright_black"
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    CYAN = "cyan"
    MAGENTA = "magenta"


class ConsoleWriter:
    """Writes one colored line per message.

    Messages are printed verbatim: rich markup and highlighting are off so
    that brackets in log text are never interpreted. The style applies to
    the single line only.
    """

    def __init__(self, console: Console | None = None, file: TextIO | None = None) -> None:
        if console is None:
            console = Console(file=file, highlight=False, soft_wrap=True)
        self._console = console

    @property
    def console(self) -> Console:
        return self._console

    def write(self, message: str, color: ConsoleColor = ConsoleColor.WHITE) -> None:
        self._console.print(
            message,
            style=color.value,
            markup=False,
            highlight=False,
            emoji=False,
        )
