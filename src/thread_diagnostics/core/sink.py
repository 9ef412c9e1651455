"""Per-thread diagnostics sink.

Each thread that logs gets one DiagnosticsData. It keeps every line in
memory (for live views) and appends it to its own file inside the run's
diagnostics folder. Lines are line-buffered so a crash loses at most the
line being written.

Log file format, one entry per line:
    [14:03:27.512] message text
"""

import datetime
import os
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from thread_diagnostics.core.events import ChangeCallback, ChangeNotifier
from thread_diagnostics.core.exceptions import SinkNotInitializedError, SinkWriteError
from thread_diagnostics.core.paths import generate_unique_path

# Thread names are free text; keep them valid as file names on every platform.
_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass(frozen=True)
class SinkSummary:
    """Read-only description of a sink, suitable for display."""

    name: str
    thread_id: int
    log_file_path: Path | None
    line_count: int


class DiagnosticsData:
    """Log lines of a single thread."""

    def __init__(self, name: str, fsync: bool = False, encoding: str = "utf-8") -> None:
        """Create an uninitialized sink.

        Args:
            name: Display name, e.g. "Application" or "Worker (2)".
            fsync: Sync the file to disk after every line.
            encoding: Log file encoding.
        """
        self.name = name
        self.thread_id: int | None = None
        self.log_file_path: Path | None = None
        self._fsync = fsync
        self._encoding = encoding
        self._lines: list[str] = []
        self._file: TextIO | None = None
        self._file_failed = False
        self._released = False
        self._lock = threading.Lock()
        self._changes = ChangeNotifier(self)

    def __repr__(self) -> str:
        return f"DiagnosticsData(name={self.name!r}, thread_id={self.thread_id})"

    @property
    def content(self) -> str:
        """All lines logged so far, newline separated."""
        with self._lock:
            return "\n".join(self._lines)

    @property
    def lines(self) -> list[str]:
        with self._lock:
            return list(self._lines)

    @property
    def is_released(self) -> bool:
        return self._released

    @property
    def write_failed(self) -> bool:
        """True once the log file failed to open or was abandoned after a write error."""
        return self._file_failed

    def subscribe(self, callback: ChangeCallback) -> None:
        """Be notified with "Content" whenever a line is logged."""
        self._changes.subscribe(callback)

    def unsubscribe(self, callback: ChangeCallback) -> None:
        self._changes.unsubscribe(callback)

    def initialize(self, folder_path: Path | str, thread_id: int) -> None:
        """Bind the sink to a thread and open its log file.

        The file is named ``<name> (<thread_id>).log`` inside ``folder_path``.

        Raises:
            OSError: If the log file cannot be opened. The sink then keeps
                its lines in memory only.
        """
        self.thread_id = thread_id
        file_name = _UNSAFE_FILENAME_CHARS.sub("_", f"{self.name} ({thread_id}).log")
        path = generate_unique_path(Path(folder_path) / file_name)
        try:
            self._file = open(path, "a", encoding=self._encoding, buffering=1)
        except OSError:
            self._file_failed = True
            raise
        self.log_file_path = path

    def log(self, message: str) -> None:
        """Record one message.

        Raises:
            SinkNotInitializedError: If initialize() was never called.
            SinkWriteError: The first time writing to the file fails. The
                file is then abandoned and later lines stay in memory only.
        """
        if self.thread_id is None:
            raise SinkNotInitializedError(f"Sink {self.name!r} used before initialize()")

        timestamp = datetime.datetime.now().strftime("%H:%M:%S.%f")[:-3]
        error: OSError | None = None

        with self._lock:
            self._lines.append(message)
            if self._file is not None:
                try:
                    self._file.write(f"[{timestamp}] {message}\n")
                    if self._fsync:
                        self._file.flush()
                        os.fsync(self._file.fileno())
                except OSError as e:
                    error = e
                    self._file_failed = True
                    self._close_file()

        self._changes.notify("Content")

        if error is not None:
            raise SinkWriteError(
                f"Could not write to {self.log_file_path}; further lines kept in memory"
            ) from error

    def release(self) -> None:
        """Close the log file. Safe to call more than once."""
        with self._lock:
            self._released = True
            self._close_file()

    def summary(self) -> SinkSummary:
        with self._lock:
            line_count = len(self._lines)
        return SinkSummary(
            name=self.name,
            thread_id=self.thread_id if self.thread_id is not None else 0,
            log_file_path=self.log_file_path,
            line_count=line_count,
        )

    def _close_file(self) -> None:
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError:
            # File is abandoned either way.
            pass
        self._file = None
