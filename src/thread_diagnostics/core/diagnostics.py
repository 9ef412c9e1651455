"""Per-thread diagnostics service.

Every thread that logs gets its own DiagnosticsData sink (and log file)
inside the run's diagnostics folder. Lines logged from the main thread are
also echoed to the console. Errors are shown through a blocking presenter
and then logged like any other line.

Usage:
    from thread_diagnostics.core.diagnostics import Diagnostics

    with Diagnostics(base_dir) as diagnostics:
        diagnostics.log("Converting {0} files", 3)
        diagnostics.log_error_code(0x80070005, "Access denied")

Or through the process-wide instance:
    from thread_diagnostics.core import diagnostics

    diagnostics.log("Started")
"""

import atexit
import datetime
import threading
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from thread_diagnostics.config import Settings, get_settings
from thread_diagnostics.core.console import ConsoleColor, ConsoleWriter
from thread_diagnostics.core.events import ChangeCallback, ChangeNotifier
from thread_diagnostics.core.exceptions import (
    DiagnosticsNotInitializedError,
    DiagnosticsReleasedError,
    SinkWriteError,
)
from thread_diagnostics.core.folders import (
    DEFAULT_FOLDER_PREFIX,
    DEFAULT_RETENTION,
    prepare_diagnostics_folder,
)
from thread_diagnostics.core.logging import configure_logging, get_logger
from thread_diagnostics.core.presenter import ErrorPresenter, create_presenter
from thread_diagnostics.core.sink import DiagnosticsData, SinkSummary

logger = get_logger(__name__)

MAIN_SINK_NAME = "Application"
RELEASE_MESSAGE = "Diagnostics manager released correctly."
ERROR_CAPTION = "Error"

SinkFactory = Callable[[str], DiagnosticsData]


class DiagnosticsState(Enum):
    """Lifecycle of a Diagnostics service."""

    UNINITIALIZED = "uninitialized"
    FOLDER_READY = "folder_ready"
    LOGGING = "logging"
    RELEASED = "released"


def format_message(message: str, args: tuple[Any, ...]) -> str:
    """Apply positional ``str.format`` when arguments are given.

    Raises:
        IndexError, KeyError, ValueError: If placeholders and arguments do
            not match.
    """
    return message.format(*args) if args else message


class Diagnostics:
    """Thread registry and log dispatcher.

    The thread that constructs the service is the main thread; only its
    lines reach the console.
    """

    def __init__(
        self,
        base_dir: Path | str,
        presenter: ErrorPresenter | None = None,
        console: ConsoleWriter | None = None,
        console_echo: bool = True,
        folder_prefix: str = DEFAULT_FOLDER_PREFIX,
        retention: datetime.timedelta = DEFAULT_RETENTION,
        sink_factory: SinkFactory | None = None,
    ) -> None:
        """Create an uninitialized service.

        Args:
            base_dir: Directory holding the per-run diagnostics folders.
            presenter: Blocking error presenter. Defaults to ConsolePresenter.
            console: Console writer for main-thread lines.
            console_echo: Whether main-thread lines are echoed at all.
            folder_prefix: Name prefix of diagnostics folders.
            retention: Age after which old diagnostics folders are deleted.
            sink_factory: Builds a sink from its display name.
        """
        self._base_dir = Path(base_dir)
        self._folder_prefix = folder_prefix
        self._retention = retention
        self._presenter = presenter or create_presenter("console")
        self._console = (console or ConsoleWriter()) if console_echo else None
        self._sink_factory = sink_factory or DiagnosticsData

        self._main_thread_id = threading.get_ident()
        self._folder_path: Path | None = None
        self._state = DiagnosticsState.UNINITIALIZED
        self._releasing = False

        self._lock = threading.Lock()
        self._sinks: dict[int, DiagnosticsData] = {}
        self._thread_count = 0
        self._changes = ChangeNotifier(self)

    @classmethod
    def create(cls, settings: Settings | None = None) -> "Diagnostics":
        """Build and initialize a service from settings."""
        settings = settings or get_settings()
        fsync = settings.sink_fsync
        encoding = settings.sink_encoding

        def sink_factory(name: str) -> DiagnosticsData:
            return DiagnosticsData(name, fsync=fsync, encoding=encoding)

        diagnostics = cls(
            base_dir=settings.get_data_dir(),
            presenter=create_presenter(settings.error_presenter),
            console_echo=settings.console_echo,
            folder_prefix=settings.folder_prefix,
            retention=settings.retention,
            sink_factory=sink_factory,
        )
        diagnostics.init()
        return diagnostics

    def __enter__(self) -> "Diagnostics":
        if self._state is DiagnosticsState.UNINITIALIZED:
            self.init()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False

    # Lifecycle

    def init(self, now: datetime.datetime | None = None) -> Path:
        """Sweep expired folders and create this run's diagnostics folder.

        Calling it again after success returns the existing folder.

        Raises:
            FolderCreationError: If the folder cannot be created.
            DiagnosticsReleasedError: If the service was released.
        """
        with self._lock:
            if self._state is DiagnosticsState.RELEASED:
                raise DiagnosticsReleasedError("Diagnostics were released")
            if self._folder_path is not None:
                return self._folder_path

            self._folder_path = prepare_diagnostics_folder(
                self._base_dir,
                retention=self._retention,
                now=now,
                prefix=self._folder_prefix,
            )
            self._state = DiagnosticsState.FOLDER_READY

        logger.debug("Diagnostics initialized", folder=str(self._folder_path))
        return self._folder_path

    def release(self) -> None:
        """Log a final line, close every sink and clear the registry.

        Further logging raises DiagnosticsReleasedError. Releasing twice is
        a no-op.
        """
        with self._lock:
            if self._state is DiagnosticsState.RELEASED or self._releasing:
                return
            self._releasing = True
            state = self._state

        try:
            if state is not DiagnosticsState.UNINITIALIZED:
                self.log(RELEASE_MESSAGE)
        finally:
            with self._lock:
                sinks = list(self._sinks.values())
                self._sinks.clear()
                self._state = DiagnosticsState.RELEASED
            for sink in sinks:
                sink.release()

        logger.debug("Diagnostics released", sinks=len(sinks))

    shutdown = release

    # Properties

    @property
    def state(self) -> DiagnosticsState:
        return self._state

    @property
    def folder_path(self) -> Path | None:
        """This run's diagnostics folder, None before init()."""
        return self._folder_path

    @property
    def main_thread_id(self) -> int:
        return self._main_thread_id

    @property
    def data(self) -> list[DiagnosticsData]:
        """Snapshot of the registered sinks.

        The list does not change afterwards; subscribe() to learn about
        new sinks and read this property again.
        """
        with self._lock:
            return list(self._sinks.values())

    def summaries(self) -> list[SinkSummary]:
        return [sink.summary() for sink in self.data]

    def is_main_thread(self) -> bool:
        return threading.get_ident() == self._main_thread_id

    # Change notification

    def subscribe(self, callback: ChangeCallback) -> None:
        """Be notified with "Data" each time a new thread registers."""
        self._changes.subscribe(callback)

    def unsubscribe(self, callback: ChangeCallback) -> None:
        self._changes.unsubscribe(callback)

    # Logging

    def log(self, message: str, *args: Any, color: ConsoleColor = ConsoleColor.WHITE) -> None:
        """Log a line for the calling thread.

        Args:
            message: Text, or a ``str.format`` template when ``args`` are given.
            *args: Positional format arguments.
            color: Console color, only relevant on the main thread.
        """
        self._dispatch(format_message(message, args), color)

    def assert_(self, condition: bool, message: str) -> None:
        """Report ``message`` as an error when ``condition`` is false."""
        if not condition:
            self.log_error(message)

    def log_error(self, message: str, *args: Any) -> None:
        """Show an error, wait for acknowledgment, then log it in red."""
        self._check_active()
        text = format_message(message, args)
        self._presenter.show_error(text, ERROR_CAPTION)
        self._dispatch(f"Error: {text}", ConsoleColor.RED)

    def log_error_code(self, error_code: int, message: str) -> None:
        """Report an error with a numeric code, e.g. ``Access denied (code 0x5)``.

        Negative codes are shown as their 32-bit two's complement, so
        HRESULT-style values read ``0x80070005`` rather than ``-0x7FF8FFFB``.
        """
        if error_code < 0:
            error_code &= 0xFFFFFFFF
        self.log_error(f"{message} (code 0x{error_code:X})")

    def _check_active(self) -> None:
        if self._state is DiagnosticsState.RELEASED:
            raise DiagnosticsReleasedError("Diagnostics were released")
        if self._state is DiagnosticsState.UNINITIALIZED:
            raise DiagnosticsNotInitializedError("Diagnostics.init() was not called")

    def _dispatch(self, message: str, color: ConsoleColor) -> None:
        self._check_active()
        thread_id = threading.get_ident()

        if self._console is not None and thread_id == self._main_thread_id:
            self._console.write(message, color)

        sink = self._resolve_sink(thread_id)
        try:
            sink.log(message)
        except SinkWriteError as e:
            logger.error(
                "Diagnostics sink write failed",
                sink=sink.name,
                thread_id=thread_id,
                path=str(sink.log_file_path),
                error=str(e.__cause__),
            )

    def _resolve_sink(self, thread_id: int) -> DiagnosticsData:
        """Return the sink of ``thread_id``, registering it on first use.

        The lock only covers the registry: the new sink opens its file and
        observers are notified after it is released. A sink whose file
        cannot be opened is still registered and keeps its lines in memory.
        """
        with self._lock:
            if self._state is DiagnosticsState.RELEASED:
                raise DiagnosticsReleasedError("Diagnostics were released")
            sink = self._sinks.get(thread_id)
            if sink is not None:
                return sink

            if self._thread_count > 0:
                name = f"{threading.current_thread().name} ({self._thread_count})"
            else:
                name = MAIN_SINK_NAME
            self._thread_count += 1
            folder_path = self._folder_path

        sink = self._sink_factory(name)
        try:
            sink.initialize(folder_path, thread_id)
        except OSError as e:
            logger.error(
                "Diagnostics sink could not open its log file",
                sink=name,
                thread_id=thread_id,
                folder=str(folder_path),
                error=str(e),
            )

        with self._lock:
            if self._state is DiagnosticsState.RELEASED:
                sink.release()
                raise DiagnosticsReleasedError("Diagnostics were released")
            self._sinks[thread_id] = sink
            self._state = DiagnosticsState.LOGGING

        self._changes.notify("Data")
        return sink


# Process-wide instance
_diagnostics: Diagnostics | None = None
_diagnostics_lock = threading.Lock()
_atexit_registered = False


def _register_atexit() -> None:
    global _atexit_registered
    if not _atexit_registered:
        atexit.register(shutdown_diagnostics)
        _atexit_registered = True


def get_diagnostics() -> Diagnostics:
    """Get or create the process-wide diagnostics service.

    The first call configures logging, runs the folder lifecycle and
    registers shutdown_diagnostics() to run at interpreter exit.
    """
    global _diagnostics
    with _diagnostics_lock:
        if _diagnostics is None:
            settings = get_settings()
            configure_logging(settings.log_format, settings.log_level)
            _diagnostics = Diagnostics.create(settings)
            _register_atexit()
    return _diagnostics


def configure_diagnostics(settings: Settings | None = None) -> Diagnostics:
    """Replace the process-wide service with one built from ``settings``.

    Any previous instance is released first.
    """
    global _diagnostics
    settings = settings or get_settings()
    with _diagnostics_lock:
        if _diagnostics is not None:
            _diagnostics.release()
        configure_logging(settings.log_format, settings.log_level)
        _diagnostics = Diagnostics.create(settings)
        _register_atexit()
    return _diagnostics


def shutdown_diagnostics() -> None:
    """Release the process-wide service, if one exists."""
    global _diagnostics
    with _diagnostics_lock:
        if _diagnostics is not None:
            _diagnostics.release()
            _diagnostics = None


# Module-level functions that use the process-wide service
def log(message: str, *args: Any, color: ConsoleColor = ConsoleColor.WHITE) -> None:
    """Log a line for the calling thread."""
    get_diagnostics().log(message, *args, color=color)


def assert_(condition: bool, message: str) -> None:
    """Report ``message`` as an error when ``condition`` is false."""
    get_diagnostics().assert_(condition, message)


def log_error(message: str, *args: Any) -> None:
    """Show and log an error."""
    get_diagnostics().log_error(message, *args)


def log_error_code(error_code: int, message: str) -> None:
    """Show and log an error with a hexadecimal code."""
    get_diagnostics().log_error_code(error_code, message)
