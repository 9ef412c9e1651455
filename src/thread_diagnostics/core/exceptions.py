"""Custom exceptions for the diagnostics facility."""


class DiagnosticsError(Exception):
    """Base exception for diagnostics errors."""

    pass


class FolderCreationError(DiagnosticsError):
    """Raised when the diagnostics folder for this run cannot be created."""

    pass


class DiagnosticsNotInitializedError(DiagnosticsError):
    """Raised when logging is attempted before the diagnostics folder exists."""

    pass


class DiagnosticsReleasedError(DiagnosticsError):
    """Raised when logging is attempted after the service was released."""

    pass


class SinkError(DiagnosticsError):
    """Base exception for per-thread sink errors."""

    pass


class SinkNotInitializedError(SinkError):
    """Raised when a sink is used before initialize() was called."""

    pass


class SinkWriteError(SinkError):
    """Raised once when a sink fails to write to its log file."""

    pass
