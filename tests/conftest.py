"""Pytest fixtures for thread diagnostics tests."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from thread_diagnostics import config
from thread_diagnostics.config import Settings
from thread_diagnostics.core import diagnostics as diagnostics_module
from thread_diagnostics.core.console import ConsoleColor, ConsoleWriter
from thread_diagnostics.core.diagnostics import Diagnostics, DiagnosticsState


class RecordingPresenter:
    """Error presenter that records messages instead of blocking."""

    def __init__(self) -> None:
        self.shown: list[tuple[str, str]] = []

    def show_error(self, message: str, caption: str = "Error") -> None:
        self.shown.append((message, caption))


class RecordingConsole(ConsoleWriter):
    """Console writer that records (message, color) pairs."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, ConsoleColor]] = []

    def write(self, message: str, color: ConsoleColor = ConsoleColor.WHITE) -> None:
        self.lines.append((message, color))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests.

    Uses ignore_cleanup_errors=True to handle Windows file lock issues
    with log files that are still open.
    """
    with tempfile.TemporaryDirectory(ignore_cleanup_errors=True) as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def recording_console() -> RecordingConsole:
    return RecordingConsole()


@pytest.fixture
def diagnostics(
    temp_dir: Path,
    presenter: RecordingPresenter,
    recording_console: RecordingConsole,
) -> Generator[Diagnostics, None, None]:
    """Create an initialized diagnostics service writing into temp_dir."""
    service = Diagnostics(temp_dir, presenter=presenter, console=recording_console)
    service.init()
    yield service
    if service.state is not DiagnosticsState.RELEASED:
        service.release()


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create test settings pointing at the temporary directory."""
    return Settings(data_dir=temp_dir, console_echo=False)


@pytest.fixture(autouse=True)
def reset_globals(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from the cached settings and the process-wide service."""
    for name in list(config.Settings.model_fields):
        monkeypatch.delenv(f"{config.ENV_PREFIX}{name.upper()}", raising=False)
    monkeypatch.setattr(config, "_settings_cache", None)
    monkeypatch.setattr(diagnostics_module, "_diagnostics", None)
    monkeypatch.setattr(diagnostics_module, "_atexit_registered", True)
    yield
    if diagnostics_module._diagnostics is not None:
        diagnostics_module._diagnostics.release()
