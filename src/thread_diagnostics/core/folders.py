"""Diagnostics folder lifecycle.

Each process run writes its per-thread logs into a fresh folder named
after the wall-clock time it started, e.g. ``Diagnostics-14h3m27s``.
Folders left behind by earlier runs are removed at startup once they are
older than the retention window.

Usage:
    from thread_diagnostics.core.folders import prepare_diagnostics_folder

    folder = prepare_diagnostics_folder(base_dir, retention=timedelta(days=1))
"""

import datetime
import shutil
from dataclasses import dataclass
from pathlib import Path

from thread_diagnostics.core.exceptions import FolderCreationError
from thread_diagnostics.core.logging import get_logger
from thread_diagnostics.core.paths import generate_unique_path

logger = get_logger(__name__)

DEFAULT_FOLDER_PREFIX = "Diagnostics"
DEFAULT_RETENTION = datetime.timedelta(days=1)
MAX_CREATE_ATTEMPTS = 100


@dataclass
class FolderInfo:
    """A diagnostics folder found on disk."""

    path: Path
    created: datetime.datetime
    file_count: int
    size_bytes: int

    @property
    def name(self) -> str:
        return self.path.name

    def age(self, now: datetime.datetime | None = None) -> datetime.timedelta:
        """Time elapsed since the folder was created."""
        now = now or datetime.datetime.now()
        return now - self.created


def get_creation_time(path: Path) -> datetime.datetime:
    """Get the creation time of a filesystem entry.

    Uses ``st_birthtime`` where the platform reports it and falls back to
    the modification time elsewhere (most Linux filesystems).
    """
    stat = path.stat()
    timestamp = getattr(stat, "st_birthtime", None)
    if timestamp is None:
        timestamp = stat.st_mtime
    return datetime.datetime.fromtimestamp(timestamp)


def iter_diagnostics_folders(base: Path, prefix: str = DEFAULT_FOLDER_PREFIX) -> list[Path]:
    """List the immediate subdirectories of ``base`` named ``<prefix>-*``.

    Returns:
        Matching directories sorted by name. Empty if ``base`` is missing.
    """
    if not base.is_dir():
        return []
    return sorted(path for path in base.glob(f"{prefix}-*") if path.is_dir())


def sweep_expired_folders(
    base: Path,
    retention: datetime.timedelta = DEFAULT_RETENTION,
    now: datetime.datetime | None = None,
    prefix: str = DEFAULT_FOLDER_PREFIX,
    dry_run: bool = False,
) -> list[Path]:
    """Delete diagnostics folders older than the retention window.

    Deletion is best effort: a folder that cannot be removed (locked files,
    missing permissions) is logged and skipped.

    Args:
        base: Directory holding the diagnostics folders.
        retention: Maximum age of a folder that is kept.
        now: Reference time, defaults to the current time.
        prefix: Folder name prefix.
        dry_run: Report what would be removed without deleting anything.

    Returns:
        Folders that were removed (or would be, with ``dry_run``).
    """
    now = now or datetime.datetime.now()
    expiration_date = now - retention
    removed: list[Path] = []

    for directory in iter_diagnostics_folders(base, prefix):
        try:
            created = get_creation_time(directory)
        except OSError as e:
            logger.warning("Could not stat diagnostics folder", path=str(directory), error=str(e))
            continue

        if created >= expiration_date:
            continue

        if dry_run:
            removed.append(directory)
            continue

        try:
            shutil.rmtree(directory)
        except OSError as e:
            logger.warning(
                "Could not delete expired diagnostics folder",
                path=str(directory),
                error=str(e),
            )
            continue

        logger.debug("Deleted expired diagnostics folder", path=str(directory))
        removed.append(directory)

    return removed


def build_folder_name(
    now: datetime.datetime | None = None,
    prefix: str = DEFAULT_FOLDER_PREFIX,
) -> str:
    """Build the folder name for a run started at ``now``."""
    now = now or datetime.datetime.now()
    return f"{prefix}-{now.hour}h{now.minute}m{now.second}s"


def create_diagnostics_folder(
    base: Path,
    now: datetime.datetime | None = None,
    prefix: str = DEFAULT_FOLDER_PREFIX,
) -> Path:
    """Create the uniquely named diagnostics folder for this run.

    Several processes may start within the same second and pick the same
    name. Whoever loses the ``mkdir`` race moves on to the next free name.

    Raises:
        FolderCreationError: If the folder cannot be created.
    """
    try:
        base.mkdir(parents=True, exist_ok=True)
        desired = base / build_folder_name(now, prefix)
        for _ in range(MAX_CREATE_ATTEMPTS):
            path = generate_unique_path(desired, keep_extension=False)
            try:
                path.mkdir()
                break
            except FileExistsError:
                logger.debug("Diagnostics folder name taken, retrying", path=str(path))
        else:
            raise FolderCreationError(
                f"Could not find a free diagnostics folder name in {base} "
                f"after {MAX_CREATE_ATTEMPTS} attempts"
            )
    except OSError as e:
        raise FolderCreationError(f"Could not create diagnostics folder in {base}: {e}") from e

    logger.debug("Created diagnostics folder", path=str(path))
    return path


def prepare_diagnostics_folder(
    base: Path,
    retention: datetime.timedelta = DEFAULT_RETENTION,
    now: datetime.datetime | None = None,
    prefix: str = DEFAULT_FOLDER_PREFIX,
) -> Path:
    """Sweep expired folders, then create the folder for this run.

    Returns:
        Absolute path of the new diagnostics folder.
    """
    now = now or datetime.datetime.now()
    removed = sweep_expired_folders(base, retention, now=now, prefix=prefix)
    if removed:
        logger.info("Removed expired diagnostics folders", count=len(removed))
    return create_diagnostics_folder(base, now=now, prefix=prefix).resolve()


def describe_folder(path: Path) -> FolderInfo:
    """Collect creation time, file count and size of a diagnostics folder."""
    file_count = 0
    size_bytes = 0
    for entry in path.rglob("*"):
        if entry.is_file():
            file_count += 1
            size_bytes += entry.stat().st_size
    return FolderInfo(
        path=path,
        created=get_creation_time(path),
        file_count=file_count,
        size_bytes=size_bytes,
    )


def list_diagnostics_folders(
    base: Path,
    prefix: str = DEFAULT_FOLDER_PREFIX,
) -> list[FolderInfo]:
    """Describe every diagnostics folder under ``base``, oldest first."""
    folders = [describe_folder(path) for path in iter_diagnostics_folders(base, prefix)]
    return sorted(folders, key=lambda info: info.created)
