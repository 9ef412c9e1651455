"""Cleanup command for removing old diagnostics folders.

Applies the same expiry rule that runs at startup, on demand.
"""

import datetime
import shutil
from pathlib import Path

import typer

from thread_diagnostics.cli.utils import (
    console,
    print_info,
    print_success,
    print_warning,
    resolve_data_dir,
)
from thread_diagnostics.config import get_settings
from thread_diagnostics.core.folders import iter_diagnostics_folders, sweep_expired_folders

app = typer.Typer(help="Cleanup commands")


def _remove_directory(path: Path) -> bool:
    """Remove a diagnostics folder.

    Returns:
        True if the folder was removed.
    """
    try:
        shutil.rmtree(path, ignore_errors=False)
    except OSError:
        # On Windows, log files may still be open in a running process
        console.print(f"  [dim]Skipped:[/dim] {path.name} (files in use)")
        return False
    console.print(f"  [dim]Removed:[/dim] {path.name}")
    return True


@app.command()  # type: ignore[untyped-decorator]
def clean(
    retention_hours: float | None = typer.Option(
        None,
        "--retention-hours",
        "-r",
        min=0.0,
        help="Keep folders younger than this. Defaults to the configured retention.",
    ),
    all_clean: bool = typer.Option(False, "--all", "-a", help="Remove every diagnostics folder."),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Only list what would be removed."),
    data_dir: Path | None = typer.Option(
        None, "--data-dir", "-d", help="Directory holding diagnostics folders."
    ),
) -> None:
    """Clean expired diagnostics folders.

    Examples:
        thread-diagnostics clean                      # Configured retention
        thread-diagnostics clean --retention-hours 1  # Older than an hour
        thread-diagnostics clean --all --dry-run      # Preview removing all
    """
    settings = get_settings()
    base = resolve_data_dir(data_dir, settings)

    if all_clean:
        print_warning(f"Cleaning all diagnostics folders in {base}...")
        candidates = iter_diagnostics_folders(base, settings.folder_prefix)
    else:
        retention = (
            datetime.timedelta(hours=retention_hours)
            if retention_hours is not None
            else settings.retention
        )
        print_info(f"Cleaning diagnostics folders older than {retention} in {base}...")
        candidates = sweep_expired_folders(
            base, retention, prefix=settings.folder_prefix, dry_run=True
        )
    console.print()

    if dry_run:
        for path in candidates:
            console.print(f"  [dim]Would remove:[/dim] {path.name}")
        console.print()
        print_info(f"{len(candidates)} folders would be removed.")
        return

    removed_count = sum(1 for path in candidates if _remove_directory(path))

    console.print()
    if removed_count > 0:
        print_success(f"Cleaned {removed_count} folders.")
    else:
        print_info("Nothing to clean.")
