"""Path helpers for locating and naming diagnostics files.

Provides the user data directory where diagnostics folders live and a
generator of collision-free paths.
"""

from pathlib import Path

import platformdirs

DEFAULT_APP_NAME = "thread-diagnostics"


def get_user_data_folder_path(app_name: str = DEFAULT_APP_NAME) -> Path:
    """Get the system-appropriate user data directory.

    The directory is created if it does not exist.

    Args:
        app_name: Application name used as the directory name.

    Returns:
        Path to the user data directory:
        - Windows: %LOCALAPPDATA%/<app_name>
        - macOS: ~/Library/Application Support/<app_name>
        - Linux: ~/.local/share/<app_name>
    """
    path = Path(platformdirs.user_data_dir(app_name, appauthor=False))
    path.mkdir(parents=True, exist_ok=True)
    return path


def generate_unique_path(
    path: Path | str,
    separator: str = "-",
    keep_extension: bool = True,
) -> Path:
    """Return a path that does not collide with an existing filesystem entry.

    If ``path`` is free it is returned unchanged. Otherwise a numeric
    suffix starting at 2 is added until an unused name is found. For files
    the counter goes before the extension, e.g. ``Application (12)-2.log``.
    With ``keep_extension=False`` it is appended to the full name, which
    suits directories such as ``my.app-9h5m2s-2``.

    Args:
        path: Desired path.
        separator: Text placed between the name and the counter.
        keep_extension: Whether the counter goes before the extension.

    Returns:
        A path that did not exist at the time of the check.
    """
    path = Path(path)
    if not path.exists():
        return path

    parent = path.parent
    if keep_extension:
        stem, suffix = path.stem, path.suffix
    else:
        stem, suffix = path.name, ""
    index = 2
    while True:
        candidate = parent / f"{stem}{separator}{index}{suffix}"
        if not candidate.exists():
            return candidate
        index += 1
