"""Unit tests for the diagnostics folder lifecycle."""

import datetime
import os
from pathlib import Path

import pytest

from thread_diagnostics.core import folders
from thread_diagnostics.core.exceptions import FolderCreationError
from thread_diagnostics.core.folders import (
    build_folder_name,
    create_diagnostics_folder,
    get_creation_time,
    iter_diagnostics_folders,
    list_diagnostics_folders,
    prepare_diagnostics_folder,
    sweep_expired_folders,
)
from thread_diagnostics.core.paths import generate_unique_path

NOW = datetime.datetime(2026, 3, 14, 15, 9, 26)


@pytest.fixture
def fake_creation_times(monkeypatch: pytest.MonkeyPatch) -> dict[str, datetime.datetime]:
    """Control folder creation times by folder name."""
    times: dict[str, datetime.datetime] = {}

    def get_time(path: Path) -> datetime.datetime:
        return times.get(path.name, NOW)

    monkeypatch.setattr(folders, "get_creation_time", get_time)
    return times


class TestBuildFolderName:
    """Tests for diagnostics folder naming."""

    def test_name_embeds_time_without_padding(self) -> None:
        now = datetime.datetime(2026, 1, 2, 9, 5, 7)
        assert build_folder_name(now) == "Diagnostics-9h5m7s"

    def test_custom_prefix(self) -> None:
        assert build_folder_name(NOW, prefix="Trace") == "Trace-15h9m26s"


class TestSweepExpiredFolders:
    """Tests for deleting old diagnostics folders."""

    def test_folder_older_than_retention_is_deleted(
        self, temp_dir: Path, fake_creation_times: dict[str, datetime.datetime]
    ) -> None:
        old = temp_dir / "Diagnostics-1h0m0s"
        old.mkdir()
        (old / "Application (1).log").write_text("line\n")
        fake_creation_times[old.name] = NOW - datetime.timedelta(hours=25)

        removed = sweep_expired_folders(temp_dir, now=NOW)

        assert removed == [old]
        assert not old.exists()

    def test_folder_within_retention_is_kept(
        self, temp_dir: Path, fake_creation_times: dict[str, datetime.datetime]
    ) -> None:
        recent = temp_dir / "Diagnostics-2h0m0s"
        recent.mkdir()
        fake_creation_times[recent.name] = NOW - datetime.timedelta(hours=23)

        removed = sweep_expired_folders(temp_dir, now=NOW)

        assert removed == []
        assert recent.exists()

    def test_only_matching_directories_are_considered(
        self, temp_dir: Path, fake_creation_times: dict[str, datetime.datetime]
    ) -> None:
        other = temp_dir / "Settings"
        other.mkdir()
        stray_file = temp_dir / "Diagnostics-notes.txt"
        stray_file.write_text("keep me")
        old = NOW - datetime.timedelta(days=3)
        fake_creation_times[other.name] = old
        fake_creation_times[stray_file.name] = old

        assert sweep_expired_folders(temp_dir, now=NOW) == []
        assert other.exists()
        assert stray_file.exists()

    def test_custom_retention(
        self, temp_dir: Path, fake_creation_times: dict[str, datetime.datetime]
    ) -> None:
        folder = temp_dir / "Diagnostics-3h0m0s"
        folder.mkdir()
        fake_creation_times[folder.name] = NOW - datetime.timedelta(hours=2)

        removed = sweep_expired_folders(temp_dir, datetime.timedelta(hours=1), now=NOW)

        assert removed == [folder]

    def test_dry_run_keeps_folders(
        self, temp_dir: Path, fake_creation_times: dict[str, datetime.datetime]
    ) -> None:
        folder = temp_dir / "Diagnostics-4h0m0s"
        folder.mkdir()
        fake_creation_times[folder.name] = NOW - datetime.timedelta(days=2)

        removed = sweep_expired_folders(temp_dir, now=NOW, dry_run=True)

        assert removed == [folder]
        assert folder.exists()

    def test_deletion_failure_does_not_stop_sweep(
        self,
        temp_dir: Path,
        fake_creation_times: dict[str, datetime.datetime],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        locked = temp_dir / "Diagnostics-5h0m0s"
        other = temp_dir / "Diagnostics-6h0m0s"
        for folder in (locked, other):
            folder.mkdir()
            fake_creation_times[folder.name] = NOW - datetime.timedelta(days=2)

        real_rmtree = folders.shutil.rmtree

        def flaky_rmtree(path: Path, *args, **kwargs) -> None:
            if Path(path).name == locked.name:
                raise PermissionError("in use")
            real_rmtree(path, *args, **kwargs)

        monkeypatch.setattr(folders.shutil, "rmtree", flaky_rmtree)

        removed = sweep_expired_folders(temp_dir, now=NOW)

        assert removed == [other]
        assert locked.exists()
        assert not other.exists()

    def test_missing_base_directory(self, temp_dir: Path) -> None:
        assert sweep_expired_folders(temp_dir / "missing", now=NOW) == []


class TestCreateDiagnosticsFolder:
    """Tests for creating this run's folder."""

    def test_creates_named_folder(self, temp_dir: Path) -> None:
        path = create_diagnostics_folder(temp_dir, now=NOW)

        assert path == temp_dir / "Diagnostics-15h9m26s"
        assert path.is_dir()

    def test_colliding_name_gets_suffix(self, temp_dir: Path) -> None:
        existing = temp_dir / "Diagnostics-15h9m26s"
        existing.mkdir()

        first = create_diagnostics_folder(temp_dir, now=NOW)
        second = create_diagnostics_folder(temp_dir, now=NOW)

        assert first == temp_dir / "Diagnostics-15h9m26s-2"
        assert second == temp_dir / "Diagnostics-15h9m26s-3"
        assert len({existing, first, second}) == 3

    def test_creates_missing_base(self, temp_dir: Path) -> None:
        path = create_diagnostics_folder(temp_dir / "nested" / "data", now=NOW)
        assert path.is_dir()

    def test_failure_raises_folder_creation_error(self, temp_dir: Path) -> None:
        blocker = temp_dir / "not-a-directory"
        blocker.write_text("")

        with pytest.raises(FolderCreationError):
            create_diagnostics_folder(blocker, now=NOW)

    def test_name_taken_between_check_and_mkdir_moves_on(
        self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        taken = temp_dir / "Diagnostics-15h9m26s"
        original = folders.generate_unique_path

        def racing_unique_path(path: Path, *args, **kwargs) -> Path:
            chosen = original(path, *args, **kwargs)
            if chosen == taken:
                # Another process started in the same second
                chosen.mkdir()
            return chosen

        monkeypatch.setattr(folders, "generate_unique_path", racing_unique_path)

        path = create_diagnostics_folder(temp_dir, now=NOW)

        assert path == temp_dir / "Diagnostics-15h9m26s-2"
        assert path.is_dir()

    def test_gives_up_when_every_name_is_taken(
        self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        taken = temp_dir / "Diagnostics-15h9m26s"
        taken.mkdir()
        monkeypatch.setattr(folders, "generate_unique_path", lambda path, **kwargs: taken)

        with pytest.raises(FolderCreationError, match="free diagnostics folder name"):
            create_diagnostics_folder(temp_dir, now=NOW)

    def test_dotted_prefix_collision_keeps_prefix(self, temp_dir: Path) -> None:
        first = create_diagnostics_folder(temp_dir, now=NOW, prefix="my.app")
        second = create_diagnostics_folder(temp_dir, now=NOW, prefix="my.app")

        assert first == temp_dir / "my.app-15h9m26s"
        assert second == temp_dir / "my.app-15h9m26s-2"
        assert iter_diagnostics_folders(temp_dir, "my.app") == [first, second]


class TestPrepareDiagnosticsFolder:
    """Tests for the startup sequence."""

    def test_sweeps_then_creates(
        self, temp_dir: Path, fake_creation_times: dict[str, datetime.datetime]
    ) -> None:
        old = temp_dir / "Diagnostics-15h9m26s"
        old.mkdir()
        fake_creation_times[old.name] = NOW - datetime.timedelta(days=2)

        path = prepare_diagnostics_folder(temp_dir, now=NOW)

        # The expired folder is gone, so the plain name is free again
        assert path == (temp_dir / "Diagnostics-15h9m26s").resolve()
        assert path.is_dir()
        assert path.is_absolute()


class TestFolderInfo:
    """Tests for describing folders on disk."""

    def test_lists_folders_with_file_counts(
        self, temp_dir: Path, fake_creation_times: dict[str, datetime.datetime]
    ) -> None:
        older = temp_dir / "Diagnostics-1h0m0s"
        newer = temp_dir / "Diagnostics-2h0m0s"
        older.mkdir()
        newer.mkdir()
        (newer / "Application (1).log").write_bytes(b"abc\n")
        (newer / "Worker (2).log").write_bytes(b"de\n")
        fake_creation_times[older.name] = NOW - datetime.timedelta(hours=5)
        fake_creation_times[newer.name] = NOW - datetime.timedelta(hours=1)

        infos = list_diagnostics_folders(temp_dir)

        assert [info.name for info in infos] == [older.name, newer.name]
        assert infos[1].file_count == 2
        assert infos[1].size_bytes == 7
        assert infos[0].age(NOW) == datetime.timedelta(hours=5)


@pytest.mark.skipif(
    hasattr(os.stat_result, "st_birthtime"),
    reason="creation time cannot be set where the platform reports birth time",
)
def test_creation_time_falls_back_to_mtime(temp_dir: Path) -> None:
    folder = temp_dir / "Diagnostics-7h0m0s"
    folder.mkdir()
    stamp = (NOW - datetime.timedelta(hours=25)).timestamp()
    os.utime(folder, (stamp, stamp))

    assert get_creation_time(folder) == datetime.datetime.fromtimestamp(stamp)
    assert sweep_expired_folders(temp_dir, now=NOW) == [folder]


class TestGenerateUniquePath:
    """Tests for collision-free path generation."""

    def test_free_path_is_unchanged(self, temp_dir: Path) -> None:
        assert generate_unique_path(temp_dir / "free.log") == temp_dir / "free.log"

    def test_suffix_goes_before_extension(self, temp_dir: Path) -> None:
        (temp_dir / "Application (5).log").write_text("")

        path = generate_unique_path(temp_dir / "Application (5).log")

        assert path == temp_dir / "Application (5)-2.log"
        assert not path.exists()

    def test_directory_counter_goes_after_full_name(self, temp_dir: Path) -> None:
        (temp_dir / "my.app-9h5m2s").mkdir()

        path = generate_unique_path(temp_dir / "my.app-9h5m2s", keep_extension=False)

        assert path == temp_dir / "my.app-9h5m2s-2"
