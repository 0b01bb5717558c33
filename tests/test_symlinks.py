from __future__ import annotations

import os
from pathlib import Path

import pytest

from queuecast.errors import SyncDirNotWritable, SyncUnexpectedEntry
from queuecast.models import SyncOutcome
from queuecast.symlinks import link_name_for, remove_links, sync_link

PROGRAM_ID = "3fa9c2e1"


@pytest.fixture
def episodes(tmp_path: Path) -> list[Path]:
    show = tmp_path / "Show"
    show.mkdir()
    paths = []
    for number in range(1, 4):
        path = show / f"Show.S01E0{number}.mkv"
        path.write_bytes(b"")
        paths.append(path.resolve())
    return paths


@pytest.fixture
def symlink_dir(tmp_path: Path) -> Path:
    path = tmp_path / "links"
    path.mkdir()
    return path.resolve()


class MutationCounter:
    """Counts calls to the os functions that change directory entries."""

    def __init__(self, monkeypatch: pytest.MonkeyPatch) -> None:
        self.calls: list[str] = []
        for name in ("symlink", "replace", "rename", "unlink", "remove"):
            original = getattr(os, name)
            monkeypatch.setattr(os, name, self._wrap(name, original))

    def _wrap(self, name, original):
        def wrapper(*args, **kwargs):
            self.calls.append(name)
            return original(*args, **kwargs)

        return wrapper


def test_link_name_is_derived_from_program_id() -> None:
    """Test link name is derived from program ID."""
    assert link_name_for(PROGRAM_ID, Path("/shows/Some Show/S01E01.MKV")) == "3fa9c2e1.mkv"


class TestSyncLink:
    """Tests for sync link."""

    def test_creates_missing_link(self, episodes: list[Path], symlink_dir: Path) -> None:
        """Test creates missing link."""
        result = sync_link(PROGRAM_ID, episodes[0], symlink_dir)

        link = symlink_dir / "3fa9c2e1.mkv"
        assert result.outcome is SyncOutcome.CREATED
        assert result.link_path == link
        assert link.is_symlink()
        assert Path(os.readlink(link)) == episodes[0]

    def test_correct_link_is_left_alone(
        self, episodes: list[Path], symlink_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test correct link is left alone."""
        sync_link(PROGRAM_ID, episodes[0], symlink_dir)
        link = symlink_dir / "3fa9c2e1.mkv"
        before = link.lstat()

        counter = MutationCounter(monkeypatch)
        result = sync_link(PROGRAM_ID, episodes[0], symlink_dir)

        assert result.outcome is SyncOutcome.UNCHANGED
        assert counter.calls == []
        after = link.lstat()
        assert (after.st_ino, after.st_mtime_ns) == (before.st_ino, before.st_mtime_ns)

    def test_relative_link_to_same_target_counts_as_correct(
        self, episodes: list[Path], symlink_dir: Path
    ) -> None:
        """Test relative link to same target counts as correct."""
        link = symlink_dir / "3fa9c2e1.mkv"
        link.symlink_to(os.path.relpath(episodes[0], symlink_dir))

        result = sync_link(PROGRAM_ID, episodes[0], symlink_dir)

        assert result.outcome is SyncOutcome.UNCHANGED

    def test_replaces_link_pointing_elsewhere(
        self, episodes: list[Path], symlink_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test replaces link pointing elsewhere."""
        sync_link(PROGRAM_ID, episodes[0], symlink_dir)

        counter = MutationCounter(monkeypatch)
        result = sync_link(PROGRAM_ID, episodes[1], symlink_dir)

        link = symlink_dir / "3fa9c2e1.mkv"
        assert result.outcome is SyncOutcome.UPDATED
        assert Path(os.readlink(link)) == episodes[1]
        # New link is staged under a temporary name and renamed over the old one.
        assert counter.calls == ["symlink", "replace"]
        assert sorted(path.name for path in symlink_dir.iterdir()) == ["3fa9c2e1.mkv"]

    def test_regular_file_is_never_overwritten(self, episodes: list[Path], symlink_dir: Path) -> None:
        """Test regular file is never overwritten."""
        blocker = symlink_dir / "3fa9c2e1.mkv"
        blocker.write_text("user data", encoding="utf-8")

        with pytest.raises(SyncUnexpectedEntry):
            sync_link(PROGRAM_ID, episodes[0], symlink_dir)

        assert not blocker.is_symlink()
        assert blocker.read_text(encoding="utf-8") == "user data"

    def test_directory_in_place_of_link_is_unexpected(self, episodes: list[Path], symlink_dir: Path) -> None:
        """Test directory in place of link is unexpected."""
        (symlink_dir / "3fa9c2e1.mkv").mkdir()
        with pytest.raises(SyncUnexpectedEntry):
            sync_link(PROGRAM_ID, episodes[0], symlink_dir)

    def test_missing_symlink_dir_is_not_writable(self, episodes: list[Path], tmp_path: Path) -> None:
        """Test missing symlink dir is not writable."""
        with pytest.raises(SyncDirNotWritable):
            sync_link(PROGRAM_ID, episodes[0], tmp_path / "missing")

    @pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores permissions")
    def test_read_only_symlink_dir_is_not_writable(self, episodes: list[Path], symlink_dir: Path) -> None:
        """Test read only symlink dir is not writable."""
        symlink_dir.chmod(0o555)
        try:
            with pytest.raises(SyncDirNotWritable):
                sync_link(PROGRAM_ID, episodes[0], symlink_dir)
        finally:
            symlink_dir.chmod(0o755)

    def test_suffix_change_removes_old_link(self, episodes: list[Path], symlink_dir: Path, tmp_path: Path) -> None:
        """Test suffix change removes old link."""
        sync_link(PROGRAM_ID, episodes[0], symlink_dir)
        mp4 = tmp_path / "Show" / "Show.S01E04.mp4"
        mp4.write_bytes(b"")

        result = sync_link(PROGRAM_ID, mp4.resolve(), symlink_dir)

        assert result.outcome is SyncOutcome.CREATED
        assert result.removed == (symlink_dir / "3fa9c2e1.mkv",)
        assert sorted(path.name for path in symlink_dir.iterdir()) == ["3fa9c2e1.mp4"]

    def test_other_programs_links_are_untouched(self, episodes: list[Path], symlink_dir: Path) -> None:
        """Test other programs links are untouched."""
        sync_link("aaaaaaaa", episodes[0], symlink_dir)
        sync_link(PROGRAM_ID, episodes[1], symlink_dir)

        assert sorted(path.name for path in symlink_dir.iterdir()) == ["3fa9c2e1.mkv", "aaaaaaaa.mkv"]


class TestRemoveLinks:
    """Tests for remove links."""

    def test_removes_program_links(self, episodes: list[Path], symlink_dir: Path) -> None:
        """Test removes program links."""
        sync_link(PROGRAM_ID, episodes[0], symlink_dir)

        removed = remove_links(PROGRAM_ID, symlink_dir)

        assert removed == [symlink_dir / "3fa9c2e1.mkv"]
        assert list(symlink_dir.iterdir()) == []

    def test_absent_link_is_not_an_error(self, symlink_dir: Path) -> None:
        """Test absent link is not an error."""
        assert remove_links(PROGRAM_ID, symlink_dir) == []

    def test_missing_directory_is_not_an_error(self, tmp_path: Path) -> None:
        """Test missing directory is not an error."""
        assert remove_links(PROGRAM_ID, tmp_path / "missing") == []

    def test_regular_files_are_kept(self, symlink_dir: Path) -> None:
        """Test regular files are kept."""
        keep = symlink_dir / "3fa9c2e1.mkv"
        keep.write_text("user data", encoding="utf-8")

        assert remove_links(PROGRAM_ID, symlink_dir) == []
        assert keep.exists()

    def test_dangling_links_are_removed(self, symlink_dir: Path, tmp_path: Path) -> None:
        """Test dangling links are removed."""
        (symlink_dir / "3fa9c2e1.mkv").symlink_to(tmp_path / "gone.mkv")

        assert remove_links(PROGRAM_ID, symlink_dir) == [symlink_dir / "3fa9c2e1.mkv"]
