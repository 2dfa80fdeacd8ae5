"""Tests for snapshot reconciliation — deleting files the snapshot dropped."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from iceberg.core.reconciler import restore_snapshot
from iceberg.errors import ArchiveIOError, NotFoundError
from iceberg.models.snapshot import FileState, Snapshot


def _snap(*paths: str) -> Snapshot:
    return Snapshot(files={p: FileState(mtime=0, size=0) for p in paths})


class TestRestoreSnapshot:
    def test_removes_files_not_in_snapshot(self, make_tree):
        root = make_tree({"a": "1", "b": "2", "sub/c": "3"})
        removed = restore_snapshot(_snap("a", "sub/c"), root)
        assert removed == ["b"]
        assert (root / "a").exists()
        assert (root / "sub" / "c").exists()
        assert not (root / "b").exists()

    def test_prunes_emptied_directories(self, make_tree):
        root = make_tree({"a": "1", "old/deep/x": "2"})
        removed = restore_snapshot(_snap("a"), root)
        assert removed == ["old/deep/x"]
        assert not (root / "old").exists()
        assert root.is_dir()

    def test_keeps_root_when_everything_is_removed(self, make_tree):
        root = make_tree({"a": "1"})
        restore_snapshot(_snap(), root)
        assert root.is_dir()
        assert list(root.iterdir()) == []

    def test_second_run_is_a_no_op(self, make_tree):
        root = make_tree({"a": "1", "b": "2"})
        restore_snapshot(_snap("a"), root)
        assert restore_snapshot(_snap("a"), root) == []
        assert (root / "a").read_text() == "1"

    def test_does_not_touch_listed_content(self, make_tree):
        root = make_tree({"a": "payload"})
        restore_snapshot(_snap("a"), root)
        assert (root / "a").read_text() == "payload"

    def test_missing_target_raises_not_found(self, tmp_dir: Path):
        with pytest.raises(NotFoundError):
            restore_snapshot(_snap("a"), tmp_dir / "missing")


class TestRestoreSnapshotErrors:
    """Deletion is best-effort: the first failure is raised, earlier deletions stay."""

    def test_failed_deletion_raises_and_keeps_earlier_deletions(self, make_tree, monkeypatch):
        root = make_tree({"keep": "0", "a": "1", "b": "2", "c": "3"})
        real_unlink = Path.unlink

        def failing_unlink(self, *args, **kwargs):
            if self.name == "b":
                raise PermissionError(13, "Permission denied", str(self))
            return real_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", failing_unlink)
        with pytest.raises(ArchiveIOError, match="Cannot delete"):
            restore_snapshot(_snap("keep"), root)

        assert not (root / "a").exists()
        assert (root / "b").exists()
        assert (root / "keep").exists()

    def test_unreadable_directory_raises_archive_io_error(self, make_tree, monkeypatch):
        root = make_tree({"a": "1"})

        def failing_walk(top, topdown=True, onerror=None, followlinks=False):
            onerror(PermissionError(13, "Permission denied", str(top)))
            return iter(())

        monkeypatch.setattr(os, "walk", failing_walk)
        with pytest.raises(ArchiveIOError, match="Permission denied"):
            restore_snapshot(_snap(), root)
        assert (root / "a").exists()
