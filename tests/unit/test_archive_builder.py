"""Tests for the ArchiveBuilder — full and incremental containers."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from iceberg.core.archive_builder import ArchiveBuilder, create_archive
from iceberg.core.container import SNAPSHOT_ENTRY, list_entries, read_snapshot
from iceberg.core.snapshot_store import SnapshotStore
from iceberg.errors import ConfigError, NotFoundError


def _archived(path: Path) -> set[str]:
    return {
        entry.partition("/")[2]
        for entry in list_entries(path)
        if entry != SNAPSHOT_ENTRY
    }


class TestCreateArchive:
    def test_first_run_is_full(self, make_tree, tmp_dir: Path):
        root = make_tree({"a": "x", "b": "y"})
        artifact = create_archive(
            root, "", None, job_name="docs", work_folder=tmp_dir / "work"
        )
        assert artifact.is_full
        assert artifact.added == ("a", "b")
        assert _archived(artifact.path) == {"a", "b"}
        assert read_snapshot(artifact.path) == artifact.snapshot
        assert artifact.file_count == 2

    def test_incremental_archives_only_changes(self, make_tree, tmp_dir: Path):
        root = make_tree({"a": "x", "b": "y", "c": "z"})
        first = create_archive(
            root, "", None, job_name="docs", work_folder=tmp_dir / "work",
            now=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        (root / "b").write_text("changed")
        (root / "c").unlink()
        (root / "d").write_text("new")

        artifact = create_archive(
            root, "", first.snapshot, job_name="docs", work_folder=tmp_dir / "work",
            now=datetime(2024, 1, 2, tzinfo=timezone.utc),
        )
        assert not artifact.is_full
        assert artifact.added == ("d",)
        assert artifact.modified == ("b",)
        assert artifact.removed == ("c",)
        assert _archived(artifact.path) == {"b", "d"}
        assert artifact.snapshot.paths == {"a", "b", "d"}

    def test_touched_file_is_rearchived(self, make_tree, tmp_dir: Path):
        root = make_tree({"a": "x"})
        first = create_archive(root, "", None, job_name="j", work_folder=tmp_dir)
        stat = (root / "a").stat()
        os.utime(root / "a", ns=(stat.st_atime_ns, stat.st_mtime_ns + 5_000_000_000))
        artifact = create_archive(
            root, "", first.snapshot, job_name="j", work_folder=tmp_dir,
            now=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )
        assert artifact.modified == ("a",)

    def test_checksum_mode_ignores_touch(self, make_tree, tmp_dir: Path):
        root = make_tree({"a": "x"})
        first = create_archive(
            root, "", None, job_name="j", work_folder=tmp_dir, compare_checksums=True
        )
        stat = (root / "a").stat()
        os.utime(root / "a", ns=(stat.st_atime_ns, stat.st_mtime_ns + 5_000_000_000))
        artifact = create_archive(
            root, "", first.snapshot, job_name="j", work_folder=tmp_dir,
            compare_checksums=True, now=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )
        assert artifact.modified == ()

    def test_no_changes_still_writes_snapshot(self, make_tree, tmp_dir: Path):
        root = make_tree({"a": "x"})
        first = create_archive(root, "", None, job_name="j", work_folder=tmp_dir)
        artifact = create_archive(
            root, "", first.snapshot, job_name="j", work_folder=tmp_dir,
            now=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )
        assert list_entries(artifact.path) == [SNAPSHOT_ENTRY]
        assert read_snapshot(artifact.path) == first.snapshot

    def test_excluded_files_are_neither_archived_nor_recorded(self, make_tree, tmp_dir: Path):
        root = make_tree({"a": "x", "b.tmp": "y"})
        artifact = create_archive(
            root, r"\.tmp$", None, job_name="j", work_folder=tmp_dir
        )
        assert _archived(artifact.path) == {"a"}
        assert "b.tmp" not in artifact.snapshot

    def test_invalid_pattern(self, make_tree, tmp_dir: Path):
        root = make_tree({"a": "x"})
        with pytest.raises(ConfigError):
            create_archive(root, "(", None, job_name="j", work_folder=tmp_dir)

    def test_missing_source(self, tmp_dir: Path):
        with pytest.raises(NotFoundError):
            create_archive(tmp_dir / "nope", "", None, job_name="j", work_folder=tmp_dir)

    def test_relative_dot_source_is_archived_under_its_name(self, make_tree, tmp_dir: Path, monkeypatch):
        root = make_tree({"a.txt": "x", "sub/b.txt": "y"})
        monkeypatch.chdir(root)
        artifact = create_archive(
            Path("."), "", None, job_name="j", work_folder=tmp_dir / "work"
        )
        assert sorted(list_entries(artifact.path)) == [
            SNAPSHOT_ENTRY, f"{root.name}/a.txt", f"{root.name}/sub/b.txt",
        ]

    def test_filesystem_root_is_rejected(self, tmp_dir: Path):
        with pytest.raises(ConfigError):
            create_archive(Path("/"), "", None, job_name="j", work_folder=tmp_dir)


class TestArchiveBuilder:
    def test_build_advances_baseline(self, make_tree, make_job, snapshot_store: SnapshotStore, clock):
        root = make_tree({"a": "x"})
        job = make_job(root)
        builder = ArchiveBuilder(snapshot_store, clock=clock)

        assert snapshot_store.load(job.name) is None
        first = builder.build(job)
        assert first.is_full
        assert snapshot_store.load(job.name) == read_snapshot(first.path)

        (root / "b").write_text("y")
        second = builder.build(job)
        assert second.added == ("b",)
        assert first.name < second.name
        assert first.path.parent == snapshot_store.job_folder(job.name)

    def test_preview_writes_nothing(self, make_tree, make_job, snapshot_store: SnapshotStore):
        root = make_tree({"a": "x"})
        job = make_job(root)
        changes = ArchiveBuilder(snapshot_store).preview(job)
        assert changes.added == ("a",)
        assert not snapshot_store.job_folder(job.name).exists()
