"""Tests for job manifest files and vault locations."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from iceberg.core import manifest as manifest_module
from iceberg.core.manifest import manifest_filename, read_manifest, write_manifest
from iceberg.errors import ArchiveIOError, ConfigError, NotFoundError, ParseError
from iceberg.models.jobs import VaultLocation
from iceberg.models.retrieval import JobManifest, JobStatus, RetrievalJob


class TestVaultLocation:
    def test_from_jobs_file(self, tmp_dir: Path):
        location = VaultLocation.from_jobs_file(tmp_dir / "eu-west-1" / "docs" / "jobs.csv")
        assert location == VaultLocation(region="eu-west-1", vault="docs")
        assert str(location) == "eu-west-1/docs"

    def test_root_level_file_cannot_be_resolved(self):
        with pytest.raises(ConfigError):
            VaultLocation.from_jobs_file(Path("/jobs.csv"))

    def test_manifest_dir(self, tmp_dir: Path):
        location = VaultLocation(region="eu-west-1", vault="docs")
        assert location.manifest_dir(tmp_dir) == tmp_dir / "eu-west-1" / "docs"


class TestManifestFiles:
    def test_written_under_region_and_vault(self, tmp_dir: Path):
        location = VaultLocation(region="eu-west-1", vault="docs")
        manifest = JobManifest(
            location=location,
            jobs=[
                RetrievalJob(job_id="j1", archive_id="a1", filename="a.zip"),
                RetrievalJob(archive_id="a2", filename="b.zip", status=JobStatus.FAILED, error="denied, try later"),
            ],
        )
        path = write_manifest(manifest, tmp_dir, filename="jobs.csv")
        assert path == tmp_dir / "eu-west-1" / "docs" / "jobs.csv"
        assert read_manifest(path) == manifest

    def test_legacy_two_column_lines(self, tmp_dir: Path):
        path = tmp_dir / "r" / "v" / "jobs.txt"
        path.parent.mkdir(parents=True)
        path.write_text("# requested yesterday\njob-1,a.zip\n\njob-2,b.zip\n")
        manifest = read_manifest(path)
        assert manifest.location == VaultLocation(region="r", vault="v")
        assert [(j.job_id, j.filename) for j in manifest.jobs] == [
            ("job-1", "a.zip"), ("job-2", "b.zip"),
        ]
        assert all(j.status == JobStatus.INITIATED for j in manifest.jobs)

    def test_explicit_location_overrides_path(self, tmp_dir: Path):
        path = tmp_dir / "jobs.csv"
        path.write_text("job-1,a.zip\n")
        location = VaultLocation(region="us-east-1", vault="other")
        assert read_manifest(path, location).location == location

    def test_single_column_line(self, tmp_dir: Path):
        path = tmp_dir / "r" / "v" / "jobs.csv"
        path.parent.mkdir(parents=True)
        path.write_text("job-1\n")
        with pytest.raises(ParseError):
            read_manifest(path)

    def test_unknown_status(self, tmp_dir: Path):
        path = tmp_dir / "r" / "v" / "jobs.csv"
        path.parent.mkdir(parents=True)
        path.write_text("job-1,a.zip,exploded\n")
        with pytest.raises(ParseError):
            read_manifest(path)

    def test_missing_file(self, tmp_dir: Path):
        with pytest.raises(NotFoundError):
            read_manifest(tmp_dir / "r" / "v" / "jobs.csv")


class TestManifestNoOverwrite:
    def _manifest(self, job_id: str) -> JobManifest:
        return JobManifest(
            location=VaultLocation(region="eu-west-1", vault="docs"),
            jobs=[RetrievalJob(job_id=job_id, filename=f"{job_id}.zip")],
        )

    def test_generated_names_have_microseconds(self):
        when = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)
        assert manifest_filename("jobs", when) == "jobs-20240102-030405-678901.csv"

    def test_back_to_back_writes_keep_both(self, tmp_dir: Path):
        first = write_manifest(self._manifest("job-1"), tmp_dir)
        second = write_manifest(self._manifest("job-2"), tmp_dir)
        assert first != second
        assert read_manifest(first).jobs[0].job_id == "job-1"
        assert read_manifest(second).jobs[0].job_id == "job-2"

    def test_taken_generated_name_gets_a_suffix(self, tmp_dir: Path, monkeypatch):
        monkeypatch.setattr(manifest_module, "manifest_filename", lambda prefix="jobs": "jobs-same.csv")
        first = write_manifest(self._manifest("job-1"), tmp_dir)
        second = write_manifest(self._manifest("job-2"), tmp_dir)
        assert first.name == "jobs-same.csv"
        assert second.name == "jobs-same-1.csv"
        assert read_manifest(first).jobs[0].job_id == "job-1"

    def test_explicit_name_is_never_overwritten(self, tmp_dir: Path):
        path = write_manifest(self._manifest("job-1"), tmp_dir, filename="jobs.csv")
        with pytest.raises(ArchiveIOError):
            write_manifest(self._manifest("job-2"), tmp_dir, filename="jobs.csv")
        assert read_manifest(path).jobs[0].job_id == "job-1"
