"""Shared test fixtures for iceberg."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from iceberg.config import IcebergSettings
from iceberg.core.snapshot_store import SnapshotStore
from iceberg.errors import ServiceError
from iceberg.models.jobs import JobConfig


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def settings(tmp_dir: Path) -> IcebergSettings:
    """Provide settings whose folders all live in the temp directory."""
    return IcebergSettings(
        work_folder=tmp_dir / "work",
        jobs_folder=tmp_dir / "jobs",
        retrievals_folder=tmp_dir / "retrievals",
    )


@pytest.fixture
def snapshot_store(tmp_dir: Path) -> SnapshotStore:
    """Provide a fresh SnapshotStore in a temp directory."""
    return SnapshotStore(tmp_dir / "work")


# ---------------------------------------------------------------------------
# Source tree and job factories
# ---------------------------------------------------------------------------


def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create ``files`` (relative path → content) under ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
    return root


def read_tree(root: Path) -> dict[str, str]:
    """Return every file under ``root`` as relative POSIX path → text."""
    return {
        path.relative_to(root).as_posix(): path.read_text(encoding="utf-8")
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def make_tree(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: build a source tree under the temp directory."""

    def _factory(files: dict[str, str | bytes], name: str = "source") -> Path:
        return write_tree(tmp_dir / name, files)

    return _factory


@pytest.fixture
def make_job() -> Callable[..., JobConfig]:
    """Factory fixture: build a JobConfig with sensible defaults."""

    def _factory(source_folder: Path, name: str = "docs", **overrides: Any) -> JobConfig:
        defaults: dict[str, Any] = {
            "name": name,
            "source_folder": source_folder,
            "region": "eu-west-1",
            "vault": "docs-vault",
        }
        defaults.update(overrides)
        return JobConfig(**defaults)

    return _factory


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """A clock that advances one minute per call, for distinct container names."""
    state = {"now": datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)}

    def _tick() -> datetime:
        state["now"] += timedelta(minutes=1)
        return state["now"]

    return _tick


# ---------------------------------------------------------------------------
# In-memory cold storage
# ---------------------------------------------------------------------------


class FakeColdStorageClient:
    """In-memory stand-in for the Glacier client.

    Records every call.  Archive ids listed in ``failing_archives`` make
    ``initiate_retrieval_job`` raise; jobs stay in progress until
    :meth:`complete` or :meth:`fail` is called.
    """

    def __init__(self) -> None:
        self.uploads: list[dict[str, Any]] = []
        self.jobs: dict[str, dict[str, Any]] = {}
        self.failing_archives: set[str] = set()
        self._counter = 0

    def _next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter:03d}"

    def upload_archive(self, region: str, vault: str, name: str, file_path: Path) -> str:
        archive_id = self._next("archive")
        self.uploads.append({
            "region": region,
            "vault": vault,
            "name": name,
            "data": Path(file_path).read_bytes(),
            "archive_id": archive_id,
        })
        return archive_id

    def _new_job(self, region: str, vault: str, archive_id: str) -> str:
        job_id = self._next("job")
        self.jobs[job_id] = {
            "region": region,
            "vault": vault,
            "archive_id": archive_id,
            "completed": False,
            "status": "InProgress",
            "payload": b"",
        }
        return job_id

    def initiate_retrieval_job(self, region: str, vault: str, archive_id: str) -> str:
        if archive_id in self.failing_archives:
            raise ServiceError(f"ResourceNotFoundException: archive {archive_id}")
        return self._new_job(region, vault, archive_id)

    def initiate_inventory_job(self, region: str, vault: str) -> str:
        return self._new_job(region, vault, "")

    def complete(self, job_id: str, payload: bytes) -> None:
        self.jobs[job_id].update(completed=True, status="Succeeded", payload=payload)

    def fail(self, job_id: str, message: str = "archive unavailable") -> None:
        self.jobs[job_id].update(completed=True, status="Failed", message=message)

    def describe_job(self, region: str, vault: str, job_id: str) -> dict[str, Any]:
        job = self.jobs[job_id]
        return {
            "JobId": job_id,
            "Completed": job["completed"],
            "StatusCode": job["status"],
            "StatusMessage": job.get("message", ""),
        }

    def download_job(self, region: str, vault: str, job_id: str, dest: Path) -> int:
        payload = self.jobs[job_id]["payload"]
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(payload)
        return len(payload)


@pytest.fixture
def cold_storage() -> FakeColdStorageClient:
    """Provide an empty in-memory cold storage."""
    return FakeColdStorageClient()
