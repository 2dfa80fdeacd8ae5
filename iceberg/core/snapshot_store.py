"""Per-job persistence of the last recorded Snapshot.

Layout: ``{work_folder}/{job_name}/snapshot.json``.  The stored snapshot is
the diff baseline for the next backup run; it is only replaced after that
run's container has been written.
"""

from __future__ import annotations

import logging
from pathlib import Path

from iceberg.core.container import SNAPSHOT_ENTRY, load_snapshot_file
from iceberg.errors import ArchiveIOError
from iceberg.models.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Reads and writes the last snapshot of each job.

    Parameters
    ----------
    work_folder:
        Root of the work area; one subdirectory per job.
    """

    def __init__(self, work_folder: Path) -> None:
        self._base = Path(work_folder)

    def job_folder(self, job_name: str) -> Path:
        """Folder holding a job's containers and last snapshot."""
        return self._base / job_name

    def snapshot_path(self, job_name: str) -> Path:
        return self.job_folder(job_name) / SNAPSHOT_ENTRY

    def load(self, job_name: str) -> Snapshot | None:
        """Return the last snapshot, or ``None`` before the first run."""
        path = self.snapshot_path(job_name)
        if not path.exists():
            logger.info("No previous snapshot for job %s; next archive is a full backup", job_name)
            return None
        return load_snapshot_file(path)

    def save(self, job_name: str, snapshot: Snapshot) -> Path:
        """Persist ``snapshot`` as the job's new baseline."""
        path = self.snapshot_path(job_name)
        partial = path.with_name(path.name + ".partial")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(snapshot.to_json_bytes())
            partial.replace(path)
        except OSError as exc:
            raise ArchiveIOError(f"Cannot write snapshot {path}: {exc}") from exc
        logger.debug("Saved snapshot for job %s (%d files)", job_name, len(snapshot))
        return path
