"""Archive Builder — packages changed files and the new Snapshot into a container.

A run walks the source folder, diffs the result against the previous
snapshot (an empty one on the first run, which makes it a full backup) and
writes every added or modified file plus the new snapshot into one container
named for the job and the run time.  Removed files are not archived; they
are recorded only by their absence from the new snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from iceberg.core.container import container_name, write_container
from iceberg.core.scanner import compile_exclude, scan
from iceberg.core.snapshot_store import SnapshotStore
from iceberg.errors import ConfigError
from iceberg.models.archives import ContainerArtifact
from iceberg.models.jobs import JobConfig
from iceberg.models.snapshot import EMPTY_SNAPSHOT, Snapshot, SnapshotDiff, diff

logger = logging.getLogger(__name__)


def resolve_source(source_root: Path) -> Path:
    """Return the absolute source root; its name becomes the archive prefix.

    Raises
    ------
    ConfigError
        If the resolved path has no final name, as for ``/``.
    """
    root = Path(source_root).resolve()
    if not root.name:
        raise ConfigError(
            f"Source folder {source_root} resolves to {root}, which has no name to archive under"
        )
    return root


def create_archive(
    source_root: Path,
    exclude_pattern: str | None,
    previous_snapshot: Snapshot | None = None,
    *,
    job_name: str,
    work_folder: Path,
    compare_checksums: bool = False,
    now: datetime | None = None,
) -> ContainerArtifact:
    """Build one container artifact for ``source_root``.

    The returned artifact carries the new snapshot it embeds.  The source
    root is resolved first, so its final name is the top-level directory
    of every archived entry.

    Raises
    ------
    ConfigError
        If ``exclude_pattern`` is not a valid regular expression, or the
        resolved source root has no name (a filesystem root).
    NotFoundError
        If ``source_root`` does not exist.
    ArchiveIOError
        If the source cannot be read or the container cannot be written.
    """
    exclude = compile_exclude(exclude_pattern)
    source_root = resolve_source(source_root)
    baseline = previous_snapshot or EMPTY_SNAPSHOT
    created_at = now or datetime.now(timezone.utc)

    current = scan(source_root, exclude, checksums=compare_checksums)
    changes = diff(baseline, current)
    logger.info(
        "Job %s: %d added, %d modified, %d removed",
        job_name,
        len(changes.added),
        len(changes.modified),
        len(changes.removed),
    )
    if changes.is_empty:
        logger.info("Job %s: no changes since the previous run", job_name)

    name = container_name(job_name, created_at)
    path = Path(work_folder) / name
    size = write_container(path, source_root, changes.changed, current)
    logger.info("Created %s (%d files, %d bytes)", path, len(changes.changed), size)

    artifact = ContainerArtifact(
        name=name,
        path=path,
        job_name=job_name,
        created_at=created_at,
        added=changes.added,
        modified=changes.modified,
        removed=changes.removed,
        file_count=len(current),
        size_bytes=size,
        is_full=baseline.is_empty,
        snapshot=current,
    )
    return artifact


class ArchiveBuilder:
    """Runs backups for jobs, keeping each job's snapshot baseline current.

    Parameters
    ----------
    store:
        Where the last snapshot of each job is kept.
    clock:
        Returns the run time used to name containers.  Defaults to UTC now.
    """

    def __init__(
        self,
        store: SnapshotStore,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build(self, job: JobConfig) -> ContainerArtifact:
        """Create the next container for ``job`` and advance its baseline."""
        previous = self._store.load(job.name)
        artifact = create_archive(
            job.source_folder,
            job.exclude_pattern,
            previous,
            job_name=job.name,
            work_folder=self._store.job_folder(job.name),
            compare_checksums=job.compare_checksums,
            now=self._clock(),
        )
        self._store.save(job.name, artifact.snapshot)
        return artifact

    def preview(self, job: JobConfig) -> SnapshotDiff:
        """Diff the source against the baseline without writing anything."""
        previous = self._store.load(job.name) or EMPTY_SNAPSHOT
        current = scan(
            resolve_source(job.source_folder),
            compile_exclude(job.exclude_pattern),
            checksums=job.compare_checksums,
        )
        return diff(previous, current)
