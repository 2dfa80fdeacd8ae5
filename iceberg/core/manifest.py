"""Job manifest files — the job-id → filename correlation on disk.

Format: CSV, one job per line, written with a header::

    job_id,filename,status,archive_id,error

Readers also accept the legacy two-column form ``job_id,filename`` (status
``initiated``), blank lines, and ``#`` comments.  Manifests are written as
``<root>/<region>/<vault>/<name>.csv`` so the download step can recover the
vault location from the file's path.
"""

from __future__ import annotations

import csv
import io
import itertools
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from iceberg.errors import ArchiveIOError, NotFoundError, ParseError
from iceberg.models.jobs import VaultLocation
from iceberg.models.retrieval import JobManifest, JobStatus, RetrievalJob

FIELDS = ("job_id", "filename", "status", "archive_id", "error")


def manifest_filename(prefix: str = "jobs", when: datetime | None = None) -> str:
    """Name a manifest ``<prefix>-<YYYYmmdd-HHMMSS-ffffff>.csv`` (UTC)."""
    when = when or datetime.now(timezone.utc)
    return f"{prefix}-{when.strftime('%Y%m%d-%H%M%S-%f')}.csv"


def write_manifest(
    manifest: JobManifest,
    root: Path,
    *,
    prefix: str = "jobs",
    filename: str | None = None,
) -> Path:
    """Write ``manifest`` under ``<root>/<region>/<vault>/`` and return its path.

    An existing manifest is never replaced: it holds the only record of
    which job id belongs to which file.  A generated name that is already
    taken gets a ``-1``, ``-2`` ... suffix.

    Raises
    ------
    ArchiveIOError
        If an explicit ``filename`` already exists, or the file cannot be
        written.
    """
    folder = manifest.location.manifest_dir(root)
    name = filename or manifest_filename(prefix)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(FIELDS)
    for job in manifest.jobs:
        writer.writerow(
            [job.job_id, job.filename, job.status.value, job.archive_id, job.error]
        )
    path = folder / name
    try:
        folder.mkdir(parents=True, exist_ok=True)
        for attempt in itertools.count(1):
            try:
                with path.open("x", encoding="utf-8") as handle:
                    handle.write(buffer.getvalue())
                return path
            except FileExistsError as exc:
                if filename is not None:
                    raise ArchiveIOError(f"Job manifest {path} already exists") from exc
                path = folder / f"{Path(name).stem}-{attempt}{Path(name).suffix}"
    except OSError as exc:
        raise ArchiveIOError(f"Cannot write job manifest {path}: {exc}") from exc


def _parse_row(row: list[str], line_no: int, path: Path) -> RetrievalJob:
    if len(row) < 2 or len(row) > len(FIELDS):
        raise ParseError(
            f"{path}:{line_no}: expected job_id,filename[,status,archive_id,error], got {row!r}"
        )
    values = dict(zip(FIELDS, (cell.strip() for cell in row)))
    if not values["filename"]:
        raise ParseError(f"{path}:{line_no}: missing filename")
    status = values.get("status") or JobStatus.INITIATED.value
    try:
        return RetrievalJob(
            job_id=values["job_id"],
            filename=values["filename"],
            status=JobStatus(status),
            archive_id=values.get("archive_id", ""),
            error=values.get("error", ""),
        )
    except (ValueError, ValidationError) as exc:
        raise ParseError(f"{path}:{line_no}: {exc}") from exc


def read_manifest(path: Path, location: VaultLocation | None = None) -> JobManifest:
    """Read a manifest file.

    The location defaults to the one encoded in the file's path.

    Raises
    ------
    NotFoundError
        If the file does not exist.
    ParseError
        If a line is malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(f"Job manifest not found: {path}")
    location = location or VaultLocation.from_jobs_file(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ArchiveIOError(f"Cannot read job manifest {path}: {exc}") from exc

    jobs: list[RetrievalJob] = []
    for line_no, row in enumerate(csv.reader(io.StringIO(text)), start=1):
        if not row or not any(cell.strip() for cell in row):
            continue
        first = row[0].strip()
        if first.startswith("#") or (line_no == 1 and first == FIELDS[0]):
            continue
        job = _parse_row(row, line_no, path)
        if job.status != JobStatus.FAILED and not job.job_id:
            raise ParseError(f"{path}:{line_no}: missing job_id")
        jobs.append(job)
    return JobManifest(location=location, jobs=jobs)
