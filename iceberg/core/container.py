"""Zip container artifacts.

Layout inside every container::

    snapshot.json                 # the run's Snapshot document
    <source_name>/<relative path> # each added or modified file

Extracting a chain of containers into one folder therefore leaves the
archived tree under a single top-level ``<source_name>`` directory and the
most recent ``snapshot.json`` beside it.
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from iceberg.errors import ArchiveIOError, NotFoundError, ParseError
from iceberg.models.snapshot import Snapshot

logger = logging.getLogger(__name__)

SNAPSHOT_ENTRY = "snapshot.json"
CONTAINER_SUFFIX = ".zip"
_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S-%f"


def container_name(job_name: str, when: datetime | None = None) -> str:
    """Name a container for a run: ``<job>-<YYYYmmdd-HHMMSS-ffffff>.zip``.

    The timestamp is UTC and fixed-width, so names of the same job sort
    lexicographically in chronological order.
    """
    when = when or datetime.now(timezone.utc)
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc)
    return f"{job_name}-{when.strftime(_TIMESTAMP_FORMAT)}{CONTAINER_SUFFIX}"


def write_container(
    path: Path,
    source_root: Path,
    relative_paths: Iterable[str],
    snapshot: Snapshot,
) -> int:
    """Write a container holding ``relative_paths`` and ``snapshot``.

    The archive is written next to ``path`` with a ``.partial`` suffix and
    renamed into place once complete.  Returns the container size in bytes.
    """
    path = Path(path)
    source_root = Path(source_root)
    partial = path.with_name(path.name + ".partial")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(
            partial, "w", compression=zipfile.ZIP_DEFLATED, strict_timestamps=False
        ) as archive:
            for rel in relative_paths:
                arcname = f"{source_root.name}/{rel}"
                archive.write(source_root / rel, arcname)
                logger.debug("Archived %s", arcname)
            archive.writestr(SNAPSHOT_ENTRY, snapshot.to_json_bytes())
        partial.replace(path)
        return path.stat().st_size
    except OSError as exc:
        partial.unlink(missing_ok=True)
        raise ArchiveIOError(f"Cannot write container {path}: {exc}") from exc


def _open(path: Path) -> zipfile.ZipFile:
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(f"Container not found: {path}")
    try:
        return zipfile.ZipFile(path, "r")
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveIOError(f"Cannot open container {path}: {exc}") from exc


def list_entries(path: Path) -> list[str]:
    """Return the names of all entries in a container."""
    with _open(path) as archive:
        return archive.namelist()


def extract_container(path: Path, target: Path) -> list[str]:
    """Extract every entry of a container into ``target``.

    Files with the same relative path are overwritten.  Returns the names of
    the extracted entries.
    """
    target = Path(target)
    with _open(path) as archive:
        try:
            target.mkdir(parents=True, exist_ok=True)
            archive.extractall(target)
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveIOError(f"Cannot extract {path} into {target}: {exc}") from exc
        return archive.namelist()


def read_snapshot(path: Path) -> Snapshot:
    """Read the Snapshot embedded in a container."""
    with _open(path) as archive:
        try:
            data = archive.read(SNAPSHOT_ENTRY)
        except KeyError as exc:
            raise ParseError(f"Container {path} has no {SNAPSHOT_ENTRY}") from exc
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveIOError(f"Cannot read {SNAPSHOT_ENTRY} from {path}: {exc}") from exc
    return Snapshot.from_json_bytes(data)


def load_snapshot_file(path: Path) -> Snapshot:
    """Read a Snapshot document written to disk (e.g. after extraction)."""
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(f"Snapshot document not found: {path}")
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ArchiveIOError(f"Cannot read snapshot {path}: {exc}") from exc
    return Snapshot.from_json_bytes(data)
