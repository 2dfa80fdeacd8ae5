"""Restore Engine — replay a chain of containers and reconcile the result.

Protocol:

1. **Discover** every ``*.zip`` in the source folder, sorted by name.  Names
   encode the run time, so this is chronological order; applying
   incrementals out of order corrupts the result.
2. **Extract** each container in turn into the target folder.  Later
   containers overwrite earlier files (this is how modifications land).
3. **Locate** the final state: ``snapshot.json`` at the target root, which
   every extraction overwrites, so it is the last container's snapshot.
4. **Reconcile** the single top-level directory of the target against that
   snapshot, deleting files removed at the source before the last run.

There is no resumption: a failed restore is re-run from the start, which is
safe because extraction and reconciliation are idempotent.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from iceberg.core.container import (
    CONTAINER_SUFFIX,
    SNAPSHOT_ENTRY,
    extract_container,
    list_entries,
    load_snapshot_file,
    read_snapshot,
)
from iceberg.core.reconciler import restore_snapshot
from iceberg.errors import ArchiveIOError, IncompleteChainError, NotFoundError

logger = logging.getLogger(__name__)


class RestoreResult(BaseModel):
    """Outcome of a completed restore."""

    model_config = ConfigDict(frozen=True)

    archives: tuple[str, ...]
    base_folder: Path
    removed: tuple[str, ...] = ()
    file_count: int = 0  # files listed in the final snapshot


def discover_archives(source: Path) -> list[Path]:
    """List the containers in ``source`` in restore order.

    Raises
    ------
    NotFoundError
        If the folder does not exist or holds no containers.
    """
    source = Path(source)
    if not source.is_dir():
        raise NotFoundError(f"Archive folder not found: {source}")
    try:
        archives = sorted(
            (p for p in source.glob(f"*{CONTAINER_SUFFIX}") if p.is_file()),
            key=lambda p: p.name,
        )
    except OSError as exc:
        raise ArchiveIOError(f"Cannot list {source}: {exc}") from exc
    if not archives:
        raise NotFoundError(f"No {CONTAINER_SUFFIX} archives found in {source}")
    return archives


def find_base_folder(target: Path) -> Path:
    """Return the single top-level directory holding the restored tree.

    Raises
    ------
    NotFoundError
        If ``target`` holds no subdirectory, or more than one.
    """
    target = Path(target)
    folders = sorted(
        p for p in target.iterdir() if p.is_dir() and not p.is_symlink()
    )
    if not folders:
        raise NotFoundError(f"No sub-folders found in {target}")
    if len(folders) > 1:
        names = ", ".join(p.name for p in folders)
        raise NotFoundError(
            f"Expected exactly one sub-folder in {target}, found {len(folders)}: {names}"
        )
    return folders[0]


def verify_full_backup(archive: Path) -> None:
    """Check that ``archive`` contains every file its snapshot lists.

    Raises
    ------
    IncompleteChainError
        If any snapshot path has no entry, i.e. the archive is incremental.
    """
    snapshot = read_snapshot(archive)
    archived = set()
    for entry in list_entries(archive):
        if entry == SNAPSHOT_ENTRY or entry.endswith("/"):
            continue
        _, _, rel = entry.partition("/")
        archived.add(rel)
    missing = sorted(snapshot.paths - archived)
    if missing:
        preview = ", ".join(missing[:5])
        raise IncompleteChainError(
            f"{archive.name} is not a full backup: {len(missing)} snapshot files "
            f"are not in it (e.g. {preview})"
        )


class RestoreEngine:
    """Replays ordered containers into a target folder.

    Parameters
    ----------
    require_full_first:
        Verify that the oldest container is a full backup before extracting
        anything.  Off by default: a full first container is otherwise a
        caller contract.
    """

    def __init__(self, *, require_full_first: bool = False) -> None:
        self._require_full_first = require_full_first

    def restore(self, source: Path, target: Path) -> RestoreResult:
        """Restore ``target`` to the state recorded by the last container."""
        target = Path(target)
        logger.info("Restoring from %s to %s", source, target)
        archives = discover_archives(source)

        if self._require_full_first:
            verify_full_backup(archives[0])

        for archive in archives:
            logger.info("Extracting %s", archive)
            extract_container(archive, target)

        snapshot = load_snapshot_file(target / SNAPSHOT_ENTRY)
        base_folder = find_base_folder(target)
        removed = restore_snapshot(snapshot, base_folder)

        return RestoreResult(
            archives=tuple(a.name for a in archives),
            base_folder=base_folder,
            removed=tuple(removed),
            file_count=len(snapshot),
        )
