"""Snapshot restore — make a directory's file set equal a Snapshot's.

Extraction already materialized file contents; reconciliation only deletes.
Every file under the target root without an entry in the snapshot is
removed, then empty directories are pruned bottom-up (the root itself is
kept).  A second run over the result is a no-op.

Deletion is best-effort, not transactional: the first failure is raised and
files deleted before it stay deleted.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from iceberg.errors import ArchiveIOError, NotFoundError
from iceberg.models.snapshot import Snapshot

logger = logging.getLogger(__name__)


def _raise_walk_error(exc: OSError) -> None:
    raise ArchiveIOError(f"Cannot read {exc.filename}: {exc.strerror}") from exc


def restore_snapshot(snapshot: Snapshot, target_root: Path) -> list[str]:
    """Remove every file under ``target_root`` that ``snapshot`` does not list.

    Returns the sorted relative paths of removed files.

    Raises
    ------
    NotFoundError
        If ``target_root`` does not exist.
    ArchiveIOError
        If a path cannot be read or deleted.
    """
    root = Path(target_root)
    if not root.is_dir():
        raise NotFoundError(f"Restore target not found: {root}")

    removed: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(
        root, topdown=False, onerror=_raise_walk_error
    ):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"

        for name in sorted(filenames):
            rel = f"{prefix}{name}"
            if rel in snapshot:
                continue
            try:
                (current / name).unlink()
            except OSError as exc:
                raise ArchiveIOError(f"Cannot delete {current / name}: {exc}") from exc
            logger.debug("Removed %s", rel)
            removed.append(rel)

        if current != root and not any(current.iterdir()):
            try:
                current.rmdir()
            except OSError as exc:
                raise ArchiveIOError(f"Cannot remove empty directory {current}: {exc}") from exc
            logger.debug("Pruned empty directory %s", rel_dir)

    removed.sort()
    logger.info("Reconciled %s against snapshot: %d files removed", root, len(removed))
    return removed
