"""Source tree scanning — directory walk folded into an immutable Snapshot.

The walk is sorted at every level so the same tree always yields the same
snapshot.  The exclude pattern is searched against each relative POSIX path
(``docs/tmp/a.txt``); a matching directory is not descended into.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterator
from pathlib import Path

from iceberg.core.hasher import file_checksum
from iceberg.errors import ArchiveIOError, ConfigError, NotFoundError
from iceberg.models.snapshot import FileState, Snapshot

logger = logging.getLogger(__name__)


def compile_exclude(pattern: str | None) -> re.Pattern[str] | None:
    """Compile an exclude pattern; an empty pattern excludes nothing.

    Raises
    ------
    ConfigError
        If the pattern is not a valid regular expression.
    """
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"Invalid exclude pattern {pattern!r}: {exc}") from exc


def _raise_walk_error(exc: OSError) -> None:
    raise ArchiveIOError(f"Cannot read {exc.filename}: {exc.strerror}") from exc


def iter_source_files(
    source_root: Path, exclude: re.Pattern[str] | None = None
) -> Iterator[tuple[str, Path]]:
    """Yield ``(relative_posix_path, absolute_path)`` for every included file."""
    root = Path(source_root)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else f"{rel_dir}/"

        kept_dirs = []
        for name in sorted(dirnames):
            if exclude is not None and exclude.search(f"{prefix}{name}"):
                logger.debug("Excluded directory %s%s", prefix, name)
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs  # prune excluded subtrees from the walk

        for name in sorted(filenames):
            rel = f"{prefix}{name}"
            if exclude is not None and exclude.search(rel):
                logger.debug("Excluded file %s", rel)
                continue
            path = current / name
            if not path.is_file():
                continue  # sockets, fifos, dangling links
            yield rel, path


def _file_state(path: Path, *, checksums: bool) -> FileState:
    try:
        stat = path.stat()
        checksum = file_checksum(path) if checksums else None
    except OSError as exc:
        raise ArchiveIOError(f"Cannot read {path}: {exc}") from exc
    return FileState(
        mtime=stat.st_mtime_ns // 1_000_000,
        size=stat.st_size,
        checksum=checksum,
    )


def scan(
    source_root: Path,
    exclude: re.Pattern[str] | None = None,
    *,
    checksums: bool = False,
) -> Snapshot:
    """Walk ``source_root`` and return its current Snapshot.

    Raises
    ------
    NotFoundError
        If the source root does not exist or is not a directory.
    ArchiveIOError
        If any part of the tree cannot be read.
    """
    root = Path(source_root)
    if not root.is_dir():
        raise NotFoundError(f"Source folder not found: {root}")
    logger.info("Scanning %s", root)
    snapshot = Snapshot(
        files={
            rel: _file_state(path, checksums=checksums)
            for rel, path in iter_source_files(root, exclude)
        }
    )
    logger.info("Scanned %d files under %s", len(snapshot), root)
    return snapshot
