"""Snapshot models — the recorded state of a source tree at one backup run.

A Snapshot maps every relative file path (POSIX form, relative to the source
root) to the file's modification time and size.  Snapshots are frozen: a run
produces a new one and the previous one is superseded, never mutated.

The JSON document embedded in every container artifact has the shape::

    {"docs/a.txt": {"mtime": 1700000000000, "size": 12}, ...}

``mtime`` is in milliseconds since the epoch.  A ``checksum`` key is present
only for jobs that opt in to content checksums.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from iceberg.errors import ParseError


class FileState(BaseModel):
    """Recorded state of a single file."""

    model_config = ConfigDict(frozen=True)

    mtime: int  # milliseconds since the epoch
    size: int
    checksum: str | None = None  # "sha256:<hex>" when checksums are enabled

    def same_as(self, other: FileState) -> bool:
        """Compare by checksum when both sides carry one, else by mtime."""
        if self.checksum is not None and other.checksum is not None:
            return self.checksum == other.checksum and self.size == other.size
        return self.mtime == other.mtime and self.size == other.size


class SnapshotDiff(BaseModel):
    """Paths added, modified, and removed between two snapshots.

    All three tuples are sorted and pairwise disjoint.
    """

    model_config = ConfigDict(frozen=True)

    added: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    @property
    def changed(self) -> tuple[str, ...]:
        """Paths whose current content must be archived (added + modified)."""
        return tuple(sorted(self.added + self.modified))

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed)


class Snapshot(BaseModel):
    """Complete state of a source tree at one backup run."""

    model_config = ConfigDict(frozen=True)

    files: dict[str, FileState] = {}

    @property
    def paths(self) -> frozenset[str]:
        return frozenset(self.files)

    @property
    def is_empty(self) -> bool:
        return not self.files

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: object) -> bool:
        return path in self.files

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_document(self) -> dict[str, dict[str, Any]]:
        """Return the JSON-ready ``{path: {mtime, size}}`` mapping."""
        return {
            path: state.model_dump(exclude_none=True)
            for path, state in sorted(self.files.items())
        }

    def to_json_bytes(self) -> bytes:
        return json.dumps(self.to_document(), indent=2, sort_keys=True).encode("utf-8")

    @classmethod
    def from_document(cls, document: Any) -> Snapshot:
        """Build a Snapshot from a decoded JSON document.

        Raises
        ------
        ParseError
            If the document is not a ``{path: {mtime, size}}`` mapping.
        """
        if not isinstance(document, dict):
            raise ParseError(
                f"Snapshot document must be a JSON object, got {type(document).__name__}"
            )
        try:
            return cls(files=document)
        except ValidationError as exc:
            raise ParseError(f"Malformed snapshot document: {exc}") from exc

    @classmethod
    def from_json_bytes(cls, data: bytes) -> Snapshot:
        try:
            document = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ParseError(f"Snapshot document is not valid JSON: {exc}") from exc
        return cls.from_document(document)


def diff(previous: Snapshot, current: Snapshot) -> SnapshotDiff:
    """Compare two snapshots by path.

    Pure and total: any two well-formed snapshots produce a diff.
    """
    before = previous.files
    after = current.files
    added = sorted(path for path in after if path not in before)
    removed = sorted(path for path in before if path not in after)
    modified = sorted(
        path
        for path, state in after.items()
        if path in before and not before[path].same_as(state)
    )
    return SnapshotDiff(
        added=tuple(added), modified=tuple(modified), removed=tuple(removed)
    )


EMPTY_SNAPSHOT = Snapshot()
