"""Container artifact model (immutable once written)."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from iceberg.models.snapshot import Snapshot


class ContainerArtifact(BaseModel):
    """One archive produced by a backup run.

    The archive holds every added or modified file plus exactly one embedded
    snapshot.  Its name sorts lexicographically in chronological order.
    """

    model_config = ConfigDict(frozen=True)

    name: str  # "<job>-<YYYYmmdd-HHMMSS-ffffff>.zip"
    path: Path
    job_name: str
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    added: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    file_count: int = 0  # files recorded in the embedded snapshot
    size_bytes: int = 0
    is_full: bool = False  # built against an empty baseline
    snapshot: Snapshot = Snapshot()  # the snapshot embedded in the container

    @property
    def archived_count(self) -> int:
        return len(self.added) + len(self.modified)
