"""iceberg data models — all Pydantic v2, all frozen (immutable)."""

from iceberg.models.archives import ContainerArtifact
from iceberg.models.jobs import JobConfig, VaultLocation
from iceberg.models.retrieval import (
    InventoryRecord,
    JobManifest,
    JobStatus,
    RetrievalJob,
    VaultInventory,
)
from iceberg.models.snapshot import (
    EMPTY_SNAPSHOT,
    FileState,
    Snapshot,
    SnapshotDiff,
    diff,
)

__all__ = [
    # snapshot
    "EMPTY_SNAPSHOT",
    "FileState",
    "Snapshot",
    "SnapshotDiff",
    "diff",
    # archives
    "ContainerArtifact",
    # jobs
    "JobConfig",
    "VaultLocation",
    # retrieval
    "InventoryRecord",
    "JobManifest",
    "JobStatus",
    "RetrievalJob",
    "VaultInventory",
]
