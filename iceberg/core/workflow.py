"""Workflow — the backup, upload, retrieval, and restore operations.

The Workflow wires the ArchiveBuilder, UploadGateway, RetrievalCoordinator
and RestoreEngine to one explicit settings value (and, for backup and
upload, one job definition).  Every operation logs an explicit success line
or the error that aborted it before re-raising.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from iceberg.bridge.glacier import ColdStorageClient, GlacierClient
from iceberg.config import IcebergSettings
from iceberg.core.archive_builder import ArchiveBuilder
from iceberg.core.manifest import write_manifest
from iceberg.core.restore_engine import RestoreEngine, RestoreResult
from iceberg.core.retrieval import RetrievalCoordinator, load_inventory
from iceberg.core.snapshot_store import SnapshotStore
from iceberg.core.upload import UploadGateway
from iceberg.errors import ConfigError, IcebergError
from iceberg.models.archives import ContainerArtifact
from iceberg.models.jobs import JobConfig, VaultLocation
from iceberg.models.snapshot import SnapshotDiff

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "The operation completed successfully"


@contextmanager
def _operation(name: str, **context: object) -> Iterator[None]:
    details = ", ".join(f"{key}={value}" for key, value in context.items())
    try:
        yield
    except IcebergError as exc:
        logger.error("%s aborted (%s): %s", name, details, exc)
        raise
    except Exception:
        logger.exception("%s failed unexpectedly (%s)", name, details)
        raise
    logger.info(SUCCESS_MESSAGE)


class Workflow:
    """Entry point for all backup and restore operations.

    Parameters
    ----------
    settings:
        Application settings; the only source of folders and AWS options.
    job:
        The backup job; required for ``create_archive``/``upload``/``preview``.
    client:
        Cold-storage client.  A :class:`GlacierClient` is built from the
        settings on first use when omitted.
    """

    def __init__(
        self,
        settings: IcebergSettings,
        job: JobConfig | None = None,
        *,
        client: ColdStorageClient | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self.job = job
        self._client = client
        self.store = SnapshotStore(settings.work_folder)
        self.builder = ArchiveBuilder(self.store, clock=clock)

    @property
    def client(self) -> ColdStorageClient:
        if self._client is None:
            self._client = GlacierClient(
                profile_name=self.settings.aws_profile,
                endpoint_url=self.settings.glacier_endpoint_url,
                retrieval_tier=self.settings.retrieval_tier,
            )
        return self._client

    def _require_job(self) -> JobConfig:
        if self.job is None:
            raise ConfigError("This operation needs a backup job")
        return self.job

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def create_archive(self, upload: bool = False) -> ContainerArtifact:
        """Archive everything changed since the last run, optionally uploading it."""
        job = self._require_job()
        with _operation("backup", job=job.name, source=job.source_folder):
            artifact = self.builder.build(job)
            if upload:
                self._upload(job, artifact.path)
        return artifact

    def upload(self, zip_file: Path) -> str:
        """Upload an existing container to the job's vault."""
        job = self._require_job()
        with _operation("upload", job=job.name, file=zip_file):
            archive_id = self._upload(job, Path(zip_file))
        return archive_id

    def _upload(self, job: JobConfig, zip_file: Path) -> str:
        gateway = UploadGateway(self.client)
        return gateway.upload(job.region, job.vault, zip_file.name, zip_file)

    def preview(self) -> SnapshotDiff:
        """What the next backup would archive, without writing anything."""
        job = self._require_job()
        return self.builder.preview(job)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def prepare_download(
        self, inventory_file: Path, location: VaultLocation | None = None
    ) -> Path:
        """Request retrieval of every archive in a vault inventory.

        Returns the path of the written job manifest.  The location defaults
        to the one encoded in the inventory file's path.
        """
        inventory_file = Path(inventory_file)
        with _operation("prepare-download", inventory=inventory_file):
            location = location or VaultLocation.from_jobs_file(inventory_file)
            inventory = load_inventory(inventory_file)
            manifest = RetrievalCoordinator(self.client).initiate_retrievals(
                inventory, location
            )
            path = write_manifest(manifest, self.settings.retrievals_folder)
            logger.info(
                "Wrote job manifest %s (%d initiated, %d failed)",
                path,
                len(manifest.initiated),
                len(manifest.failed),
            )
        return path

    def request_inventory(self, location: VaultLocation) -> Path:
        """Request a vault inventory and write a manifest for its download."""
        with _operation("request-inventory", location=location):
            manifest = RetrievalCoordinator(self.client).request_inventory(location)
            path = write_manifest(
                manifest,
                self.settings.retrievals_folder,
                prefix="inventory",
            )
        return path

    def download(
        self,
        jobs_file: Path,
        target_folder: Path,
        location: VaultLocation | None = None,
    ) -> int:
        """Download completed retrieval jobs listed in ``jobs_file``."""
        with _operation("download", jobs_file=jobs_file, target=target_folder):
            count = RetrievalCoordinator(self.client).download_completed(
                Path(jobs_file), Path(target_folder), location
            )
        return count

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(
        self, source: Path, target: Path, *, require_full_first: bool = False
    ) -> RestoreResult:
        """Replay the containers in ``source`` into ``target``."""
        with _operation("restore", source=source, target=target):
            engine = RestoreEngine(require_full_first=require_full_first)
            result = engine.restore(Path(source), Path(target))
        return result
