"""Retrieval Coordinator — the two phases of getting archives out of a vault.

Glacier retrievals complete hours after they are requested, so retrieval is
split into two independent operations:

- **initiate**: parse the vault inventory and request one retrieval job per
  archive, recording job-id → filename in a manifest;
- **download** (later): for each job in the manifest that the service
  reports complete, stream its output to ``<target>/<filename>``.

Both phases tolerate per-record failures: a failed record is logged and
recorded, and the batch continues.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from iceberg.bridge.glacier import ColdStorageClient
from iceberg.core.manifest import read_manifest
from iceberg.errors import ArchiveIOError, IcebergError, NotFoundError, ServiceError
from iceberg.models.jobs import VaultLocation
from iceberg.models.retrieval import (
    JobManifest,
    JobStatus,
    RetrievalJob,
    VaultInventory,
)

logger = logging.getLogger(__name__)

INVENTORY_FILENAME = "inventory.json"


def load_inventory(path: Path) -> VaultInventory:
    """Read and parse an inventory document from disk."""
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(f"Inventory file not found: {path}")
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ArchiveIOError(f"Cannot read inventory {path}: {exc}") from exc
    return VaultInventory.parse(raw)


class RetrievalCoordinator:
    """Issues retrieval jobs and later downloads their output.

    Parameters
    ----------
    client:
        The cold-storage client.
    """

    def __init__(self, client: ColdStorageClient) -> None:
        self._client = client

    # ------------------------------------------------------------------
    # Phase 1: initiate
    # ------------------------------------------------------------------

    def initiate_retrievals(
        self,
        inventory: VaultInventory | str | bytes | dict[str, Any],
        location: VaultLocation,
    ) -> JobManifest:
        """Request one retrieval job per inventory record.

        The manifest has exactly one entry per record; records whose request
        failed are kept with status ``failed`` and the error message.

        Raises
        ------
        ParseError
            If the inventory document is malformed.
        """
        if not isinstance(inventory, VaultInventory):
            inventory = VaultInventory.parse(inventory)

        jobs: list[RetrievalJob] = []
        for record in inventory.archives:
            filename = record.filename
            try:
                job_id = self._client.initiate_retrieval_job(
                    location.region, location.vault, record.archive_id
                )
            except IcebergError as exc:
                logger.error(
                    "Retrieval request for %s (archive %s) in %s failed: %s",
                    filename,
                    record.archive_id,
                    location,
                    exc,
                )
                jobs.append(
                    RetrievalJob(
                        archive_id=record.archive_id,
                        filename=filename,
                        status=JobStatus.FAILED,
                        error=str(exc),
                    )
                )
                continue
            logger.info("Initiated job %s for %s", job_id, filename)
            jobs.append(
                RetrievalJob(
                    job_id=job_id,
                    archive_id=record.archive_id,
                    filename=filename,
                    status=JobStatus.INITIATED,
                )
            )

        manifest = JobManifest(location=location, jobs=jobs)
        logger.info(
            "Initiated %d of %d retrieval jobs in %s",
            len(manifest.initiated),
            len(jobs),
            location,
        )
        return manifest

    def request_inventory(self, location: VaultLocation) -> JobManifest:
        """Request a vault inventory; download it later like any other job."""
        job_id = self._client.initiate_inventory_job(location.region, location.vault)
        logger.info("Initiated inventory job %s for %s", job_id, location)
        return JobManifest(
            location=location,
            jobs=[RetrievalJob(job_id=job_id, filename=INVENTORY_FILENAME)],
        )

    # ------------------------------------------------------------------
    # Phase 2: download
    # ------------------------------------------------------------------

    def _check(self, job: RetrievalJob, location: VaultLocation) -> RetrievalJob:
        """Ask the service for the job's state and return the updated job.

        Raises
        ------
        ServiceError
            If the service failed the job.
        NotFoundError
            If the job is not complete yet.
        """
        description = self._client.describe_job(location.region, location.vault, job.job_id)
        status = description.get("StatusCode", "")
        if status == "Failed":
            raise ServiceError(
                f"Job {job.job_id} ({job.filename}) failed at the service: "
                f"{description.get('StatusMessage', 'no message')}"
            )
        if not description.get("Completed"):
            raise NotFoundError(
                f"Job {job.job_id} ({job.filename}) is not complete yet (status {status or 'unknown'})"
            )
        return job.model_copy(update={"status": JobStatus.COMPLETED})

    def refresh(self, manifest: JobManifest) -> JobManifest:
        """Return ``manifest`` with every initiated job's current status.

        Jobs become ``completed``, ``pending`` or ``failed``; jobs whose
        initiation failed are carried over unchanged.
        """
        jobs: list[RetrievalJob] = []
        for job in manifest.jobs:
            if job.status == JobStatus.FAILED or not job.job_id:
                jobs.append(job)
                continue
            try:
                jobs.append(self._check(job, manifest.location))
            except NotFoundError as exc:
                logger.info("%s", exc)
                jobs.append(job.model_copy(update={"status": JobStatus.PENDING}))
            except IcebergError as exc:
                logger.warning("%s", exc)
                jobs.append(
                    job.model_copy(update={"status": JobStatus.FAILED, "error": str(exc)})
                )
        return manifest.model_copy(update={"jobs": jobs})

    def download_manifest(self, manifest: JobManifest, target_folder: Path) -> int:
        """Download every completed job in ``manifest``; returns files written."""
        target = Path(target_folder)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ArchiveIOError(f"Cannot create {target}: {exc}") from exc

        count = 0
        for job in self.refresh(manifest).jobs:
            if job.status != JobStatus.COMPLETED:
                logger.warning(
                    "Skipping %s (job %s): %s",
                    job.filename,
                    job.job_id or "never initiated",
                    job.error or job.status.value,
                )
                continue
            dest = target / Path(job.filename).name
            try:
                self._client.download_job(
                    manifest.location.region, manifest.location.vault, job.job_id, dest
                )
            except IcebergError as exc:
                logger.warning("Skipping job %s (%s): %s", job.job_id, job.filename, exc)
                continue
            count += 1
        logger.info(
            "Downloaded %d of %d jobs from %s into %s",
            count,
            len(manifest.jobs),
            manifest.location,
            target,
        )
        return count

    def download_completed(
        self,
        jobs_file: Path,
        target_folder: Path,
        location: VaultLocation | None = None,
    ) -> int:
        """Download the completed jobs listed in ``jobs_file``.

        The vault location defaults to the one encoded in the file's path
        (``<region>/<vault>/<file>``).
        """
        manifest = read_manifest(jobs_file, location)
        return self.download_manifest(manifest, target_folder)
