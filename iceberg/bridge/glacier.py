"""Glacier bridge — wraps the boto3 ``glacier`` client.

Bridge boundary
---------------
This is the only module that imports boto3.  Core code depends on the
narrow :class:`ColdStorageClient` protocol below, so tests substitute an
in-memory fake and production wires in :class:`GlacierClient`.

One boto3 client is created per region on first use.  No retries are added
here beyond botocore's own defaults; retry policy belongs to the operator.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from iceberg.errors import ArchiveIOError, ServiceError

logger = logging.getLogger(__name__)

_ARCHIVE_RETRIEVAL = "archive-retrieval"
_INVENTORY_RETRIEVAL = "inventory-retrieval"
_CHUNK_SIZE = 1024 * 1024


class ColdStorageClient(Protocol):
    """Operations the core needs from the cold-storage service."""

    def upload_archive(self, region: str, vault: str, name: str, file_path: Path) -> str: ...

    def initiate_retrieval_job(self, region: str, vault: str, archive_id: str) -> str: ...

    def initiate_inventory_job(self, region: str, vault: str) -> str: ...

    def describe_job(self, region: str, vault: str, job_id: str) -> dict[str, Any]: ...

    def download_job(self, region: str, vault: str, job_id: str, dest: Path) -> int: ...


def _describe_error(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return f"{error.get('Code', 'Unknown')}: {error.get('Message', str(exc))}"
    return str(exc)


class GlacierClient:
    """Amazon S3 Glacier implementation of :class:`ColdStorageClient`.

    Parameters
    ----------
    session:
        A ``boto3.Session``.  Built from ``profile_name`` when omitted.
    profile_name:
        AWS profile used for a new session.
    endpoint_url:
        Endpoint override, e.g. for a local test service.
    retrieval_tier:
        Optional ``Tier`` for archive retrieval jobs.
    """

    def __init__(
        self,
        *,
        session: boto3.Session | None = None,
        profile_name: str | None = None,
        endpoint_url: str | None = None,
        retrieval_tier: str | None = None,
    ) -> None:
        self._session = session or boto3.Session(profile_name=profile_name)
        self._endpoint_url = endpoint_url
        self._retrieval_tier = retrieval_tier
        self._clients: dict[str, Any] = {}

    def client(self, region: str) -> Any:
        """Return the (cached) boto3 glacier client for ``region``."""
        if region not in self._clients:
            try:
                self._clients[region] = self._session.client(
                    "glacier", region_name=region, endpoint_url=self._endpoint_url
                )
            except BotoCoreError as exc:
                raise ServiceError(
                    f"Cannot create Glacier client for {region}: {exc}"
                ) from exc
        return self._clients[region]

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload_archive(self, region: str, vault: str, name: str, file_path: Path) -> str:
        """Upload ``file_path`` as one archive described by ``name``.

        Returns the archive id assigned by Glacier.
        """
        client = self.client(region)
        try:
            with Path(file_path).open("rb") as body:
                response = client.upload_archive(
                    vaultName=vault, archiveDescription=name, body=body
                )
        except OSError as exc:
            raise ArchiveIOError(f"Cannot read {file_path}: {exc}") from exc
        except (BotoCoreError, ClientError) as exc:
            raise ServiceError(
                f"Upload of {name} to {region}/{vault} failed: {_describe_error(exc)}"
            ) from exc
        archive_id = response["archiveId"]
        logger.info("Uploaded %s to %s/%s as %s", name, region, vault, archive_id)
        return archive_id

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def _initiate(self, region: str, vault: str, parameters: dict[str, Any]) -> str:
        try:
            response = self.client(region).initiate_job(
                vaultName=vault, jobParameters=parameters
            )
        except (BotoCoreError, ClientError) as exc:
            raise ServiceError(
                f"{parameters['Type']} job for {region}/{vault} failed: {_describe_error(exc)}"
            ) from exc
        return response["jobId"]

    def initiate_retrieval_job(self, region: str, vault: str, archive_id: str) -> str:
        parameters: dict[str, Any] = {"Type": _ARCHIVE_RETRIEVAL, "ArchiveId": archive_id}
        if self._retrieval_tier:
            parameters["Tier"] = self._retrieval_tier
        return self._initiate(region, vault, parameters)

    def initiate_inventory_job(self, region: str, vault: str) -> str:
        return self._initiate(
            region, vault, {"Type": _INVENTORY_RETRIEVAL, "Format": "JSON"}
        )

    def describe_job(self, region: str, vault: str, job_id: str) -> dict[str, Any]:
        """Return the job description (``Completed``, ``StatusCode``, ...)."""
        try:
            return self.client(region).describe_job(vaultName=vault, jobId=job_id)
        except (BotoCoreError, ClientError) as exc:
            raise ServiceError(
                f"Cannot describe job {job_id} in {region}/{vault}: {_describe_error(exc)}"
            ) from exc

    def download_job(self, region: str, vault: str, job_id: str, dest: Path) -> int:
        """Stream a completed job's output to ``dest``; returns bytes written."""
        dest = Path(dest)
        partial = dest.with_name(dest.name + ".partial")
        try:
            response = self.client(region).get_job_output(vaultName=vault, jobId=job_id)
            body = response["body"]
            dest.parent.mkdir(parents=True, exist_ok=True)
            with partial.open("wb") as handle:
                shutil.copyfileobj(body, handle, _CHUNK_SIZE)
            partial.replace(dest)
        except (BotoCoreError, ClientError) as exc:
            partial.unlink(missing_ok=True)
            raise ServiceError(
                f"Cannot download job {job_id} from {region}/{vault}: {_describe_error(exc)}"
            ) from exc
        except OSError as exc:
            partial.unlink(missing_ok=True)
            raise ArchiveIOError(f"Cannot write {dest}: {exc}") from exc
        size = dest.stat().st_size
        logger.info("Downloaded job %s to %s (%d bytes)", job_id, dest, size)
        return size
