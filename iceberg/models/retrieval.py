"""Vault inventory and retrieval job models.

The inventory mirrors the JSON document Glacier returns for an
``inventory-retrieval`` job (``VaultARN``, ``InventoryDate``,
``ArchiveList``).  A :class:`JobManifest` carries the job-id → filename
correlation from the initiate phase to the download phase, since Glacier
returns job output keyed by job-id only.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import PurePosixPath, PureWindowsPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from iceberg.errors import ParseError
from iceberg.models.jobs import VaultLocation


class InventoryRecord(BaseModel):
    """One archive listed in a vault inventory."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    archive_id: str = Field(alias="ArchiveId", min_length=1)
    description: str = Field(default="", alias="ArchiveDescription")
    creation_date: str = Field(default="", alias="CreationDate")
    size: int = Field(default=0, alias="Size")
    sha256_tree_hash: str | None = Field(default=None, alias="SHA256TreeHash")

    @property
    def filename(self) -> str:
        """Local file name for the archive.

        The description is the archive name given at upload time.  Only its
        final path component is used; archives uploaded without one fall back
        to ``<archive_id>.zip``.
        """
        name = PureWindowsPath(PurePosixPath(self.description.strip()).name).name
        if name in ("", ".", ".."):
            return f"{self.archive_id}.zip"
        return name


class VaultInventory(BaseModel):
    """A vault inventory document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    vault_arn: str = Field(default="", alias="VaultARN")
    inventory_date: str = Field(default="", alias="InventoryDate")
    archives: list[InventoryRecord] = Field(alias="ArchiveList")

    @classmethod
    def parse(cls, raw: str | bytes | dict[str, Any]) -> VaultInventory:
        """Parse an inventory document.

        Raises
        ------
        ParseError
            If the input is not valid JSON or lacks a well-formed ArchiveList.
        """
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise ParseError(f"Inventory is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise ParseError("Inventory must be a JSON object with an ArchiveList")
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ParseError(f"Malformed inventory: {exc}") from exc


class JobStatus(str, Enum):
    """Lifecycle of a retrieval job as seen by this side of the service."""

    INITIATED = "initiated"
    FAILED = "failed"
    PENDING = "pending"
    COMPLETED = "completed"


class RetrievalJob(BaseModel):
    """One retrieval request and the file name its output belongs to."""

    model_config = ConfigDict(frozen=True)

    job_id: str = ""  # empty when initiation failed
    archive_id: str = ""
    filename: str
    status: JobStatus = JobStatus.INITIATED
    error: str = ""


class JobManifest(BaseModel):
    """All retrieval jobs issued for one vault in one initiate run."""

    model_config = ConfigDict(frozen=True)

    location: VaultLocation
    jobs: list[RetrievalJob] = []

    @property
    def initiated(self) -> list[RetrievalJob]:
        return [job for job in self.jobs if job.status != JobStatus.FAILED]

    @property
    def failed(self) -> list[RetrievalJob]:
        return [job for job in self.jobs if job.status == JobStatus.FAILED]
