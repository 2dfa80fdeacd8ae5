"""Backup job and vault location models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from iceberg.errors import ConfigError


class VaultLocation(BaseModel):
    """A Glacier vault and the region it lives in.

    Passed explicitly to the retrieval coordinator.  On disk, retrieval
    manifests keep the historical ``<region>/<vault>/<file>`` layout, which
    :meth:`from_jobs_file` and :meth:`manifest_dir` translate to and from.
    """

    model_config = ConfigDict(frozen=True)

    region: str
    vault: str

    @classmethod
    def from_jobs_file(cls, jobs_file: Path) -> VaultLocation:
        """Infer the location from a manifest path laid out as ``<region>/<vault>/<file>``."""
        jobs_file = Path(jobs_file).absolute()
        vault = jobs_file.parent.name
        region = jobs_file.parent.parent.name
        if not vault or not region:
            raise ConfigError(
                f"Cannot infer region/vault from {jobs_file}; expected <region>/<vault>/<file>"
            )
        return cls(region=region, vault=vault)

    def manifest_dir(self, root: Path) -> Path:
        return Path(root) / self.region / self.vault

    def __str__(self) -> str:
        return f"{self.region}/{self.vault}"


class JobConfig(BaseModel):
    """Definition of one source-folder-to-vault backup relationship.

    Loaded from ``<jobs_folder>/<name>.toml`` by
    :func:`iceberg.config.load_job`.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    source_folder: Path
    exclude_pattern: str = ""  # regular expression; empty excludes nothing
    region: str
    vault: str
    compare_checksums: bool = False

    @property
    def location(self) -> VaultLocation:
        return VaultLocation(region=self.region, vault=self.vault)
