"""Application configuration — env-driven settings and job definitions.

Settings come from ``ICEBERG_*`` environment variables or a ``.env`` file.
They are constructed once by the entry point and passed down explicitly;
nothing below the CLI reads the environment.

Job definitions live one per file in the jobs folder as
``<jobs_folder>/<name>.toml``::

    source_folder = "/home/me/documents"
    exclude_pattern = "(^|/)\\.cache/|\\.tmp$"
    region = "eu-west-1"
    vault = "documents"
"""

from __future__ import annotations

import logging
import re
import tomllib
from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from iceberg.errors import ConfigError, NotFoundError
from iceberg.models.jobs import JobConfig


class IcebergSettings(BaseSettings):
    """Application settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ICEBERG_WORK_FOLDER=/var/backups/iceberg
        export ICEBERG_LOG_LEVEL=DEBUG
        export ICEBERG_AWS_PROFILE=backup
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ICEBERG_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage paths
    work_folder: Path = Path(".iceberg/work")
    jobs_folder: Path = Path(".iceberg/jobs")
    retrievals_folder: Path = Path(".iceberg/retrievals")

    # Observability
    log_level: str = "INFO"

    # Glacier access
    aws_profile: str | None = None
    glacier_endpoint_url: str | None = None
    retrieval_tier: str | None = None  # Expedited | Standard | Bulk

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level {value!r}")
        return level


def load_job(jobs_folder: Path, name: str) -> JobConfig:
    """Load the job definition ``<jobs_folder>/<name>.toml``.

    Raises
    ------
    NotFoundError
        If the job file does not exist.
    ConfigError
        If the file is not valid TOML, misses required keys, or carries an
        invalid exclude pattern.
    """
    path = Path(jobs_folder) / f"{name}.toml"
    if not path.is_file():
        raise NotFoundError(f"Job definition not found: {path}")
    try:
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Job definition {path} is not valid TOML: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read job definition {path}: {exc}") from exc

    try:
        job = JobConfig(name=name, **raw)
    except (TypeError, ValidationError) as exc:
        raise ConfigError(f"Invalid job definition {path}: {exc}") from exc

    try:
        re.compile(job.exclude_pattern)
    except re.error as exc:
        raise ConfigError(
            f"Invalid exclude_pattern in {path}: {job.exclude_pattern!r} ({exc})"
        ) from exc
    return job
