"""Helpers shared by CLI commands: settings, job loading, error reporting."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console

from iceberg.config import IcebergSettings, load_job
from iceberg.errors import IcebergError
from iceberg.models.jobs import JobConfig, VaultLocation

console = Console()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    """Configure the root logger once per process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def get_settings(ctx: typer.Context) -> IcebergSettings:
    """Settings built by the app callback, or fresh ones outside it."""
    settings = ctx.obj if ctx is not None else None
    if isinstance(settings, IcebergSettings):
        return settings
    return IcebergSettings()


def get_job(settings: IcebergSettings, name: str) -> JobConfig:
    return load_job(settings.jobs_folder, name)


def location_option(region: str | None, vault: str | None) -> VaultLocation | None:
    """Build a VaultLocation from ``--region``/``--vault``, or None if both are unset."""
    if region is None and vault is None:
        return None
    if not region or not vault:
        console.print("[bold red]--region and --vault must be given together.[/bold red]")
        raise typer.Exit(code=2)
    return VaultLocation(region=region, vault=vault)


@contextmanager
def reported_errors() -> Iterator[None]:
    """Print iceberg errors in red and exit with status 1."""
    try:
        yield
    except IcebergError as exc:
        console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
