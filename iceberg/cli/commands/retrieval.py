"""``iceberg prepare-download``, ``iceberg download`` and ``iceberg request-inventory``.

Glacier retrieval takes hours, so it is driven in two steps:

1. ``prepare-download INVENTORY`` requests one retrieval job per archive
   in a vault inventory and writes a job manifest to
   ``<retrievals_folder>/<region>/<vault>/jobs-<timestamp>.csv``.
2. ``download JOBS_FILE TARGET`` (hours later) downloads every completed
   job into TARGET, named by the original archive name.

``request-inventory REGION VAULT`` writes a manifest for an inventory job,
which ``download`` fetches the same way.
"""

from __future__ import annotations

from pathlib import Path

import typer

from iceberg.cli.commands._common import (
    console,
    get_settings,
    location_option,
    reported_errors,
)
from iceberg.core.workflow import Workflow
from iceberg.models.jobs import VaultLocation


def prepare_download_cmd(
    ctx: typer.Context,
    inventory_file: Path = typer.Argument(
        ...,
        help="Vault inventory JSON; stored as <region>/<vault>/<file> unless --region/--vault are given.",
    ),
    region: str = typer.Option(None, "--region", help="Glacier region of the vault."),
    vault: str = typer.Option(None, "--vault", help="Glacier vault name."),
) -> None:
    """Request retrieval of every archive listed in a vault inventory."""
    settings = get_settings(ctx)
    location = location_option(region, vault)
    with reported_errors():
        manifest_path = Workflow(settings).prepare_download(inventory_file, location)
    console.print(f"[bold green]Job manifest written:[/bold green] {manifest_path}")
    console.print("[dim]Run 'iceberg download' on it once Glacier has completed the jobs.[/dim]")


def download_cmd(
    ctx: typer.Context,
    jobs_file: Path = typer.Argument(
        ...,
        help="Job manifest (job_id,filename per line); stored as <region>/<vault>/<file> unless --region/--vault are given.",
    ),
    target_folder: Path = typer.Argument(..., help="Folder to save downloaded archives to."),
    region: str = typer.Option(None, "--region", help="Glacier region of the vault."),
    vault: str = typer.Option(None, "--vault", help="Glacier vault name."),
) -> None:
    """Download all completed retrieval jobs listed in a job manifest."""
    settings = get_settings(ctx)
    location = location_option(region, vault)
    with reported_errors():
        count = Workflow(settings).download(jobs_file, target_folder, location)
    console.print(f"[bold green]Downloaded {count} file(s)[/bold green] into {target_folder}")


def request_inventory_cmd(
    ctx: typer.Context,
    region: str = typer.Argument(..., help="Glacier region of the vault."),
    vault: str = typer.Argument(..., help="Glacier vault name."),
) -> None:
    """Request a vault inventory from Glacier."""
    settings = get_settings(ctx)
    with reported_errors():
        manifest_path = Workflow(settings).request_inventory(
            VaultLocation(region=region, vault=vault)
        )
    console.print(f"[bold green]Inventory job manifest written:[/bold green] {manifest_path}")
