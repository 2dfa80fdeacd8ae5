"""``iceberg backup``, ``iceberg upload`` and ``iceberg diff`` — the backup side.

``backup JOB`` archives every file changed since the job's previous run into
one container in the work folder (optionally uploading it); ``upload JOB
FILE`` sends an existing container to the job's vault; ``diff JOB`` shows
what the next backup would archive.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel
from rich.table import Table

from iceberg.cli.commands._common import console, get_job, get_settings, reported_errors
from iceberg.core.workflow import Workflow


def backup_cmd(
    ctx: typer.Context,
    job_name: str = typer.Argument(..., help="Name of the job definition to run."),
    upload: bool = typer.Option(
        False,
        "--upload",
        "-u",
        help="Upload the new container to the job's Glacier vault.",
    ),
) -> None:
    """Create a container with all files changed since the last backup."""
    settings = get_settings(ctx)
    with reported_errors():
        job = get_job(settings, job_name)
        artifact = Workflow(settings, job).create_archive(upload=upload)

    kind = "full" if artifact.is_full else "incremental"
    console.print(
        Panel(
            "\n".join([
                f"[bold]Container:[/bold]  {artifact.path}",
                f"[bold]Kind:[/bold]       {kind}",
                f"[bold]Archived:[/bold]   {artifact.archived_count} files ({len(artifact.added)} added, {len(artifact.modified)} modified)",
                f"[bold]Removed:[/bold]    {len(artifact.removed)}",
                f"[bold]Snapshot:[/bold]   {artifact.file_count} files",
                f"[bold]Size:[/bold]       {artifact.size_bytes} bytes",
                f"[bold]Uploaded:[/bold]   {'yes' if upload else 'no'}",
            ]),
            title=f"[bold green]Backup {job_name} complete[/bold green]",
            border_style="green",
            padding=(1, 2),
        )
    )


def upload_cmd(
    ctx: typer.Context,
    job_name: str = typer.Argument(..., help="Job whose vault receives the file."),
    zip_file: Path = typer.Argument(..., help="Container file to upload."),
) -> None:
    """Upload an existing container to the job's Glacier vault."""
    settings = get_settings(ctx)
    with reported_errors():
        job = get_job(settings, job_name)
        archive_id = Workflow(settings, job).upload(zip_file)
    console.print(f"[bold green]Uploaded[/bold green] {zip_file.name} as [cyan]{archive_id}[/cyan]")


def diff_cmd(
    ctx: typer.Context,
    job_name: str = typer.Argument(..., help="Name of the job definition."),
    limit: int = typer.Option(
        50, "--limit", "-n", help="Maximum number of paths listed per change kind."
    ),
) -> None:
    """Show what the next backup of a job would archive."""
    settings = get_settings(ctx)
    with reported_errors():
        job = get_job(settings, job_name)
        changes = Workflow(settings, job).preview()

    if changes.is_empty:
        console.print("[dim]No changes since the last backup.[/dim]")
        return

    table = Table(title=f"Pending changes for {job_name}")
    table.add_column("Change", style="bold")
    table.add_column("Path", style="cyan")
    for label, style, paths in (
        ("added", "green", changes.added),
        ("modified", "yellow", changes.modified),
        ("removed", "red", changes.removed),
    ):
        for path in paths[:limit]:
            table.add_row(f"[{style}]{label}[/{style}]", path)
        if len(paths) > limit:
            table.add_row(f"[{style}]{label}[/{style}]", f"[dim]... and {len(paths) - limit} more[/dim]")
    console.print(table)
