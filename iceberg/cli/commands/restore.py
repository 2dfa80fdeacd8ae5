"""``iceberg restore SOURCE TARGET`` — rebuild a folder from a chain of containers.

Extracts every container in SOURCE oldest first into TARGET, then deletes
files that the last snapshot no longer lists.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from iceberg.cli.commands._common import console, get_settings, reported_errors
from iceberg.core.workflow import Workflow


def restore_cmd(
    ctx: typer.Context,
    source: Path = typer.Argument(..., help="Folder holding the .zip containers."),
    target: Path = typer.Argument(..., help="Folder to restore into."),
    require_full_first: bool = typer.Option(
        False,
        "--require-full-first",
        help="Fail unless the oldest container is a full backup.",
    ),
) -> None:
    """Restore TARGET to the state captured by the last container in SOURCE."""
    settings = get_settings(ctx)
    with reported_errors():
        result = Workflow(settings).restore(
            source, target, require_full_first=require_full_first
        )

    console.print(
        Panel(
            "\n".join([
                f"[bold]Restored into:[/bold]  {result.base_folder}",
                f"[bold]Containers:[/bold]     {len(result.archives)}",
                f"[bold]Files:[/bold]          {result.file_count}",
                f"[bold]Removed:[/bold]        {len(result.removed)}",
            ]),
            title="[bold green]Restore complete[/bold green]",
            border_style="green",
            padding=(1, 2),
        )
    )
