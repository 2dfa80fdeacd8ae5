"""Main Typer application — imports and registers all CLI commands.

Entry point: ``iceberg`` (configured via pyproject.toml project.scripts).

Commands: backup, upload, diff, prepare-download, download,
request-inventory, restore.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError
from rich.markup import escape

from iceberg.cli.commands._common import configure_logging, console
from iceberg.cli.commands.backup import backup_cmd, diff_cmd, upload_cmd
from iceberg.cli.commands.restore import restore_cmd
from iceberg.cli.commands.retrieval import (
    download_cmd,
    prepare_download_cmd,
    request_inventory_cmd,
)
from iceberg.config import IcebergSettings

app = typer.Typer(
    name="iceberg",
    help="Iceberg: incremental folder backups to Amazon Glacier.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (overrides ICEBERG_LOG_LEVEL)."
    ),
) -> None:
    """Load settings once and configure logging for every command."""
    overrides = {"log_level": log_level} if log_level else {}
    try:
        settings = IcebergSettings(**overrides)
    except ValidationError as exc:
        console.print(f"[bold red]Invalid settings:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    configure_logging(settings.log_level)
    ctx.obj = settings


# Register subcommands
app.command(name="backup", help="Archive files changed since the last backup of a job.")(backup_cmd)
app.command(name="upload", help="Upload an existing container to a job's vault.")(upload_cmd)
app.command(name="diff", help="Show what the next backup of a job would archive.")(diff_cmd)
app.command(name="prepare-download", help="Request retrieval of every archive in a vault inventory.")(prepare_download_cmd)
app.command(name="download", help="Download completed retrieval jobs from a job manifest.")(download_cmd)
app.command(name="request-inventory", help="Request a vault inventory from Glacier.")(request_inventory_cmd)
app.command(name="restore", help="Restore a folder from a chain of containers.")(restore_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
