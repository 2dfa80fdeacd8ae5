"""iceberg CLI — Typer-based command-line interface.

Provides the ``iceberg`` command with subcommands for backing up a job,
uploading containers, requesting and downloading Glacier retrievals, and
restoring a folder from a chain of containers.

All user-facing output uses Rich; progress goes to the standard logger.
"""
