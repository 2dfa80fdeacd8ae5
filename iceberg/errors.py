"""Error hierarchy for backup, restore, and retrieval operations.

Every error raised by iceberg derives from :class:`IcebergError` so the CLI
can report failures uniformly.  Low-level exceptions (``OSError``,
``zipfile.BadZipFile``, botocore errors, pydantic validation errors) are
translated where the resource is touched and chained with ``from``.
"""

from __future__ import annotations


class IcebergError(RuntimeError):
    """Base exception for all iceberg failures."""


class ConfigError(IcebergError):
    """Raised for malformed job definitions or exclude patterns."""


class NotFoundError(IcebergError):
    """Raised when a folder, artifact, job, or subfolder is missing."""


class IncompleteChainError(NotFoundError):
    """Raised when the first archive of a restore chain is not a full backup."""


class ParseError(IcebergError):
    """Raised for malformed inventory, manifest, or snapshot documents."""


class ArchiveIOError(IcebergError):
    """Raised when a filesystem or archive read/write fails."""


class ServiceError(IcebergError):
    """Raised on cold-storage transport or authentication failure."""


__all__ = [
    "ArchiveIOError",
    "ConfigError",
    "IcebergError",
    "IncompleteChainError",
    "NotFoundError",
    "ParseError",
    "ServiceError",
]
