"""Content hashing helpers for checksum-based change detection."""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024


def sha256_file(path: Path) -> str:
    """Return the SHA-256 hex digest of a file, read in 1 MiB chunks."""
    digest = hashlib.sha256()
    with Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def file_checksum(path: Path) -> str:
    """Checksum in the ``"sha256:<hex>"`` form stored in snapshots."""
    return f"sha256:{sha256_file(path)}"
