"""Upload Gateway — sends one finished container to its vault."""

from __future__ import annotations

import logging
from pathlib import Path

from iceberg.bridge.glacier import ColdStorageClient
from iceberg.errors import ArchiveIOError

logger = logging.getLogger(__name__)


class UploadGateway:
    """Single blocking upload per call; no retry.

    Parameters
    ----------
    client:
        The cold-storage client uploads are delegated to.
    """

    def __init__(self, client: ColdStorageClient) -> None:
        self._client = client

    def upload(self, region: str, vault: str, archive_name: str, file_path: Path) -> str:
        """Upload ``file_path`` as ``archive_name``; returns the archive id.

        Raises
        ------
        ArchiveIOError
            If the file is missing or unreadable.
        ServiceError
            On transport or authentication failure.
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise ArchiveIOError(f"Archive to upload not found: {file_path}")
        logger.info("Uploading %s to %s/%s", archive_name, region, vault)
        return self._client.upload_archive(region, vault, archive_name, file_path)
