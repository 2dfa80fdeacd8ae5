"""Bridges to external services.

- ``glacier`` — Amazon S3 Glacier via boto3 (upload, retrieval jobs, download)
"""

from iceberg.bridge.glacier import ColdStorageClient, GlacierClient

__all__ = ["ColdStorageClient", "GlacierClient"]
