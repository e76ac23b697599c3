"""Blob storage backends and the factory that picks one from the environment."""
import os
from typing import Optional
from app.storage.base import (
    BlobNotFoundError,
    InvalidResourceNameError,
    StorageClient,
    StorageError,
)
from app.storage.s3_minio import S3MinioClient
from app.storage.azure_blob import AzureBlobClient
from app.logging import get_logger

logger = get_logger(__name__)

_S3_TYPES = ("minio", "s3")


def get_storage_client(storage_type: Optional[str] = None) -> StorageClient:
    """
    Build the storage client for the configured backend.

    ``storage_type`` is ``azure``, ``minio`` or ``s3`` (case-insensitive);
    when omitted, ``STORAGE_TYPE`` decides, falling back to Azure.

    Raises:
        ValueError: for any other backend name, or when the chosen
            backend is missing its connection settings
    """
    backend = (storage_type or os.getenv("STORAGE_TYPE", "azure")).lower()
    logger.info("creating_storage_client", extra={"type": backend})

    if backend == "azure":
        return AzureBlobClient()
    if backend in _S3_TYPES:
        return S3MinioClient()
    raise ValueError(f"Unknown storage type: {backend}")


__all__ = [
    "StorageClient",
    "StorageError",
    "InvalidResourceNameError",
    "BlobNotFoundError",
    "S3MinioClient",
    "AzureBlobClient",
    "get_storage_client",
]
