"""Base storage client abstract class.

Containers and Blobs
====================

Every operation is scoped to a named container (an Azure container or an
S3 bucket). Containers are created on first use with private access, so
callers never provision them up front.

Backends translate their SDK errors into the exceptions below. The API
layer only ever sees this hierarchy, never a vendor exception.
"""
from abc import ABC, abstractmethod
from typing import List, Tuple
from app.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class StorageError(Exception):
    """Storage provider rejected or failed an operation."""


class InvalidResourceNameError(StorageError):
    """Container or blob name is not acceptable to the provider."""

    def __init__(self, message: str):
        if "InvalidResourceName" not in message:
            message = f"InvalidResourceName: {message}"
        super().__init__(message)


class BlobNotFoundError(StorageError, FileNotFoundError):
    """Blob does not exist in the container."""

    def __init__(self, container_name: str, blob_name: str):
        super().__init__(f"BlobNotFound: {container_name}/{blob_name}")
        self.container_name = container_name
        self.blob_name = blob_name


class StorageClient(ABC):
    """Abstract base class for storage clients - pure storage operations only."""

    @abstractmethod
    def upload(self, container_name: str, blob_name: str, content: bytes,
               content_type: str = DEFAULT_CONTENT_TYPE) -> bool:
        """
        Upload content, overwriting any existing blob.

        Args:
            container_name: Container to write into (created if missing)
            blob_name: Name of the blob
            content: Raw bytes to upload
            content_type: MIME type stored with the blob

        Returns:
            True if successful

        Raises:
            InvalidResourceNameError: If the provider rejects a name
        """
        pass

    @abstractmethod
    def download(self, container_name: str, blob_name: str) -> Tuple[bytes, str]:
        """
        Download blob content and its content type.

        Raises:
            BlobNotFoundError: If blob doesn't exist
            InvalidResourceNameError: If the provider rejects a name
        """
        pass

    @abstractmethod
    def exists(self, container_name: str, blob_name: str) -> bool:
        """Check if a blob exists."""
        pass

    @abstractmethod
    def delete(self, container_name: str, blob_name: str) -> bool:
        """
        Delete a blob if it exists.

        Returns:
            True if a blob was removed, False if there was nothing to delete
        """
        pass

    @abstractmethod
    def list_blobs(self, container_name: str) -> List[str]:
        """
        List every blob name in a container.

        Follows all result pages; there is no cap on the number returned.
        """
        pass
