"""Azure Blob Storage client implementation."""
import os
from typing import Dict, List, Optional, Tuple
from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings
from azure.core.exceptions import HttpResponseError, ResourceExistsError, ResourceNotFoundError
from app.storage.base import (
    DEFAULT_CONTENT_TYPE,
    BlobNotFoundError,
    InvalidResourceNameError,
    StorageClient,
    StorageError,
)
from app.logging import get_logger

logger = get_logger(__name__)


class AzureBlobClient(StorageClient):
    """Storage client for Azure Blob Storage."""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        account_url: Optional[str] = None,
        credential: Optional[str] = None,
        blob_service_client: Optional[BlobServiceClient] = None
    ):
        """
        Initialize Azure Blob Storage client.

        Args:
            connection_string: Azure Storage connection string
            account_url: Alternative to connection string (requires credential)
            credential: Azure credential (SAS token or account key)
            blob_service_client: Prebuilt service client, skips the above
        """
        # Get from env if not provided
        self.connection_string = connection_string or os.getenv("AZURE_STORAGE_CONNECTION_STRING")
        account_url = account_url or os.getenv("AZURE_STORAGE_ACCOUNT_URL")
        credential = credential or os.getenv("AZURE_STORAGE_CREDENTIAL")

        if blob_service_client is not None:
            self.blob_service_client = blob_service_client
        elif self.connection_string:
            self.blob_service_client = BlobServiceClient.from_connection_string(
                self.connection_string
            )
        elif account_url and credential:
            self.blob_service_client = BlobServiceClient(
                account_url=account_url,
                credential=credential
            )
        else:
            raise ValueError("Either connection_string or (account_url + credential) required")

        # container name -> client, populated on first use
        self._containers: Dict[str, ContainerClient] = {}

        logger.info("azure_client_initialized", extra={
            "account": self.blob_service_client.account_name
        })

    def _translate(self, e: HttpResponseError, container_name: str,
                   blob_name: Optional[str] = None) -> StorageError:
        """Map an Azure SDK error onto the storage error hierarchy."""
        code = getattr(e, "error_code", None)
        if code == "InvalidResourceName" or "InvalidResourceName" in str(e):
            return InvalidResourceNameError(str(e))
        if blob_name is not None and (
            code == "BlobNotFound"
            or (isinstance(e, ResourceNotFoundError) and code != "ContainerNotFound")
        ):
            return BlobNotFoundError(container_name, blob_name)
        if code == "ContainerNotFound":
            # Deleted behind our back; recreate on next access
            self._containers.pop(container_name, None)
        return StorageError(str(e))

    def _container(self, container_name: str) -> ContainerClient:
        """Get a container client, creating the container if it doesn't exist."""
        container_client = self._containers.get(container_name)
        if container_client is not None:
            return container_client

        container_client = self.blob_service_client.get_container_client(container_name)
        try:
            container_client.create_container(public_access=None)
            logger.info("container_created", extra={"container": container_name})
        except ResourceExistsError:
            pass
        except HttpResponseError as e:
            logger.error("container_create_failed", extra={
                "container": container_name,
                "error": str(e)
            })
            raise self._translate(e, container_name) from e

        self._containers[container_name] = container_client
        return container_client

    def upload(self, container_name: str, blob_name: str, content: bytes,
               content_type: str = DEFAULT_CONTENT_TYPE) -> bool:
        """Upload content to Azure Blob Storage, overwriting an existing blob."""
        blob_client = self._container(container_name).get_blob_client(blob_name)
        try:
            blob_client.upload_blob(
                content,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type)
            )
        except HttpResponseError as e:
            logger.error("upload_failed", extra={
                "container": container_name,
                "blob_name": blob_name,
                "error": str(e)
            })
            raise self._translate(e, container_name) from e

        logger.info("blob_uploaded", extra={
            "container": container_name,
            "blob_name": blob_name,
            "size": len(content),
            "content_type": content_type
        })
        return True

    def download(self, container_name: str, blob_name: str) -> Tuple[bytes, str]:
        """Download blob content from Azure."""
        blob_client = self._container(container_name).get_blob_client(blob_name)
        try:
            downloader = blob_client.download_blob()
            content = downloader.readall()
        except HttpResponseError as e:
            error = self._translate(e, container_name, blob_name)
            if not isinstance(error, BlobNotFoundError):
                logger.error("download_failed", extra={
                    "container": container_name,
                    "blob_name": blob_name,
                    "error": str(e)
                })
            raise error from e

        settings = downloader.properties.content_settings
        content_type = (settings.content_type if settings else None) or DEFAULT_CONTENT_TYPE

        logger.info("blob_downloaded", extra={
            "container": container_name,
            "blob_name": blob_name,
            "size": len(content)
        })
        return content, content_type

    def exists(self, container_name: str, blob_name: str) -> bool:
        """Check if blob exists in Azure."""
        blob_client = self._container(container_name).get_blob_client(blob_name)
        try:
            return blob_client.exists()
        except HttpResponseError as e:
            logger.error("exists_check_failed", extra={
                "container": container_name,
                "blob_name": blob_name,
                "error": str(e)
            })
            raise self._translate(e, container_name) from e

    def delete(self, container_name: str, blob_name: str) -> bool:
        """Delete blob from Azure if it exists."""
        blob_client = self._container(container_name).get_blob_client(blob_name)
        try:
            blob_client.delete_blob(delete_snapshots="include")
        except ResourceNotFoundError:
            return False
        except HttpResponseError as e:
            logger.error("delete_failed", extra={
                "container": container_name,
                "blob_name": blob_name,
                "error": str(e)
            })
            raise self._translate(e, container_name) from e

        logger.info("blob_deleted", extra={
            "container": container_name,
            "blob_name": blob_name
        })
        return True

    def list_blobs(self, container_name: str) -> List[str]:
        """List every blob in an Azure container, page by page."""
        container_client = self._container(container_name)
        blob_names = []
        try:
            for page in container_client.list_blobs().by_page():
                for blob in page:
                    blob_names.append(blob.name)
        except HttpResponseError as e:
            logger.error("list_failed", extra={
                "container": container_name,
                "error": str(e)
            })
            raise self._translate(e, container_name) from e

        logger.info("blobs_listed", extra={
            "container": container_name,
            "count": len(blob_names)
        })
        return blob_names
