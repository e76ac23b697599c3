"""S3/MinIO storage client implementation."""
import os
from typing import Dict, List, Optional, Tuple
import boto3
from botocore.exceptions import ClientError, ParamValidationError
from app.storage.base import (
    DEFAULT_CONTENT_TYPE,
    BlobNotFoundError,
    InvalidResourceNameError,
    StorageClient,
    StorageError,
)
from app.logging import get_logger

logger = get_logger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


class S3MinioClient(StorageClient):
    """Storage client for S3-compatible storage (MinIO, AWS S3). Containers map to buckets."""

    def __init__(
        self,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        use_ssl: Optional[bool] = None,
        client=None
    ):
        """
        Initialize S3/MinIO client.

        Args:
            endpoint_url: S3 endpoint URL (for MinIO)
            access_key: Access key ID
            secret_key: Secret access key
            use_ssl: Whether to use SSL
            client: Prebuilt boto3 S3 client, skips the above
        """
        if client is not None:
            self.client = client
            self.endpoint_url = client.meta.endpoint_url
        else:
            # Get from env if not provided
            self.endpoint_url = endpoint_url or os.getenv("MINIO_ENDPOINT", "http://minio:9000")
            access_key = access_key or os.getenv("MINIO_ACCESS_KEY", "minioadmin")
            secret_key = secret_key or os.getenv("MINIO_SECRET_KEY", "minioadmin")
            if use_ssl is None:
                use_ssl = os.getenv("MINIO_USE_SSL", "false").lower() in ("1", "true", "yes")

            self.client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                use_ssl=use_ssl,
                verify=False  # For MinIO with self-signed certs
            )

        # bucket name -> True once known to exist
        self._buckets: Dict[str, bool] = {}

        logger.info("s3_client_initialized", extra={"endpoint": self.endpoint_url})

    def _translate(self, e: Exception, bucket_name: str,
                   blob_name: Optional[str] = None) -> StorageError:
        """Map a botocore error onto the storage error hierarchy."""
        if isinstance(e, ParamValidationError):
            return InvalidResourceNameError(str(e))
        code = _error_code(e)
        if code == "InvalidBucketName":
            return InvalidResourceNameError(str(e))
        if blob_name is not None and code in _NOT_FOUND_CODES:
            return BlobNotFoundError(bucket_name, blob_name)
        if code == "NoSuchBucket":
            self._buckets.pop(bucket_name, None)
        return StorageError(str(e))

    def _ensure_bucket(self, bucket_name: str):
        """Create bucket if it doesn't exist."""
        if self._buckets.get(bucket_name):
            return
        try:
            self.client.head_bucket(Bucket=bucket_name)
        except ParamValidationError as e:
            raise self._translate(e, bucket_name) from e
        except ClientError as e:
            code = _error_code(e)
            if code == "400":
                # HEAD responses carry no error body
                raise InvalidResourceNameError(f"Invalid bucket name: {bucket_name}") from e
            if code not in _MISSING_BUCKET_CODES:
                logger.error("bucket_check_failed", extra={"bucket": bucket_name, "error": str(e)})
                raise self._translate(e, bucket_name) from e
            self._create_bucket(bucket_name)
        self._buckets[bucket_name] = True

    def _create_bucket(self, bucket_name: str):
        params = {"Bucket": bucket_name}
        region = self.client.meta.region_name
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            self.client.create_bucket(**params)
        except ClientError as e:
            if _error_code(e) in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                return
            logger.error("bucket_create_failed", extra={"bucket": bucket_name, "error": str(e)})
            raise self._translate(e, bucket_name) from e
        logger.info("bucket_created", extra={"bucket": bucket_name})

    def upload(self, container_name: str, blob_name: str, content: bytes,
               content_type: str = DEFAULT_CONTENT_TYPE) -> bool:
        """Upload content to S3/MinIO, overwriting an existing object."""
        self._ensure_bucket(container_name)
        try:
            self.client.put_object(
                Bucket=container_name,
                Key=blob_name,
                Body=content,
                ContentType=content_type
            )
        except (ClientError, ParamValidationError) as e:
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
        """Download blob content from S3/MinIO."""
        self._ensure_bucket(container_name)
        try:
            response = self.client.get_object(Bucket=container_name, Key=blob_name)
            content = response["Body"].read()
        except (ClientError, ParamValidationError) as e:
            error = self._translate(e, container_name, blob_name)
            if not isinstance(error, BlobNotFoundError):
                logger.error("download_failed", extra={
                    "container": container_name,
                    "blob_name": blob_name,
                    "error": str(e)
                })
            raise error from e

        logger.info("blob_downloaded", extra={
            "container": container_name,
            "blob_name": blob_name,
            "size": len(content)
        })
        return content, response.get("ContentType") or DEFAULT_CONTENT_TYPE

    def exists(self, container_name: str, blob_name: str) -> bool:
        """Check if blob exists in S3/MinIO."""
        self._ensure_bucket(container_name)
        try:
            self.client.head_object(Bucket=container_name, Key=blob_name)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            logger.error("exists_check_failed", extra={
                "container": container_name,
                "blob_name": blob_name,
                "error": str(e)
            })
            raise self._translate(e, container_name) from e
        except ParamValidationError as e:
            raise self._translate(e, container_name) from e

    def delete(self, container_name: str, blob_name: str) -> bool:
        """Delete blob from S3/MinIO if it exists."""
        # delete_object succeeds for missing keys, so look first
        if not self.exists(container_name, blob_name):
            return False
        try:
            self.client.delete_object(Bucket=container_name, Key=blob_name)
        except (ClientError, ParamValidationError) as e:
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
        """List every object in an S3/MinIO bucket, page by page."""
        self._ensure_bucket(container_name)
        blob_names = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=container_name):
                for obj in page.get("Contents", []):
                    blob_names.append(obj["Key"])
        except (ClientError, ParamValidationError) as e:
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
