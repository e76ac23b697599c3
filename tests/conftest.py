import logging
import re
from typing import Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from app.api.routes import get_storage
from app.main import app
from app.storage.base import (
    DEFAULT_CONTENT_TYPE,
    BlobNotFoundError,
    InvalidResourceNameError,
    StorageClient,
    StorageError,
)

# Quiet SDK chatter during tests
logging.getLogger("boto3").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("moto").setLevel(logging.WARNING)

# pylint: disable=redefined-outer-name

_CONTAINER_NAME = re.compile(r"^[a-z0-9](?!.*--)[a-z0-9-]{1,61}[a-z0-9]$")


class InMemoryStorage(StorageClient):
    """Dict-backed storage that enforces Azure's container naming rules."""

    def __init__(self):
        self.containers: Dict[str, Dict[str, Tuple[bytes, str]]] = {}
        self.fail_with: Exception | None = None

    def _container(self, container_name: str) -> Dict[str, Tuple[bytes, str]]:
        if self.fail_with is not None:
            raise self.fail_with
        if not _CONTAINER_NAME.match(container_name):
            raise InvalidResourceNameError(
                "The specifed resource name contains invalid characters.\n"
                "ErrorCode:InvalidResourceName"
            )
        return self.containers.setdefault(container_name, {})

    def upload(self, container_name, blob_name, content, content_type=DEFAULT_CONTENT_TYPE):
        self._container(container_name)[blob_name] = (content, content_type)
        return True

    def download(self, container_name, blob_name):
        try:
            return self._container(container_name)[blob_name]
        except KeyError:
            raise BlobNotFoundError(container_name, blob_name)

    def exists(self, container_name, blob_name):
        return blob_name in self._container(container_name)

    def delete(self, container_name, blob_name):
        return self._container(container_name).pop(blob_name, None) is not None

    def list_blobs(self, container_name) -> List[str]:
        return list(self._container(container_name))


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def provider_error():
    return StorageError("ServerBusy: The server is currently unable to receive requests.")
