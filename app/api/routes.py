"""API routes for content file operations."""
import threading
from typing import Annotated, List, Optional
from urllib.parse import quote
from fastapi import APIRouter, Depends, File, HTTPException, Path, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from app.logging import get_logger, stage
from app.api.models import ErrorNumber, ErrorResponse, generate_error_response
from app.api.validation import validate_payload
from app.storage import (
    BlobNotFoundError,
    InvalidResourceNameError,
    StorageClient,
    StorageError,
    get_storage_client,
)
from app.storage.base import DEFAULT_CONTENT_TYPE

logger = get_logger(__name__)

# Create routers for different services
content_files_router = APIRouter(prefix="/api/v1", tags=["contentfiles"])
health_router = APIRouter(prefix="/api/health", tags=["health"])

_storage_client: Optional[StorageClient] = None
_storage_lock = threading.Lock()


def get_storage() -> StorageClient:
    """Return the process-wide storage client, building it on first use."""
    global _storage_client
    if _storage_client is None:
        with _storage_lock:
            if _storage_client is None:
                _storage_client = get_storage_client()
    return _storage_client


def _invalid_payload(errors: List[ErrorResponse]) -> JSONResponse:
    return JSONResponse(status_code=400, content=[e.to_json() for e in errors])


def _storage_failure(e: StorageError, container_name: str, file_name: Optional[str] = None) -> Response:
    """Translate a storage error into the matching HTTP response."""
    if isinstance(e, InvalidResourceNameError):
        error = generate_error_response(None, str(e), "containerName", container_name)
        return JSONResponse(status_code=400, content=error.to_json())
    if isinstance(e, BlobNotFoundError) and file_name is not None:
        error = generate_error_response(ErrorNumber.NOT_FOUND, None, "fileName", file_name)
        return JSONResponse(status_code=404, content=error.to_json())
    return Response(status_code=400)


def _not_found(file_name: str) -> JSONResponse:
    error = generate_error_response(ErrorNumber.NOT_FOUND, None, "fileName", file_name)
    return JSONResponse(status_code=404, content=error.to_json())


def _unexpected(action: str, e: Exception, container_name: str, file_name: Optional[str] = None):
    logger.error(f"{action}_failed", extra={
        "container": container_name,
        "blob_name": file_name,
        "error": str(e)
    })
    raise HTTPException(status_code=500, detail=f"Failed to {action.replace('_', ' ')}")


ContainerName = Annotated[str, Path(description="Container holding the files")]
FileName = Annotated[str, Path(description="Name of the file within the container")]


@content_files_router.put(
    "/{container_name}/contentfiles/{file_name}",
    name="UploadFile",
    status_code=201,
    responses={201: {"description": "File stored"},
               400: {"model": List[ErrorResponse]}, 404: {"model": ErrorResponse}},
)
def upload_file(
    request: Request,
    container_name: ContainerName,
    file_name: FileName,
    form_file: Optional[UploadFile] = File(None, alias="formFile"),
    storage: StorageClient = Depends(get_storage),
):
    """Uploads a file, or overwrites a file if it already exists."""
    errors = validate_payload(container_name, file_name, form_file)
    if errors:
        return _invalid_payload(errors)

    try:
        content = form_file.file.read()
        with stage("upload", expected=(StorageError,), container=container_name, blob_name=file_name):
            storage.upload(container_name, file_name, content,
                           form_file.content_type or DEFAULT_CONTENT_TYPE)
    except StorageError as e:
        return _storage_failure(e, container_name, file_name)
    except Exception as e:
        _unexpected("upload_file", e, container_name, file_name)

    location = request.url_for(
        "GetFileById",
        container_name=quote(container_name, safe=""),
        file_name=quote(file_name, safe=""),
    )
    return Response(status_code=201, headers={"Location": str(location)})


@content_files_router.patch(
    "/{container_name}/contentfiles/{file_name}",
    name="UpdateFile",
    status_code=204,
    responses={400: {"model": List[ErrorResponse]}, 404: {"model": ErrorResponse}},
)
def update_file(
    container_name: ContainerName,
    file_name: FileName,
    form_file: Optional[UploadFile] = File(None, alias="formFile"),
    storage: StorageClient = Depends(get_storage),
):
    """Replaces the content of an existing file."""
    errors = validate_payload(container_name, file_name, form_file)
    if errors:
        return _invalid_payload(errors)

    try:
        with stage("update", expected=(StorageError,), container=container_name, blob_name=file_name):
            if not storage.exists(container_name, file_name):
                return _not_found(file_name)
            content = form_file.file.read()
            storage.upload(container_name, file_name, content,
                           form_file.content_type or DEFAULT_CONTENT_TYPE)
    except StorageError as e:
        return _storage_failure(e, container_name, file_name)
    except Exception as e:
        _unexpected("update_file", e, container_name, file_name)

    return Response(status_code=204)


@content_files_router.delete(
    "/{container_name}/contentfiles/{file_name}",
    name="DeleteFile",
    status_code=204,
    responses={400: {"model": List[ErrorResponse]}, 404: {"model": ErrorResponse}},
)
def delete_file(
    container_name: ContainerName,
    file_name: FileName,
    storage: StorageClient = Depends(get_storage),
):
    """Deletes an existing file."""
    errors = validate_payload(container_name, file_name)
    if errors:
        return _invalid_payload(errors)

    try:
        with stage("delete", expected=(StorageError,), container=container_name, blob_name=file_name):
            if not storage.exists(container_name, file_name):
                return _not_found(file_name)
            storage.delete(container_name, file_name)
    except StorageError as e:
        return _storage_failure(e, container_name, file_name)
    except Exception as e:
        _unexpected("delete_file", e, container_name, file_name)

    return Response(status_code=204)


@content_files_router.get(
    "/{container_name}/contentfiles",
    name="GetContainerFiles",
    response_model=List[str],
    responses={400: {"model": List[ErrorResponse]}},
)
def get_container_files(
    container_name: ContainerName,
    storage: StorageClient = Depends(get_storage),
):
    """Returns the names of all files in the container."""
    errors = validate_payload(container_name)
    if errors:
        return _invalid_payload(errors)

    try:
        with stage("list", expected=(StorageError,), container=container_name):
            return storage.list_blobs(container_name)
    except StorageError as e:
        return _storage_failure(e, container_name)
    except Exception as e:
        _unexpected("list_files", e, container_name)


@content_files_router.get(
    "/{container_name}/contentfiles/{file_name}",
    name="GetFileById",
    response_class=Response,
    responses={200: {"content": {"application/octet-stream": {}}},
               400: {"model": List[ErrorResponse]}, 404: {"model": ErrorResponse}},
)
def get_file_by_id(
    container_name: ContainerName,
    file_name: FileName,
    storage: StorageClient = Depends(get_storage),
):
    """Downloads a file with the content type it was stored with."""
    errors = validate_payload(container_name, file_name)
    if errors:
        return _invalid_payload(errors)

    try:
        with stage("download", expected=(StorageError,), container=container_name, blob_name=file_name):
            content, content_type = storage.download(container_name, file_name)
    except StorageError as e:
        return _storage_failure(e, container_name, file_name)
    except Exception as e:
        _unexpected("download_file", e, container_name, file_name)

    # stored type goes back untouched, no charset added
    return Response(content=content, headers={"content-type": content_type})


# Health endpoints
@health_router.get("/ready")
def ready_check():
    """Check if the storage client can be built."""
    try:
        get_storage()
    except Exception as e:
        logger.error("storage_unavailable", extra={"error": str(e)})
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}

@health_router.get("/live")
async def liveness_check():
    """Simple liveness check."""
    return {"status": "alive"}
