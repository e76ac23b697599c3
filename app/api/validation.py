"""Request parameter checks shared by the content file routes."""
from typing import Any, List, Optional
from app.api.models import ErrorNumber, ErrorResponse, generate_error_response

MAX_CONTAINER_NAME_LENGTH = 75
MAX_FILE_NAME_LENGTH = 63
MIN_FILE_NAME_LENGTH = 3

# Marks "no file name in this request" (listing routes), distinct from None
NOT_SUPPLIED = object()


def validate_payload(container_name: Optional[str], file_name: Any = NOT_SUPPLIED,
                     *file_data: Any) -> List[ErrorResponse]:
    """
    Check route parameters and uploaded parts.

    Returns every problem found, in parameter order; an empty list means the
    request may proceed.
    """
    errors: List[ErrorResponse] = []

    if container_name is None:
        errors.append(generate_error_response(ErrorNumber.NULL, None, "containerName", None))
    else:
        if len(container_name) > MAX_CONTAINER_NAME_LENGTH:
            errors.append(generate_error_response(ErrorNumber.TOO_LARGE, None, "containerName", container_name))
        if container_name == "":
            errors.append(generate_error_response(ErrorNumber.REQUIRED, None, "containerName", container_name))

    if file_name is not NOT_SUPPLIED:
        if file_name is None:
            errors.append(generate_error_response(ErrorNumber.NULL, None, "fileName", None))
        else:
            if file_name == "":
                errors.append(generate_error_response(ErrorNumber.REQUIRED, None, "fileName", file_name))
            if len(file_name) > MAX_FILE_NAME_LENGTH:
                errors.append(generate_error_response(ErrorNumber.TOO_LARGE, None, "fileName", file_name))
            elif len(file_name) < MIN_FILE_NAME_LENGTH:
                errors.append(generate_error_response(ErrorNumber.TOO_SMALL, None, "fileName", file_name))

    for item in file_data:
        if item is None:
            errors.append(generate_error_response(ErrorNumber.REQUIRED, None, "fileData", None))

    return errors
