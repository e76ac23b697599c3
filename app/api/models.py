"""API request/response models."""
from enum import IntEnum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ErrorNumber(IntEnum):
    ENTITY_EXISTS = 1
    TOO_LARGE = 2
    REQUIRED = 3
    NOT_FOUND = 4
    TOO_SMALL = 5
    NULL = 6


ERROR_DESCRIPTIONS = {
    ErrorNumber.ENTITY_EXISTS: "The entity already exists.",
    ErrorNumber.TOO_LARGE: "The parameter value is too large.",
    ErrorNumber.REQUIRED: "The parameter is required.",
    ErrorNumber.NOT_FOUND: "The entity could not be found.",
    ErrorNumber.TOO_SMALL: "The parameter value is too small.",
    ErrorNumber.NULL: "The parameter cannot be null.",
}


class ErrorResponse(BaseModel):
    """One problem with one request parameter. Serialised with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error_number: Optional[int] = Field(None, description="Catalog number, null for provider messages")
    parameter_name: Optional[str] = None
    parameter_value: Optional[str] = None
    error_description: Optional[str] = None

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


def generate_error_response(
    error_number: Optional[int],
    error_message: Optional[str],
    parameter_name: str,
    parameter_value: Optional[str],
) -> ErrorResponse:
    """Build an error entry; known numbers get their catalog description, anything else the message."""
    try:
        description = ERROR_DESCRIPTIONS[ErrorNumber(error_number)]
    except (TypeError, ValueError):
        description = error_message
    return ErrorResponse(
        error_number=int(error_number) if error_number is not None else None,
        parameter_name=parameter_name,
        parameter_value=parameter_value,
        error_description=description,
    )
