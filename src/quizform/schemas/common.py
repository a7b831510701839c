"""Common Pydantic schemas for API requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., examples=["healthy"])
    service: str = Field(..., examples=["quizform-api"])
    version: str = Field(..., examples=["0.1.0"])


class ErrorResponse(BaseModel):
    """Body of every handled error; exception details are merged in at top level."""

    model_config = ConfigDict(extra="allow")

    detail: str = Field(..., examples=["Form with id 'f1' not found"])
    error_code: str = Field(
        ...,
        examples=["NOT_FOUND", "UNAUTHORIZED", "FORBIDDEN", "STORAGE_UNAVAILABLE"],
    )
    request_id: str | None = Field(None, description="X-Request-ID of the failed request")


class ErrorResponseWithDetails(ErrorResponse):
    """Request validation failure with the offending fields."""

    errors: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Validation errors as reported by pydantic, without ctx",
    )


_ERROR_DESCRIPTIONS = {
    400: "Invalid input",
    401: "Missing or invalid bearer token",
    403: "Not allowed for this caller or form state",
    404: "Resource not found",
    503: "Storage temporarily unavailable; safe to retry",
}


def error_responses(*status_codes: int) -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses`` entries for the error bodies a route can return."""
    responses: dict[int | str, dict[str, Any]] = {
        code: {"model": ErrorResponse, "description": _ERROR_DESCRIPTIONS[code]}
        for code in status_codes
    }
    responses[422] = {
        "model": ErrorResponseWithDetails,
        "description": "Request body or parameters failed validation",
    }
    return responses
