"""Pydantic schemas for the quizform API."""

from quizform.schemas.common import ErrorResponse, ErrorResponseWithDetails, HealthResponse
from quizform.schemas.form import (
    FormCreateRequest,
    FormResponse,
    FormUpdateRequest,
    PublicFormResponse,
)
from quizform.schemas.response import (
    RespondentResponseStatus,
    ResponseRead,
    SubmissionRequest,
    SubmissionResponse,
    UploadResponse,
)
from quizform.schemas.score import QuestionScore, ScoreReport

__all__ = [
    "ErrorResponse",
    "ErrorResponseWithDetails",
    "FormCreateRequest",
    "FormResponse",
    "FormUpdateRequest",
    "PublicFormResponse",
    "HealthResponse",
    "QuestionScore",
    "RespondentResponseStatus",
    "ResponseRead",
    "ScoreReport",
    "SubmissionRequest",
    "SubmissionResponse",
    "UploadResponse",
]
