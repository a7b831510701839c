"""Pydantic schemas for response submission endpoints."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from quizform.schemas.score import ScoreReport


class SubmissionStatus(StrEnum):
    """Outcome of a submit call."""

    CREATED = "created"
    ALREADY_SUBMITTED = "already_submitted"


class RespondentStatus(StrEnum):
    """Whether a respondent has a stored response for a form."""

    SUBMITTED = "submitted"
    NOT_SUBMITTED = "not_submitted"


class SubmissionRequest(BaseModel):
    """Request model for submitting answers to a form."""

    answers: dict[str, dict[str, Any] | None] = Field(
        ...,
        description="Answer object per question ID; null means unanswered",
    )


class ResponseRead(BaseModel):
    """A stored response with the score computed at submission."""

    id: str = Field(..., description="Response ID")
    form_id: str = Field(..., description="Answered form ID")
    respondent_id: str = Field(..., description="Respondent subject ID")
    answers: dict[str, Any] = Field(..., description="Submitted answers")
    score: ScoreReport = Field(..., description="Score report")
    submitted_at: datetime = Field(..., description="Submission timestamp")

    model_config = {"from_attributes": True}


class SubmissionResponse(ResponseRead):
    """Result of a submit call; the stored response plus how it was reached."""

    status: SubmissionStatus = Field(..., description="created or already_submitted")


class RespondentResponseStatus(BaseModel):
    """The caller's own response to a form, if one exists."""

    status: RespondentStatus = Field(..., description="submitted or not_submitted")
    response: ResponseRead | None = Field(None, description="Stored response")


class UploadResponse(BaseModel):
    """Response model for an uploaded image."""

    url: str = Field(..., description="Retrievable URL of the stored image")
