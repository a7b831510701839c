"""Pydantic schemas for form endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from quizform.models.form import Form
from quizform.schemas.question import (
    Question,
    check_unique_question_ids,
    dump_public_questions,
    parse_questions,
)


class FormCreateRequest(BaseModel):
    """Request model for creating a form."""

    title: str = Field(..., min_length=1, max_length=500, description="Form title")
    description: str | None = Field(None, description="Form description")
    header_image: str | None = Field(None, description="Header image URL")
    questions: list[Question] = Field(
        default_factory=list,
        description="Ordered questions; ids must be unique",
    )
    is_published: bool = Field(False, description="Accept responses immediately")

    @field_validator("questions")
    @classmethod
    def unique_question_ids(cls, v: list[Question]) -> list[Question]:
        """Reject duplicated question ids."""
        return check_unique_question_ids(v)


class FormUpdateRequest(BaseModel):
    """Request model for a partial form update; omitted fields are kept."""

    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    header_image: str | None = None
    questions: list[Question] | None = None
    is_published: bool | None = None

    @field_validator("questions")
    @classmethod
    def unique_question_ids(cls, v: list[Question] | None) -> list[Question] | None:
        """Reject duplicated question ids."""
        return None if v is None else check_unique_question_ids(v)


class FormResponse(BaseModel):
    """Response model for form operations."""

    id: str = Field(..., description="Form ID")
    title: str = Field(..., description="Form title")
    description: str | None = Field(None, description="Form description")
    header_image: str | None = Field(None, description="Header image URL")
    questions: list[Question] = Field(default_factory=list, description="Questions")
    is_published: bool = Field(..., description="Whether responses are accepted")
    owner_id: str | None = Field(None, description="Owner subject ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    model_config = {"from_attributes": True}


class PublicFormResponse(BaseModel):
    """A form as respondents see it; correct answers are never included."""

    id: str = Field(..., description="Form ID")
    title: str = Field(..., description="Form title")
    description: str | None = Field(None, description="Form description")
    header_image: str | None = Field(None, description="Header image URL")
    questions: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Questions without blank answers or correct option indexes",
    )
    is_published: bool = Field(..., description="Whether responses are accepted")
    updated_at: datetime = Field(..., description="Last update timestamp")

    @classmethod
    def from_form(cls, form: Form) -> "PublicFormResponse":
        """Build the respondent view of a stored form."""
        return cls(
            id=form.id,
            title=form.title,
            description=form.description,
            header_image=form.header_image,
            questions=dump_public_questions(parse_questions(form.questions or [])),
            is_published=form.is_published,
            updated_at=form.updated_at,
        )
