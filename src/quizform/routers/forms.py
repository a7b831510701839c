"""Form management endpoints."""

from fastapi import APIRouter, Depends, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from quizform.auth import get_current_identity
from quizform.db import get_db
from quizform.exceptions import DomainValidationError, ForbiddenError, NotFoundError
from quizform.models.form import Form
from quizform.repositories.form import FormRepository
from quizform.schemas.common import error_responses
from quizform.schemas.form import (
    FormCreateRequest,
    FormResponse,
    FormUpdateRequest,
    PublicFormResponse,
)
from quizform.schemas.question import dump_questions
from quizform.services.identity import Identity

router = APIRouter(prefix="/forms", tags=["Forms"])

# Columns that may not be set to NULL through a partial update
_NON_NULLABLE_FIELDS = {"title", "questions", "is_published"}


async def get_owned_form(
    session: AsyncSession,
    form_id: str,
    identity: Identity,
) -> Form:
    """Load a form the caller may modify.

    Forms without an owner predate authentication and stay editable by any
    signed-in author.
    """
    form = await FormRepository.get_by_id(session, form_id)
    if form is None:
        raise NotFoundError(resource="Form", resource_id=form_id)
    if form.owner_id is not None and form.owner_id != identity.subject_id:
        raise ForbiddenError(
            "Only the form owner can do this",
            details={"form_id": form_id},
        )
    return form


@router.get(
    "/",
    response_model=list[FormResponse],
    summary="List own forms",
    responses=error_responses(401),
    description="Return the caller's forms ordered by most recent first.",
)
async def list_forms(
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> list[FormResponse]:
    """List forms owned by the caller."""
    forms = await FormRepository.list_by_owner(session, identity.subject_id)
    return [FormResponse.model_validate(form) for form in forms]


@router.post(
    "/",
    response_model=FormResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a form",
    responses=error_responses(401),
    description="Create a form owned by the caller. Forms start unpublished.",
)
async def create_form(
    request: FormCreateRequest,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> FormResponse:
    """Create a new form."""
    form = await FormRepository.create(
        session=session,
        title=request.title,
        description=request.description,
        header_image=request.header_image,
        questions=dump_questions(request.questions),
        is_published=request.is_published,
        owner_id=identity.subject_id,
    )
    await session.commit()

    logger.info(
        "Form created",
        form_id=form.id,
        owner_id=identity.subject_id,
        question_count=len(request.questions),
    )
    return FormResponse.model_validate(form)


@router.get(
    "/{form_id}",
    response_model=PublicFormResponse,
    summary="Get a form to fill",
    description=(
        "Fetch a form for filling. No sign-in required; correct answers are "
        "left out."
    ),
    responses=error_responses(404),
)
async def get_form(
    form_id: str,
    session: AsyncSession = Depends(get_db),
) -> PublicFormResponse:
    """Return the respondent view of a form."""
    form = await FormRepository.get_by_id(session, form_id)
    if form is None:
        raise NotFoundError(resource="Form", resource_id=form_id)
    return PublicFormResponse.from_form(form)


@router.get(
    "/{form_id}/edit",
    response_model=FormResponse,
    summary="Get a form to edit",
    description="Fetch an owned form including its correct answers.",
    responses=error_responses(401, 403, 404),
)
async def get_form_for_editing(
    form_id: str,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> FormResponse:
    """Return the full form to its owner."""
    form = await get_owned_form(session, form_id, identity)
    return FormResponse.model_validate(form)


@router.put(
    "/{form_id}",
    response_model=FormResponse,
    summary="Update a form",
    responses=error_responses(400, 401, 403, 404),
    description=(
        "Partially update a form, including publishing it. Questions of a "
        "published form are frozen until it is unpublished."
    ),
)
async def update_form(
    form_id: str,
    request: FormUpdateRequest,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> FormResponse:
    """Update fields of an owned form."""
    form = await get_owned_form(session, form_id, identity)

    values = request.model_dump(exclude_unset=True)
    values = {
        field: value
        for field, value in values.items()
        if value is not None or field not in _NON_NULLABLE_FIELDS
    }

    if "questions" in values:
        stays_published = values.get("is_published", form.is_published)
        if stays_published:
            raise DomainValidationError(
                "Questions of a published form cannot be changed; unpublish it first",
                field="questions",
            )
        values["questions"] = dump_questions(request.questions or [])

    form = await FormRepository.update(session, form, values)
    await session.commit()

    logger.info(
        "Form updated",
        form_id=form_id,
        fields=sorted(values),
        is_published=form.is_published,
    )
    return FormResponse.model_validate(form)


@router.delete(
    "/{form_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a form",
    responses=error_responses(401, 403, 404),
    description="Delete an owned form together with all of its responses.",
)
async def delete_form(
    form_id: str,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> None:
    """Delete a form and cascade its responses."""
    form = await get_owned_form(session, form_id, identity)
    await FormRepository.delete(session, form)
    await session.commit()

    logger.info("Form deleted", form_id=form_id, owner_id=identity.subject_id)
