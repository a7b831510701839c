"""Response submission endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi import Response as HTTPResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from quizform.auth import get_current_identity
from quizform.db import get_db
from quizform.repositories.response import ResponseRepository
from quizform.routers.forms import get_owned_form
from quizform.schemas.common import error_responses
from quizform.schemas.response import (
    RespondentResponseStatus,
    RespondentStatus,
    ResponseRead,
    SubmissionRequest,
    SubmissionResponse,
)
from quizform.services.identity import Identity
from quizform.services.submission import SubmissionService

router = APIRouter(prefix="/forms/{form_id}/responses", tags=["Responses"])


@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit answers to a form",
    description=(
        "Score and store the caller's answers. Each respondent can submit a "
        "form once; repeated submissions return 409 with the stored result."
    ),
    responses={
        **error_responses(400, 401, 403, 404, 503),
        status.HTTP_409_CONFLICT: {
            "model": SubmissionResponse,
            "description": "Already submitted; the stored response is returned",
        },
    },
)
async def submit_response(
    form_id: str,
    request: SubmissionRequest,
    http_response: HTTPResponse,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> SubmissionResponse:
    """Submit a response exactly once per respondent."""
    logger.info(
        "Submission requested",
        form_id=form_id,
        respondent_id=identity.subject_id,
        answered_questions=len(request.answers),
    )

    result = await SubmissionService().submit(
        session=session,
        form_id=form_id,
        identity=identity,
        answers=request.answers,
    )
    # Durable before the caller learns the outcome
    await session.commit()

    if not result.created:
        http_response.status_code = status.HTTP_409_CONFLICT

    stored = ResponseRead.model_validate(result.response)
    return SubmissionResponse(**stored.model_dump(), status=result.status)


@router.get(
    "/me",
    response_model=RespondentResponseStatus,
    summary="Get own response",
    description="Return the caller's stored response for this form, if any.",
    responses=error_responses(401, 503),
)
async def get_my_response(
    form_id: str,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> RespondentResponseStatus:
    """Tell the client whether to show the draft editor or the result."""
    response = await SubmissionService().get_for_respondent(
        session=session,
        form_id=form_id,
        identity=identity,
    )
    if response is None:
        return RespondentResponseStatus(status=RespondentStatus.NOT_SUBMITTED)
    return RespondentResponseStatus(
        status=RespondentStatus.SUBMITTED,
        response=ResponseRead.model_validate(response),
    )


@router.get(
    "",
    response_model=list[ResponseRead],
    summary="List form responses",
    description="Return all responses to an owned form, most recent first.",
    responses=error_responses(401, 403, 404, 503),
)
async def list_responses(
    form_id: str,
    session: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
) -> list[ResponseRead]:
    """List responses for the form owner."""
    await get_owned_form(session, form_id, identity)
    responses = await ResponseRepository.list_by_form_id(session, form_id)
    return [ResponseRead.model_validate(response) for response in responses]
