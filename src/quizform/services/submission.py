"""Submission service: authorize, score and store a response exactly once."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from quizform.exceptions import (
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from quizform.models.form import Form
from quizform.models.response import Response
from quizform.repositories.form import FormRepository
from quizform.repositories.response import ResponseRepository
from quizform.schemas.question import Question, parse_questions
from quizform.schemas.response import SubmissionStatus
from quizform.services.identity import Identity
from quizform.services.scoring import score_answers


@dataclass(frozen=True)
class SubmissionResult:
    """The stored response and whether this call created it."""

    status: SubmissionStatus
    response: Response

    @property
    def created(self) -> bool:
        return self.status is SubmissionStatus.CREATED


def load_form_questions(form: Form) -> list[Question]:
    """Parse a form's stored questions into the typed question union."""
    return parse_questions(form.questions or [])


def validate_answer_payload(questions: list[Question], answers: Any) -> None:
    """Reject payloads that are not question-id keyed answer objects.

    Only the envelope is checked here; per-unit answer shapes are left to
    the scorer, which grades anything malformed as zero.

    Raises:
        DomainValidationError: On a non-mapping payload, a non-object answer
            or an answer for a question the form does not have
    """
    if not isinstance(answers, Mapping):
        raise DomainValidationError("Answers must be an object", field="answers")

    bad_values = sorted(
        str(question_id)
        for question_id, answer in answers.items()
        if answer is not None and not isinstance(answer, Mapping)
    )
    if bad_values:
        raise DomainValidationError(
            "Each answer must be an object keyed by blank or sub-question id",
            field="answers",
            details={"question_ids": bad_values},
        )

    known_ids = {question.id for question in questions}
    unknown_ids = sorted(str(qid) for qid in answers if qid not in known_ids)
    if unknown_ids:
        raise DomainValidationError(
            "Answers reference questions that are not part of this form",
            field="answers",
            details={"question_ids": unknown_ids},
        )


class SubmissionService:
    """Drive the not-started -> submitted transition for one respondent."""

    async def _get_form(self, session: AsyncSession, form_id: str) -> Form:
        form = await FormRepository.get_by_id(session, form_id)
        if form is None:
            raise NotFoundError(resource="Form", resource_id=form_id)
        return form

    async def submit(
        self,
        session: AsyncSession,
        form_id: str,
        identity: Identity | None,
        answers: Mapping[str, Any],
    ) -> SubmissionResult:
        """Score and store a respondent's answers unless already submitted.

        A second submission returns the first response unchanged with status
        ``already_submitted``; its answers are discarded and never scored.
        Concurrent submissions are resolved by the storage unique constraint.

        Raises:
            UnauthorizedError: If the respondent is not identified
            NotFoundError: If the form does not exist
            ForbiddenError: If the form is not published
            DomainValidationError: If the answer payload is malformed
        """
        if identity is None or not identity.subject_id:
            raise UnauthorizedError()

        form = await self._get_form(session, form_id)
        if not form.is_published:
            raise ForbiddenError(
                "This form is not published and cannot accept responses",
                details={"form_id": form_id},
            )

        respondent_id = identity.subject_id

        # Fast path only; exactly-once is enforced by insert_if_absent below
        existing = await ResponseRepository.get_by_form_and_respondent(
            session=session,
            form_id=form_id,
            respondent_id=respondent_id,
        )
        if existing is not None:
            logger.info(
                "Submission already exists",
                form_id=form_id,
                respondent_id=respondent_id,
                response_id=existing.id,
            )
            return SubmissionResult(SubmissionStatus.ALREADY_SUBMITTED, existing)

        questions = load_form_questions(form)
        validate_answer_payload(questions, answers)

        report = score_answers(questions, answers)
        logger.info(
            "Scored submission",
            form_id=form_id,
            respondent_id=respondent_id,
            earned_units=report.earned_units,
            total_units=report.total_units,
            percentage=report.percentage,
        )

        response, created = await ResponseRepository.insert_if_absent(
            session=session,
            form_id=form_id,
            respondent_id=respondent_id,
            answers=dict(answers),
            score=report.model_dump(mode="json"),
        )

        status = (
            SubmissionStatus.CREATED if created else SubmissionStatus.ALREADY_SUBMITTED
        )
        logger.info(
            "Submission stored" if created else "Submission lost race to existing",
            form_id=form_id,
            respondent_id=respondent_id,
            response_id=response.id,
            status=status.value,
        )
        return SubmissionResult(status, response)

    async def get_for_respondent(
        self,
        session: AsyncSession,
        form_id: str,
        identity: Identity | None,
    ) -> Response | None:
        """Return the caller's stored response for a form, or None."""
        if identity is None or not identity.subject_id:
            raise UnauthorizedError()

        await self._get_form(session, form_id)
        return await ResponseRepository.get_by_form_and_respondent(
            session=session,
            form_id=form_id,
            respondent_id=identity.subject_id,
        )
