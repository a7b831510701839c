"""Tests for the submission service and response repository."""

import asyncio
import uuid
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import patch

import pytest
from conftest import ALICE, BOB, CATEGORIZE_QUESTION, CLOZE_QUESTION, create_form
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from quizform.exceptions import (
    DomainValidationError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from quizform.models.response import Response
from quizform.repositories.response import ResponseRepository
from quizform.schemas.question import parse_questions
from quizform.schemas.response import SubmissionStatus
from quizform.services.identity import Identity
from quizform.services.submission import SubmissionService, validate_answer_payload

CORRECT_ANSWERS = {
    "q-cloze": {"b1": "Paris", "b2": "France"},
    "q-cat": {"animal": ["cat"], "plant": ["oak"]},
}


async def _count_responses(session, form_id: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(Response).where(Response.form_id == form_id)
    )
    return result.scalar_one()


class TestSubmit:
    """Happy path and idempotency of SubmissionService.submit."""

    async def test_first_submission_is_created(self, test_session, published_form):
        """A first submission is scored and stored."""
        result = await SubmissionService().submit(
            session=test_session,
            form_id=published_form.id,
            identity=ALICE,
            answers=CORRECT_ANSWERS,
        )

        assert result.status is SubmissionStatus.CREATED
        assert result.created is True
        assert result.response.respondent_id == ALICE.subject_id
        assert result.response.answers == CORRECT_ANSWERS
        assert result.response.score["total_units"] == 3
        assert result.response.score["earned_units"] == 2
        assert result.response.score["percentage"] == 67

    async def test_second_submission_returns_first(self, test_session, published_form):
        """Resubmitting returns the stored response and ignores new answers."""
        service = SubmissionService()
        first = await service.submit(
            session=test_session,
            form_id=published_form.id,
            identity=ALICE,
            answers=CORRECT_ANSWERS,
        )

        with patch("quizform.services.submission.score_answers") as mock_score:
            second = await service.submit(
                session=test_session,
                form_id=published_form.id,
                identity=ALICE,
                answers={"q-cloze": {"b1": "Rome"}},
            )

        mock_score.assert_not_called()
        assert second.status is SubmissionStatus.ALREADY_SUBMITTED
        assert second.created is False
        assert second.response.id == first.response.id
        assert second.response.answers == CORRECT_ANSWERS
        assert second.response.score == first.response.score
        assert await _count_responses(test_session, published_form.id) == 1

    async def test_respondents_are_independent(self, test_session, published_form):
        """Each respondent gets their own response."""
        service = SubmissionService()
        alice = await service.submit(test_session, published_form.id, ALICE, CORRECT_ANSWERS)
        bob = await service.submit(test_session, published_form.id, BOB, {})

        assert alice.created and bob.created
        assert alice.response.id != bob.response.id
        assert bob.response.score["total_units"] == 0
        assert bob.response.score["percentage"] == 0
        assert await _count_responses(test_session, published_form.id) == 2

    async def test_none_answers_are_skipped(self, test_session, published_form):
        """An explicit null answer behaves like an unanswered question."""
        result = await SubmissionService().submit(
            test_session,
            published_form.id,
            ALICE,
            {"q-cloze": {"b1": "Paris"}, "q-cat": None},
        )

        assert result.response.score["total_units"] == 2
        assert result.response.score["earned_units"] == 1
        assert set(result.response.score["per_question"]) == {"q-cloze"}


class TestSubmitRejections:
    """Error ordering of SubmissionService.submit."""

    @pytest.mark.parametrize(
        "identity", [None, Identity(subject_id="")], ids=["missing", "empty-subject"]
    )
    async def test_unauthorized(self, test_session, published_form, identity):
        """A missing identity is rejected before the form is read."""
        with patch(
            "quizform.services.submission.FormRepository.get_by_id"
        ) as mock_get:
            with pytest.raises(UnauthorizedError):
                await SubmissionService().submit(
                    test_session, published_form.id, identity, CORRECT_ANSWERS
                )

        mock_get.assert_not_called()

    async def test_unknown_form(self, test_session):
        """An unknown form id is reported as not found."""
        with pytest.raises(NotFoundError) as exc_info:
            await SubmissionService().submit(
                test_session, "no-such-form", ALICE, CORRECT_ANSWERS
            )

        assert exc_info.value.details["resource_id"] == "no-such-form"

    async def test_unpublished_form(self, test_session, draft_form):
        """Unpublished forms refuse responses and store nothing."""
        with pytest.raises(ForbiddenError):
            await SubmissionService().submit(
                test_session, draft_form.id, ALICE, {"q-cloze": {"b1": "Paris"}}
            )

        assert await _count_responses(test_session, draft_form.id) == 0

    async def test_unknown_question_id(self, test_session, published_form):
        """Answers for questions the form lacks are rejected."""
        with pytest.raises(DomainValidationError) as exc_info:
            await SubmissionService().submit(
                test_session, published_form.id, ALICE, {"q-other": {"x": "y"}}
            )

        assert exc_info.value.details["question_ids"] == ["q-other"]
        assert await _count_responses(test_session, published_form.id) == 0

    async def test_existing_response_wins_over_bad_payload(
        self, test_session, published_form
    ):
        """A respondent who already submitted gets the stored result back."""
        service = SubmissionService()
        await service.submit(test_session, published_form.id, ALICE, CORRECT_ANSWERS)

        result = await service.submit(
            test_session, published_form.id, ALICE, {"q-other": {"x": "y"}}
        )

        assert result.status is SubmissionStatus.ALREADY_SUBMITTED


class TestValidateAnswerPayload:
    """Envelope checks on submitted answers."""

    def setup_method(self):
        self.questions = parse_questions([CLOZE_QUESTION, CATEGORIZE_QUESTION])

    def test_accepts_known_questions(self):
        """Known ids with object answers pass."""
        validate_answer_payload(self.questions, {"q-cloze": {}, "q-cat": None})

    def test_rejects_non_mapping(self):
        """The payload itself must be an object."""
        with pytest.raises(DomainValidationError):
            validate_answer_payload(self.questions, ["q-cloze"])

    def test_rejects_non_object_answer(self):
        """Every present answer must be an object."""
        with pytest.raises(DomainValidationError) as exc_info:
            validate_answer_payload(self.questions, {"q-cloze": "Paris"})

        assert exc_info.value.details["question_ids"] == ["q-cloze"]


class TestConcurrentSubmission:
    """Exactly-once under racing submissions."""

    async def test_stale_read_loses_to_stored_row(self, session_factory, published_form):
        """A submission that missed the existing row still gets it back."""
        async with session_factory() as session:
            first = await SubmissionService().submit(
                session, published_form.id, ALICE, CORRECT_ANSWERS
            )
            await session.commit()

        real_lookup = ResponseRepository.get_by_form_and_respondent
        calls = []

        async def stale_first_read(**kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                return None
            return await real_lookup(**kwargs)

        async with session_factory() as session:
            with patch.object(
                ResponseRepository, "get_by_form_and_respondent", new=stale_first_read
            ):
                second = await SubmissionService().submit(
                    session,
                    published_form.id,
                    ALICE,
                    {"q-cloze": {"b1": "Rome", "b2": "Italy"}},
                )
            await session.commit()

            assert second.status is SubmissionStatus.ALREADY_SUBMITTED
            assert second.response.id == first.response.id
            assert second.response.answers == CORRECT_ANSWERS
            assert await _count_responses(session, published_form.id) == 1

    async def test_parallel_submissions_create_one_response(self):
        """Ten interleaved submissions yield one created and nine duplicates."""
        stored: dict[tuple[str, str], Response] = {}
        form = SimpleNamespace(
            id="form-1",
            is_published=True,
            questions=[CLOZE_QUESTION],
        )

        class FakeFormRepository:
            @staticmethod
            async def get_by_id(session, form_id):
                await asyncio.sleep(0)
                return form if form_id == form.id else None

        class FakeResponseRepository:
            @staticmethod
            async def get_by_form_and_respondent(session, form_id, respondent_id):
                await asyncio.sleep(0)
                return stored.get((form_id, respondent_id))

            @staticmethod
            async def insert_if_absent(session, form_id, respondent_id, answers, score):
                await asyncio.sleep(0)
                key = (form_id, respondent_id)
                if key in stored:
                    return stored[key], False
                stored[key] = Response(
                    id=str(uuid.uuid4()),
                    form_id=form_id,
                    respondent_id=respondent_id,
                    answers=answers,
                    score=score,
                    submitted_at=datetime.now(UTC),
                )
                return stored[key], True

        def attempt(index: int) -> dict[str, Any]:
            return {"q-cloze": {"b1": "Paris", "b2": f"guess-{index}"}}

        service = SubmissionService()
        with (
            patch("quizform.services.submission.FormRepository", FakeFormRepository),
            patch(
                "quizform.services.submission.ResponseRepository", FakeResponseRepository
            ),
        ):
            results = await asyncio.gather(
                *(service.submit(None, form.id, ALICE, attempt(i)) for i in range(10))
            )

        statuses = [result.status for result in results]
        assert statuses.count(SubmissionStatus.CREATED) == 1
        assert statuses.count(SubmissionStatus.ALREADY_SUBMITTED) == 9
        assert len(stored) == 1
        winner = stored[(form.id, ALICE.subject_id)]
        assert {result.response.id for result in results} == {winner.id}


class TestGetForRespondent:
    """Looking up the caller's own response."""

    async def test_not_submitted(self, test_session, published_form):
        """No response yet gives None."""
        response = await SubmissionService().get_for_respondent(
            test_session, published_form.id, ALICE
        )

        assert response is None

    async def test_submitted(self, test_session, published_form):
        """The stored response is returned only to its respondent."""
        service = SubmissionService()
        created = await service.submit(
            test_session, published_form.id, ALICE, CORRECT_ANSWERS
        )

        mine = await service.get_for_respondent(test_session, published_form.id, ALICE)
        theirs = await service.get_for_respondent(test_session, published_form.id, BOB)

        assert mine.id == created.response.id
        assert theirs is None

    async def test_requires_identity(self, test_session, published_form):
        """Anonymous callers are rejected."""
        with pytest.raises(UnauthorizedError):
            await SubmissionService().get_for_respondent(
                test_session, published_form.id, None
            )

    async def test_unknown_form(self, test_session):
        """Unknown forms are reported as not found."""
        with pytest.raises(NotFoundError):
            await SubmissionService().get_for_respondent(test_session, "missing", ALICE)


class TestResponseRepository:
    """Conditional insert against the unique constraint."""

    async def test_insert_if_absent_twice(self, test_session, published_form):
        """The second insert leaves the first row untouched."""
        first, first_created = await ResponseRepository.insert_if_absent(
            session=test_session,
            form_id=published_form.id,
            respondent_id=ALICE.subject_id,
            answers={"q-cloze": {"b1": "Paris"}},
            score={"total_units": 2, "earned_units": 1},
        )
        second, second_created = await ResponseRepository.insert_if_absent(
            session=test_session,
            form_id=published_form.id,
            respondent_id=ALICE.subject_id,
            answers={"q-cloze": {"b1": "Rome"}},
            score={"total_units": 2, "earned_units": 0},
        )

        assert first_created is True
        assert second_created is False
        assert second.id == first.id
        assert second.answers == {"q-cloze": {"b1": "Paris"}}
        assert await _count_responses(test_session, published_form.id) == 1

    async def test_insert_for_missing_form_fails(self, test_session):
        """The foreign key rejects responses to unknown forms."""
        with pytest.raises(IntegrityError):
            await ResponseRepository.insert_if_absent(
                session=test_session,
                form_id="missing",
                respondent_id=ALICE.subject_id,
                answers={},
                score={},
            )

    async def test_list_by_form_id(self, session_factory, published_form):
        """Only responses of the requested form are listed."""
        other_form = await create_form(session_factory, [CLOZE_QUESTION])
        async with session_factory() as session:
            for form_id, identity in [
                (published_form.id, ALICE),
                (published_form.id, BOB),
                (other_form.id, ALICE),
            ]:
                await ResponseRepository.insert_if_absent(
                    session, form_id, identity.subject_id, {}, {}
                )
            await session.commit()

            listed = await ResponseRepository.list_by_form_id(session, published_form.id)

        assert {response.respondent_id for response in listed} == {
            ALICE.subject_id,
            BOB.subject_id,
        }
