"""Form-filling flow for one respondent on one form."""

from enum import StrEnum
from typing import Any

from loguru import logger

from quizform.client.api import FormsClient
from quizform.client.drafts import CommittedSubmission, DraftManager
from quizform.exceptions import DomainValidationError, ExternalServiceError
from quizform.schemas.form import PublicFormResponse
from quizform.schemas.response import SubmissionResponse


class FillState(StrEnum):
    """Lifecycle of a respondent's answers; SUBMITTED is terminal."""

    NOT_STARTED = "not_started"
    DRAFT = "draft"
    SUBMITTED = "submitted"


class FormFillSession:
    """Tie the API client and the draft manager together for a form view."""

    def __init__(
        self,
        client: FormsClient,
        drafts: DraftManager,
        form_id: str,
        respondent_id: str,
    ) -> None:
        self.client = client
        self.drafts = drafts
        self.form_id = form_id
        self.respondent_id = respondent_id
        self.state = FillState.NOT_STARTED
        self.form: PublicFormResponse | None = None
        self.answers: dict[str, Any] = {}
        self.result: CommittedSubmission | None = None

    @property
    def is_editable(self) -> bool:
        return self.state is not FillState.SUBMITTED

    async def open(self) -> FillState:
        """Load the form and decide between the editor and the result view.

        A local submitted marker shows the cached result without asking the
        server. Otherwise the server is consulted so a submission made on
        another device is honoured; if it cannot be reached the local draft
        is used.
        """
        self.form = await self.client.get_form(self.form_id)

        restored = await self.drafts.restore(self.form_id, self.respondent_id)
        if not restored.is_submitted:
            try:
                server_response = await self.client.get_my_response(self.form_id)
            except ExternalServiceError:
                logger.warning(
                    "Could not confirm submission state, using local draft",
                    form_id=self.form_id,
                    respondent_id=self.respondent_id,
                )
            else:
                restored = await self.drafts.reconcile(
                    self.form_id, self.respondent_id, server_response
                )

        self.answers = dict(restored.answers)
        if restored.submitted is not None:
            self.result = restored.submitted
            self.state = FillState.SUBMITTED
        elif self.answers:
            self.state = FillState.DRAFT
        else:
            self.state = FillState.NOT_STARTED
        return self.state

    def set_answer(self, question_id: str, answer: dict[str, Any]) -> None:
        """Record an edit and schedule an autosave."""
        if not self.is_editable:
            raise DomainValidationError(
                "This form has already been submitted",
                field="answers",
            )
        self.answers[question_id] = answer
        self.state = FillState.DRAFT
        self.drafts.save(self.form_id, self.respondent_id, self.answers)

    async def submit(self) -> SubmissionResponse:
        """Submit the answers and switch to the read-only result.

        An already-submitted outcome is committed the same way as a new one,
        using the response the server returned.
        """
        outcome = await self.client.submit(self.form_id, self.answers)
        self.result = await self.drafts.commit(self.form_id, self.respondent_id, outcome)
        self.answers = dict(outcome.answers)
        self.state = FillState.SUBMITTED

        logger.info(
            "Form submitted",
            form_id=self.form_id,
            respondent_id=self.respondent_id,
            status=outcome.status.value,
            percentage=outcome.score.percentage,
        )
        return outcome

    async def close(self) -> None:
        """Drop pending autosaves when the form view goes away."""
        await self.drafts.close()
