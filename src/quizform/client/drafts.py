"""Draft manager: local autosave and the submitted marker for a respondent.

Two keys live in the injected store per (form, respondent):

* ``<ns>:draft:<form>:<respondent>`` holds in-progress answers,
* ``<ns>:submitted:<form>:<respondent>`` holds the committed score and
  final answers.

The submitted key always wins over the draft key. Committing removes the
draft and cancels any pending autosave, so a stale draft can never reappear.
"""

import asyncio
import copy
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from quizform.client.storage import KeyValueStore
from quizform.config import settings
from quizform.schemas.response import ResponseRead
from quizform.schemas.score import ScoreReport

DraftKey = tuple[str, str]


class Draft(BaseModel):
    """Locally saved, not yet submitted answers."""

    form_id: str
    respondent_id: str
    answers: dict[str, Any] = Field(default_factory=dict)
    last_saved_at: datetime


class CommittedSubmission(BaseModel):
    """Authoritative result cached locally after a confirmed submission."""

    form_id: str
    respondent_id: str
    response_id: str
    answers: dict[str, Any]
    score: ScoreReport
    submitted_at: datetime


class RestoredState(BaseModel):
    """What to show on load: the read-only result, or editable answers."""

    answers: dict[str, Any] = Field(default_factory=dict)
    submitted: CommittedSubmission | None = None

    @property
    def is_submitted(self) -> bool:
        return self.submitted is not None


class DraftManager:
    """Persist, restore and retire answer drafts for one client."""

    def __init__(
        self,
        store: KeyValueStore,
        debounce_seconds: float | None = None,
        namespace: str = "quizform",
    ) -> None:
        self.store = store
        self.debounce_seconds = (
            settings.autosave_debounce_seconds
            if debounce_seconds is None
            else debounce_seconds
        )
        self.namespace = namespace
        self._pending: dict[DraftKey, asyncio.Task[None]] = {}
        self._pending_drafts: dict[DraftKey, Draft] = {}
        self._committed: set[DraftKey] = set()

    def draft_key(self, form_id: str, respondent_id: str) -> str:
        return f"{self.namespace}:draft:{form_id}:{respondent_id}"

    def submitted_key(self, form_id: str, respondent_id: str) -> str:
        return f"{self.namespace}:submitted:{form_id}:{respondent_id}"

    async def restore(self, form_id: str, respondent_id: str) -> RestoredState:
        """Load the local state for a form on page load.

        A submitted marker short-circuits to the cached result and the draft
        is ignored entirely.
        """
        submitted = await self._load_submitted(form_id, respondent_id)
        if submitted is not None:
            self._committed.add((form_id, respondent_id))
            return RestoredState(answers=submitted.answers, submitted=submitted)

        raw = await self.store.get(self.draft_key(form_id, respondent_id))
        if raw is None:
            return RestoredState()
        try:
            draft = Draft.model_validate_json(raw)
        except ValidationError:
            logger.warning(
                "Discarding unreadable draft",
                form_id=form_id,
                respondent_id=respondent_id,
            )
            await self.store.remove(self.draft_key(form_id, respondent_id))
            return RestoredState()
        return RestoredState(answers=draft.answers)

    def save(self, form_id: str, respondent_id: str, answers: dict[str, Any]) -> None:
        """Schedule a debounced write of the current answers.

        Each call replaces the pending write, so a burst of edits produces a
        single store write once the quiet period has passed. Must be called
        from a running event loop.
        """
        key = (form_id, respondent_id)
        if key in self._committed:
            return

        self._cancel(key)
        self._pending_drafts[key] = Draft(
            form_id=form_id,
            respondent_id=respondent_id,
            answers=copy.deepcopy(answers),
            last_saved_at=datetime.now(UTC),
        )
        task = asyncio.get_running_loop().create_task(self._write_later(key))
        self._pending[key] = task
        task.add_done_callback(lambda done, key=key: self._forget(key, done))

    def has_pending(self, form_id: str, respondent_id: str) -> bool:
        return (form_id, respondent_id) in self._pending

    async def flush(self, form_id: str, respondent_id: str) -> None:
        """Write a pending draft now instead of waiting for the timer."""
        key = (form_id, respondent_id)
        draft = self._pending_drafts.get(key)
        self._cancel(key)
        if draft is not None and key not in self._committed:
            await self._write_draft(draft)

    async def commit(
        self,
        form_id: str,
        respondent_id: str,
        response: ResponseRead,
    ) -> CommittedSubmission:
        """Record a server-confirmed response and retire the draft.

        Used for both newly created and already submitted outcomes; the
        server's response replaces whatever the client had locally.
        """
        key = (form_id, respondent_id)
        self._committed.add(key)
        self._cancel(key)

        submitted = CommittedSubmission(
            form_id=form_id,
            respondent_id=respondent_id,
            response_id=response.id,
            answers=response.answers,
            score=response.score,
            submitted_at=response.submitted_at,
        )
        await self.store.set(
            self.submitted_key(form_id, respondent_id),
            submitted.model_dump_json(),
        )
        await self.store.remove(self.draft_key(form_id, respondent_id))

        logger.info(
            "Submission committed locally",
            form_id=form_id,
            respondent_id=respondent_id,
            response_id=response.id,
            percentage=response.score.percentage,
        )
        return submitted

    async def reconcile(
        self,
        form_id: str,
        respondent_id: str,
        server_response: ResponseRead | None,
    ) -> RestoredState:
        """Align local state with the server, which is authoritative.

        A server response is committed locally. A local submitted marker
        with no server counterpart (the response was deleted with its form)
        is dropped so the respondent can start over.
        """
        if server_response is not None:
            submitted = await self.commit(form_id, respondent_id, server_response)
            return RestoredState(answers=submitted.answers, submitted=submitted)

        key = (form_id, respondent_id)
        if key in self._committed or await self._load_submitted(form_id, respondent_id):
            logger.info(
                "Dropping submitted marker unknown to server",
                form_id=form_id,
                respondent_id=respondent_id,
            )
            self._committed.discard(key)
            await self.store.remove(self.submitted_key(form_id, respondent_id))
        return await self.restore(form_id, respondent_id)

    async def close(self) -> None:
        """Cancel every pending autosave, as when the form view unmounts."""
        for key in list(self._pending):
            self._cancel(key)

    async def _load_submitted(
        self, form_id: str, respondent_id: str
    ) -> CommittedSubmission | None:
        raw = await self.store.get(self.submitted_key(form_id, respondent_id))
        if raw is None:
            return None
        try:
            return CommittedSubmission.model_validate_json(raw)
        except ValidationError:
            logger.warning(
                "Ignoring unreadable submitted marker",
                form_id=form_id,
                respondent_id=respondent_id,
            )
            return None

    async def _write_later(self, key: DraftKey) -> None:
        await asyncio.sleep(self.debounce_seconds)
        draft = self._pending_drafts.get(key)
        if draft is not None and key not in self._committed:
            await self._write_draft(draft)

    async def _write_draft(self, draft: Draft) -> None:
        await self.store.set(
            self.draft_key(draft.form_id, draft.respondent_id),
            draft.model_dump_json(),
        )
        logger.debug(
            "Draft saved",
            form_id=draft.form_id,
            respondent_id=draft.respondent_id,
            answered_questions=len(draft.answers),
        )

    def _cancel(self, key: DraftKey) -> None:
        task = self._pending.pop(key, None)
        self._pending_drafts.pop(key, None)
        if task is not None and not task.done():
            task.cancel()

    def _forget(self, key: DraftKey, task: asyncio.Task[None]) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Draft autosave failed",
                form_id=key[0],
                respondent_id=key[1],
                error=repr(task.exception()),
            )
        if self._pending.get(key) is task:
            del self._pending[key]
            self._pending_drafts.pop(key, None)
