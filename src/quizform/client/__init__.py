"""Respondent-side client: API access, draft persistence and the fill flow."""

from quizform.client.api import FormsClient
from quizform.client.drafts import CommittedSubmission, DraftManager, RestoredState
from quizform.client.fill import FillState, FormFillSession
from quizform.client.storage import DirectoryStore, InMemoryStore, KeyValueStore

__all__ = [
    "CommittedSubmission",
    "DirectoryStore",
    "DraftManager",
    "FillState",
    "FormFillSession",
    "FormsClient",
    "InMemoryStore",
    "KeyValueStore",
    "RestoredState",
]
