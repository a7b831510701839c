"""Service layer for business logic."""

from quizform.services.identity import Identity, SupabaseIdentityProvider
from quizform.services.scoring import score_answers
from quizform.services.storage import ImageStorageService
from quizform.services.submission import SubmissionResult, SubmissionService

__all__ = [
    "Identity",
    "ImageStorageService",
    "SubmissionResult",
    "SubmissionService",
    "SupabaseIdentityProvider",
    "score_answers",
]
