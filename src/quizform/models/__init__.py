"""Database models package."""

from quizform.models.base import Base
from quizform.models.form import Form
from quizform.models.response import Response

__all__ = ["Base", "Form", "Response"]
