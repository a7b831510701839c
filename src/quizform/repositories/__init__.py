"""Repository layer for database operations."""

from quizform.repositories.form import FormRepository
from quizform.repositories.response import ResponseRepository

__all__ = ["FormRepository", "ResponseRepository"]
