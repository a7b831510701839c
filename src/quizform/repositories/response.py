"""Repository for response database operations.

``insert_if_absent`` is the synchronization point for exactly-once
submission: the (form_id, respondent_id) unique constraint decides the
winner, never an application-level read.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from quizform.exceptions import NotFoundError
from quizform.models.response import Response

_CONFLICT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class ResponseRepository:
    """Handle response persistence operations."""

    @staticmethod
    async def get_by_form_and_respondent(
        session: AsyncSession,
        form_id: str,
        respondent_id: str,
    ) -> Response | None:
        """Retrieve the response a respondent submitted for a form, if any."""
        result = await session.execute(
            select(Response)
            .where(
                Response.form_id == form_id,
                Response.respondent_id == respondent_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def insert_if_absent(
        session: AsyncSession,
        form_id: str,
        respondent_id: str,
        answers: dict[str, Any],
        score: dict[str, Any],
    ) -> tuple[Response, bool]:
        """Insert a response unless one already exists for the respondent.

        Returns:
            Tuple of (response, created). When another submission won the
            race, the stored response is returned with ``created=False``.
        """
        dialect = session.get_bind().dialect.name
        insert = _CONFLICT_INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Unsupported database dialect: {dialect}")

        stmt = (
            insert(Response)
            .values(
                id=str(uuid.uuid4()),
                form_id=form_id,
                respondent_id=respondent_id,
                answers=answers,
                score=score,
                submitted_at=datetime.now(UTC),
            )
            .on_conflict_do_nothing(index_elements=["form_id", "respondent_id"])
            .returning(Response)
        )
        result = await session.execute(stmt)
        created = result.scalar_one_or_none()
        if created is not None:
            return created, True

        existing = await ResponseRepository.get_by_form_and_respondent(
            session=session,
            form_id=form_id,
            respondent_id=respondent_id,
        )
        if existing is None:
            # Conflicting row vanished, the form was deleted mid-flight
            raise NotFoundError(resource="Form", resource_id=form_id)
        return existing, False

    @staticmethod
    async def list_by_form_id(
        session: AsyncSession,
        form_id: str,
    ) -> list[Response]:
        """Retrieve all responses for a form, most recent first."""
        result = await session.execute(
            select(Response)
            .where(Response.form_id == form_id)
            .order_by(Response.submitted_at.desc(), Response.id)
        )
        return list(result.scalars().all())
