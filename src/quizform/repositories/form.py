"""Repository for form database operations."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quizform.models.form import Form


class FormRepository:
    """Handle form persistence operations."""

    @staticmethod
    async def create(
        session: AsyncSession,
        title: str,
        questions: list[dict[str, Any]],
        owner_id: str | None,
        description: str | None = None,
        header_image: str | None = None,
        is_published: bool = False,
    ) -> Form:
        """Create a new form, unpublished unless stated otherwise."""
        form = Form(
            title=title,
            description=description,
            header_image=header_image,
            questions=questions,
            is_published=is_published,
            owner_id=owner_id,
        )
        session.add(form)
        await session.flush()
        await session.refresh(form)
        return form

    @staticmethod
    async def get_by_id(session: AsyncSession, form_id: str) -> Form | None:
        """Retrieve a form by its ID."""
        result = await session.execute(select(Form).where(Form.id == form_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_owner(session: AsyncSession, owner_id: str) -> list[Form]:
        """Retrieve all forms owned by a user, most recent first."""
        result = await session.execute(
            select(Form)
            .where(Form.owner_id == owner_id)
            .order_by(Form.created_at.desc(), Form.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def update(
        session: AsyncSession,
        form: Form,
        values: dict[str, Any],
    ) -> Form:
        """Apply changed fields to a loaded form."""
        for field, value in values.items():
            setattr(form, field, value)
        await session.flush()
        await session.refresh(form)
        return form

    @staticmethod
    async def delete(session: AsyncSession, form: Form) -> None:
        """Delete a form; its responses are removed with it."""
        await session.delete(form)
        await session.flush()
