"""Repositories for notifications and the company read model."""

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hub_empresas.adapters.repositories.base import translate_store_errors
from hub_empresas.core.models import Company, Deliverable, Evaluation, Notification, Profile
from hub_empresas.observability import get_logger

logger = get_logger(__name__)

STAFF_ROLES = ("admin", "mentor")


class NotificationRepository:
    """Persistence for user notifications."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_store_errors
    async def create_many(self, notifications: list[dict[str, Any]]) -> int:
        """Insert notifications in one savepoint.

        Args:
            notifications: Row dicts matching the Notification columns.

        Returns:
            Number of notifications inserted.
        """
        if not notifications:
            return 0
        async with self._session.begin_nested():
            self._session.add_all([Notification(**values) for values in notifications])
            await self._session.flush()

        logger.debug("Notifications inserted", count=len(notifications))
        return len(notifications)


class CompanyDirectory:
    """Read access to companies, staff profiles, evaluations and deliverables."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_store_errors
    async def get_profile_id(self, company_id: uuid.UUID) -> uuid.UUID | None:
        """Return the owner profile of a company, None if unknown."""
        result = await self._session.execute(
            select(Company.profile_id).where(Company.id == company_id)
        )
        return result.scalar_one_or_none()

    @translate_store_errors
    async def list_companies(self) -> list[Company]:
        """List all companies ordered by name."""
        result = await self._session.execute(select(Company).order_by(Company.name))
        return list(result.scalars().all())

    @translate_store_errors
    async def list_staff_profile_ids(self) -> list[uuid.UUID]:
        """Return the ids of admin and mentor profiles."""
        result = await self._session.execute(
            select(Profile.id).where(Profile.role.in_(STAFF_ROLES))
        )
        return list(result.scalars().all())

    @translate_store_errors
    async def list_companies_with_valid_evaluation(self) -> set[uuid.UUID]:
        """Return ids of companies with at least one valid evaluation."""
        result = await self._session.execute(
            select(Evaluation.company_id).where(Evaluation.is_valid.is_(True)).distinct()
        )
        return set(result.scalars().all())

    @translate_store_errors
    async def list_deliverables(
        self,
        company_id: uuid.UUID,
        program_key: str | None,
    ) -> list[Deliverable]:
        """List a company's deliverables, limited to a stage when one is given."""
        query = select(Deliverable).where(Deliverable.company_id == company_id)
        if program_key is not None:
            query = query.where(Deliverable.program_key == program_key)
        result = await self._session.execute(query)
        return list(result.scalars().all())
