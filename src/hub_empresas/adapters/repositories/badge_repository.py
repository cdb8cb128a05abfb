"""Repositories for the badge catalog, earned badges and badge events.

Award inserts use ``INSERT ... ON CONFLICT DO NOTHING`` against the
(company_id, badge_id) unique constraint, so two concurrent evaluations of
the same event cannot award a badge twice.
"""

import uuid
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from hub_empresas.adapters.repositories.base import translate_store_errors
from hub_empresas.core.models import Badge, BadgeEvent, CompanyBadge
from hub_empresas.observability import get_logger

logger = get_logger(__name__)


class BadgeRepository:
    """Persistence for the badge catalog."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_store_errors
    async def list_active(self) -> list[Badge]:
        """List active badges ordered by type, then creation time."""
        result = await self._session.execute(
            select(Badge)
            .where(Badge.is_active.is_(True))
            .order_by(Badge.badge_type, Badge.created_at)
        )
        return list(result.scalars().all())

    @translate_store_errors
    async def get_by_id(self, badge_id: uuid.UUID) -> Badge | None:
        """Retrieve a badge by id."""
        result = await self._session.execute(select(Badge).where(Badge.id == badge_id))
        return result.scalar_one_or_none()

    @translate_store_errors
    async def create(
        self,
        badge_key: str,
        label: str,
        description: str,
        icon: str,
        badge_type: str,
        conditions: dict[str, Any],
    ) -> Badge:
        """Persist a new catalog badge.

        Args:
            badge_key: Unique catalog key.
            label: Display label.
            description: Display description.
            icon: Emoji or URL.
            badge_type: stage_progression | achievement | milestone.
            conditions: Rule parameters.

        Returns:
            The persisted Badge.
        """
        record = Badge(
            badge_key=badge_key,
            label=label,
            description=description,
            icon=icon,
            badge_type=badge_type,
            conditions=conditions,
            is_active=True,
        )
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        return record

    @translate_store_errors
    async def update(self, badge_id: uuid.UUID, changes: dict[str, Any]) -> Badge | None:
        """Apply field changes to a badge; None if it does not exist."""
        result = await self._session.execute(
            update(Badge)
            .where(Badge.id == badge_id)
            .values(**changes)
            .returning(Badge)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()


class CompanyBadgeRepository:
    """Persistence for badges earned by companies."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_store_errors
    async def list_badge_ids(self, company_id: uuid.UUID) -> set[uuid.UUID]:
        """Return the ids of every badge the company holds."""
        result = await self._session.execute(
            select(CompanyBadge.badge_id).where(CompanyBadge.company_id == company_id)
        )
        return set(result.scalars().all())

    @translate_store_errors
    async def award(
        self,
        company_id: uuid.UUID,
        badge_id: uuid.UUID,
        earned_by_event: str,
        metadata: dict[str, Any],
    ) -> uuid.UUID | None:
        """Insert an award unless the company already holds the badge.

        Args:
            company_id: Earning company.
            badge_id: Awarded badge.
            earned_by_event: Event type that earned it.
            metadata: Event payload stored with the award.

        Returns:
            The new company_badges row id, or None when the pair already exists.
        """
        statement = (
            insert(CompanyBadge)
            .values(
                id=uuid.uuid4(),
                company_id=company_id,
                badge_id=badge_id,
                earned_by_event=earned_by_event,
                award_metadata=metadata,
            )
            .on_conflict_do_nothing(constraint="uq_company_badges_company_badge")
            .returning(CompanyBadge.id)
        )
        async with self._session.begin_nested():
            result = await self._session.execute(statement)
            award_id = result.scalar_one_or_none()

        logger.debug(
            "Badge award inserted" if award_id else "Badge award already present",
            company_id=str(company_id),
            badge_id=str(badge_id),
        )
        return award_id

    @translate_store_errors
    async def list_by_company(self, company_id: uuid.UUID) -> list[CompanyBadge]:
        """List the company's awards with their badge, most recent first."""
        result = await self._session.execute(
            select(CompanyBadge)
            .options(joinedload(CompanyBadge.badge))
            .where(CompanyBadge.company_id == company_id)
            .order_by(CompanyBadge.earned_at.desc())
        )
        return list(result.scalars().all())


class BadgeEventRepository:
    """Persistence for badge-triggering events."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_store_errors
    async def create(
        self,
        company_id: uuid.UUID,
        event_type: str,
        event_data: dict[str, Any],
    ) -> BadgeEvent:
        """Record an event."""
        record = BadgeEvent(
            company_id=company_id,
            event_type=event_type,
            event_data=event_data,
        )
        async with self._session.begin_nested():
            self._session.add(record)
            await self._session.flush()
        await self._session.refresh(record)
        return record

    @translate_store_errors
    async def annotate_awarded(
        self,
        event_id: uuid.UUID,
        badge_ids: list[uuid.UUID],
    ) -> None:
        """Store the badges awarded because of an event."""
        async with self._session.begin_nested():
            await self._session.execute(
                update(BadgeEvent)
                .where(BadgeEvent.id == event_id)
                .values(badges_awarded=badge_ids)
                .execution_options(synchronize_session=False)
            )

    @translate_store_errors
    async def annotate_latest_awarded(
        self,
        company_id: uuid.UUID,
        event_type: str,
        badge_ids: list[uuid.UUID],
    ) -> None:
        """Annotate the company's most recent event of the given type."""
        latest = (
            select(BadgeEvent.id)
            .where(
                BadgeEvent.company_id == company_id,
                BadgeEvent.event_type == event_type,
            )
            .order_by(BadgeEvent.triggered_at.desc())
            .limit(1)
            .scalar_subquery()
        )
        async with self._session.begin_nested():
            await self._session.execute(
                update(BadgeEvent)
                .where(BadgeEvent.id == latest)
                .values(badges_awarded=badge_ids)
                .execution_options(synchronize_session=False)
            )
