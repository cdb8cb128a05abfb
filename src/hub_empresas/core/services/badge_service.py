"""Service layer for badge awarding and the badge catalog.

Award flow for an incoming event:
    1. load the active catalog (cached)
    2. drop badges the company already holds
    3. evaluate each remaining badge's rule against the event
    4. insert each award (duplicates are a no-op), notify the company owner
    5. annotate the triggering event with the awarded badge ids

Catalog administration (create, update, deactivate) invalidates the cache.
"""

import uuid
from typing import Any

from hub_empresas.core.badge_rules import (
    BADGE_TYPES,
    BadgeDefinition,
    BadgeRuleEvaluator,
    badge_from_record,
    resolve_rule,
)
from hub_empresas.core.interfaces import (
    IBadgeCatalog,
    IBadgeEventRepository,
    IBadgeRepository,
    ICompanyBadgeRepository,
    ICompanyDirectory,
    INotificationRepository,
)
from hub_empresas.core.notifications import build_badge_notification
from hub_empresas.errors import BadgeNotFoundError, StoreError, ValidationError
from hub_empresas.observability import get_logger

logger = get_logger(__name__)

MANUAL_AWARD_EVENT = "manual_award"
RECENT_BADGES_LIMIT = 5

_UPDATABLE_FIELDS = frozenset(
    {"label", "description", "icon", "badge_type", "conditions", "is_active"}
)


class BadgeService:
    """Awards badges for domain events and manages the badge catalog.

    Args:
        badge_repository: Catalog persistence.
        company_badge_repository: Earned badge persistence.
        event_repository: Badge event persistence.
        notification_repository: Notification persistence.
        company_directory: Company and profile lookup.
        evaluator: Badge rule evaluator.
        catalog: Cached catalog access.
    """

    def __init__(
        self,
        badge_repository: IBadgeRepository,
        company_badge_repository: ICompanyBadgeRepository,
        event_repository: IBadgeEventRepository,
        notification_repository: INotificationRepository,
        company_directory: ICompanyDirectory,
        evaluator: BadgeRuleEvaluator,
        catalog: IBadgeCatalog,
    ) -> None:
        self._badge_repo = badge_repository
        self._company_badge_repo = company_badge_repository
        self._event_repo = event_repository
        self._notification_repo = notification_repository
        self._directory = company_directory
        self._evaluator = evaluator
        self._catalog = catalog

    # ------------------------------------------------------------------
    # Awarding
    # ------------------------------------------------------------------

    async def award_badges(
        self,
        company_id: uuid.UUID,
        event_type: str,
        event_data: dict[str, Any],
        event_id: uuid.UUID | None = None,
    ) -> dict[str, object]:
        """Award every badge the event newly qualifies the company for.

        Failures on individual awards, notifications or the event
        annotation are logged and do not abort the batch.

        Args:
            company_id: Company the event belongs to.
            event_type: Type of the incoming event.
            event_data: Event payload.
            event_id: Recorded event to annotate; when None the company's
                latest event of this type is annotated.

        Returns:
            Dict with badges_awarded (ids of the awarded badges),
            total_badges and event_processed.

        Raises:
            StoreError: If the catalog or the company's held badges cannot
                be loaded.
        """
        badges = await self._catalog.get(self._badge_repo)
        held = await self._company_badge_repo.list_badge_ids(company_id)

        eligible = await self._evaluator.award_eligible(
            badges=badges,
            event_type=event_type,
            payload=event_data,
            company_id=company_id,
            already_awarded=held,
        )

        awarded: list[BadgeDefinition] = []
        profile_id: uuid.UUID | None = None
        if eligible:
            profile_id = await self._owner_profile(company_id)

        for badge in eligible:
            try:
                award = await self._company_badge_repo.award(
                    company_id=company_id,
                    badge_id=badge.badge_id,
                    earned_by_event=event_type,
                    metadata=dict(event_data),
                )
            except StoreError as exc:
                logger.error(
                    "Badge award failed",
                    company_id=str(company_id),
                    badge_key=badge.badge_key,
                    error=str(exc),
                )
                continue

            if award is None:
                logger.debug(
                    "Badge already held, award skipped",
                    company_id=str(company_id),
                    badge_key=badge.badge_key,
                )
                continue

            awarded.append(badge)
            if profile_id is not None:
                await self._notify(profile_id, badge, event_data)

        if awarded:
            await self._annotate_event(
                company_id, event_type, event_id, [badge.badge_id for badge in awarded]
            )

        logger.info(
            "Badge event processed",
            company_id=str(company_id),
            event_type=event_type,
            evaluated=len(badges),
            awarded=[badge.badge_key for badge in awarded],
        )

        return {
            "badges_awarded": [badge.badge_id for badge in awarded],
            "total_badges": len(awarded),
            "event_processed": True,
        }

    async def handle_event(
        self,
        company_id: uuid.UUID,
        event_type: str,
        event_data: dict[str, Any],
        event_id: uuid.UUID,
    ) -> None:
        """Event publisher handler; award errors never reach the publisher."""
        try:
            await self.award_badges(company_id, event_type, event_data, event_id)
        except StoreError as exc:
            logger.error(
                "Badge awarding failed for published event",
                company_id=str(company_id),
                event_type=event_type,
                event_id=str(event_id),
                error=str(exc),
            )

    async def _owner_profile(self, company_id: uuid.UUID) -> uuid.UUID | None:
        try:
            return await self._directory.get_profile_id(company_id)
        except StoreError as exc:
            logger.warning(
                "Company owner lookup failed, award notifications skipped",
                company_id=str(company_id),
                error=str(exc),
            )
            return None

    async def _notify(
        self,
        profile_id: uuid.UUID,
        badge: BadgeDefinition,
        event_data: dict[str, Any],
    ) -> None:
        try:
            await self._notification_repo.create_many(
                [build_badge_notification(profile_id, badge, event_data)]
            )
        except StoreError as exc:
            logger.warning(
                "Badge notification failed",
                profile_id=str(profile_id),
                badge_key=badge.badge_key,
                error=str(exc),
            )

    async def _annotate_event(
        self,
        company_id: uuid.UUID,
        event_type: str,
        event_id: uuid.UUID | None,
        badge_ids: list[uuid.UUID],
    ) -> None:
        try:
            if event_id is not None:
                await self._event_repo.annotate_awarded(event_id, badge_ids)
            else:
                await self._event_repo.annotate_latest_awarded(company_id, event_type, badge_ids)
        except StoreError as exc:
            logger.warning(
                "Badge event annotation failed",
                company_id=str(company_id),
                event_type=event_type,
                error=str(exc),
            )

    async def award_manually(
        self,
        company_id: uuid.UUID,
        badge_id: uuid.UUID,
        awarded_by: uuid.UUID | None = None,
    ) -> dict[str, object]:
        """Grant a badge by hand, bypassing its rule.

        Returns:
            Dict with badge (summary) and awarded; awarded is False when the
            company already held the badge.

        Raises:
            BadgeNotFoundError: If the badge does not exist.
        """
        record = await self._badge_repo.get_by_id(badge_id)
        if record is None:
            raise BadgeNotFoundError(f"Badge {badge_id} not found.")
        badge = badge_from_record(record)

        metadata: dict[str, Any] = {"awarded_manually": True}
        if awarded_by is not None:
            metadata["awarded_by"] = str(awarded_by)

        award = await self._company_badge_repo.award(
            company_id=company_id,
            badge_id=badge_id,
            earned_by_event=MANUAL_AWARD_EVENT,
            metadata=metadata,
        )
        if award is not None:
            profile_id = await self._owner_profile(company_id)
            if profile_id is not None:
                await self._notify(profile_id, badge, metadata)

        logger.info(
            "Badge awarded manually",
            company_id=str(company_id),
            badge_key=badge.badge_key,
            awarded=award is not None,
        )
        return {"badge": _badge_summary(badge), "awarded": award is not None}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_company_badges(self, company_id: uuid.UUID) -> list[Any]:
        """List the company's earned badges, most recent first."""
        return await self._company_badge_repo.list_by_company(company_id)

    async def company_statistics(self, company_id: uuid.UUID) -> dict[str, object]:
        """Summarise a company's badge progress.

        Returns:
            Dict with total_available, total_earned, completion_percentage,
            recent_badges (up to five, most recent first) and by_type
            (earned count per badge type).
        """
        active = await self._badge_repo.list_active()
        earned = await self._company_badge_repo.list_by_company(company_id)

        total_available = len(active)
        total_earned = len(earned)
        completion_percentage = (
            round(total_earned / total_available * 100) if total_available else 0
        )

        by_type = {badge_type: 0 for badge_type in BADGE_TYPES}
        for award in earned:
            badge_type = award.badge.badge_type
            by_type[badge_type] = by_type.get(badge_type, 0) + 1

        return {
            "total_available": total_available,
            "total_earned": total_earned,
            "completion_percentage": completion_percentage,
            "recent_badges": earned[:RECENT_BADGES_LIMIT],
            "by_type": by_type,
        }

    # ------------------------------------------------------------------
    # Catalog administration
    # ------------------------------------------------------------------

    async def list_active_badges(self) -> list[Any]:
        """List the active catalog rows."""
        return await self._badge_repo.list_active()

    async def create_badge(
        self,
        badge_key: str,
        label: str,
        description: str,
        icon: str,
        badge_type: str,
        conditions: dict[str, Any],
    ) -> Any:
        """Add a badge to the catalog.

        Raises:
            ValidationError: If the badge type is unknown or the conditions
                do not resolve to a rule.
        """
        _validate_badge(badge_key, badge_type, conditions)
        record = await self._badge_repo.create(
            badge_key=badge_key,
            label=label,
            description=description,
            icon=icon,
            badge_type=badge_type,
            conditions=conditions,
        )
        self._catalog.invalidate()

        logger.info("Badge created", badge_id=str(record.id), badge_key=badge_key)
        return record

    async def update_badge(self, badge_id: uuid.UUID, changes: dict[str, Any]) -> Any:
        """Apply field changes to a catalog badge.

        Raises:
            BadgeNotFoundError: If the badge does not exist.
            ValidationError: If a field is not updatable or the result is invalid.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Badge fields cannot be updated: {', '.join(sorted(unknown))}.")

        current = await self._badge_repo.get_by_id(badge_id)
        if current is None:
            raise BadgeNotFoundError(f"Badge {badge_id} not found.")

        _validate_badge(
            current.badge_key,
            changes.get("badge_type", current.badge_type),
            changes.get("conditions", current.conditions),
        )

        record = await self._badge_repo.update(badge_id, changes)
        if record is None:
            raise BadgeNotFoundError(f"Badge {badge_id} not found.")
        self._catalog.invalidate()

        logger.info("Badge updated", badge_id=str(badge_id), fields=sorted(changes))
        return record

    async def deactivate_badge(self, badge_id: uuid.UUID) -> Any:
        """Remove a badge from the active catalog; earned awards are kept."""
        record = await self._badge_repo.update(badge_id, {"is_active": False})
        if record is None:
            raise BadgeNotFoundError(f"Badge {badge_id} not found.")
        self._catalog.invalidate()

        logger.info("Badge deactivated", badge_id=str(badge_id))
        return record


def _validate_badge(badge_key: str, badge_type: str, conditions: dict[str, Any] | None) -> None:
    if badge_type not in BADGE_TYPES:
        raise ValidationError(
            f"Invalid badge type {badge_type!r}; expected one of {', '.join(BADGE_TYPES)}."
        )
    try:
        resolve_rule(badge_key, conditions)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def _badge_summary(badge: BadgeDefinition) -> dict[str, object]:
    return {
        "id": badge.badge_id,
        "badge_key": badge.badge_key,
        "label": badge.label,
        "description": badge.description,
        "icon": badge.icon,
        "badge_type": badge.badge_type,
    }
