"""Service layer for periodic company risk notifications."""

from datetime import datetime, timezone

from hub_empresas.core.interfaces import ICompanyDirectory, INotificationRepository
from hub_empresas.core.notifications import (
    assess_company_risk,
    build_company_notifications,
    build_staff_notifications,
)
from hub_empresas.observability import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Generates risk alerts for company owners and staff.

    Args:
        company_directory: Company, profile, evaluation and deliverable lookup.
        notification_repository: Notification persistence.
        overdue_deliverable_days: Pending days after which a deliverable is overdue.
    """

    def __init__(
        self,
        company_directory: ICompanyDirectory,
        notification_repository: INotificationRepository,
        overdue_deliverable_days: int = 30,
    ) -> None:
        self._directory = company_directory
        self._notification_repo = notification_repository
        self._overdue_days = overdue_deliverable_days

    async def generate_risk_notifications(self, now: datetime | None = None) -> int:
        """Scan every company and notify owners and staff about risks.

        A company is at risk when it has no valid evaluation, has overdue
        deliverables, or has required deliverables still pending approval.

        Args:
            now: Reference time; defaults to the current UTC time.

        Returns:
            Number of notifications created.
        """
        now = now or datetime.now(tz=timezone.utc)

        companies = await self._directory.list_companies()
        staff_ids = await self._directory.list_staff_profile_ids()
        evaluated = await self._directory.list_companies_with_valid_evaluation()

        notifications = []
        at_risk_count = 0
        for company in companies:
            deliverables = await self._directory.list_deliverables(
                company.id, company.current_program_key
            )
            risk = assess_company_risk(
                has_valid_evaluation=company.id in evaluated,
                deliverables=deliverables,
                now=now,
                overdue_days=self._overdue_days,
            )
            if risk.at_risk:
                at_risk_count += 1
            notifications.extend(build_company_notifications(company, risk, self._overdue_days))
            notifications.extend(build_staff_notifications(company, risk, staff_ids))

        created = 0
        if notifications:
            created = await self._notification_repo.create_many(notifications)

        logger.info(
            "Risk notifications generated",
            companies=len(companies),
            at_risk=at_risk_count,
            notifications=created,
        )
        return created
