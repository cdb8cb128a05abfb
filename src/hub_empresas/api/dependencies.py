"""Dependency factories wiring repositories into services.

Every factory shares the request's database session, so a questionnaire
score, the events it publishes and the badges they award commit together.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hub_empresas.adapters.badge_catalog import SessionBoundCatalog, get_badge_catalog_cache
from hub_empresas.adapters.events import BadgeEventPublisher
from hub_empresas.adapters.repositories import (
    ActionPlanRepository,
    BadgeEventRepository,
    BadgeRepository,
    CompanyBadgeRepository,
    CompanyDirectory,
    NotificationRepository,
    ResponseRepository,
    TemplateRepository,
)
from hub_empresas.core.action_plan import ActionPlanGenerator
from hub_empresas.core.badge_rules import BadgeRuleEvaluator
from hub_empresas.core.scoring import QuestionnaireScorer
from hub_empresas.core.services import BadgeService, NotificationService, QuestionnaireService
from hub_empresas.database import get_db_session
from hub_empresas.settings import Settings, get_settings


def get_badge_service(
    session: AsyncSession = Depends(get_db_session),
) -> BadgeService:
    """Build BadgeService with injected repository dependencies."""
    return BadgeService(
        badge_repository=BadgeRepository(session),
        company_badge_repository=CompanyBadgeRepository(session),
        event_repository=BadgeEventRepository(session),
        notification_repository=NotificationRepository(session),
        company_directory=CompanyDirectory(session),
        evaluator=BadgeRuleEvaluator(ResponseRepository(session)),
        catalog=SessionBoundCatalog(get_badge_catalog_cache(), session),
    )


def get_questionnaire_service(
    session: AsyncSession = Depends(get_db_session),
    badge_service: BadgeService = Depends(get_badge_service),
    settings: Settings = Depends(get_settings),
) -> QuestionnaireService:
    """Build QuestionnaireService.

    Completion events are recorded through a BadgeEventPublisher; when
    auto-award is enabled the publisher forwards them to the badge service.
    """
    handler = badge_service.handle_event if settings.badge_auto_award_enabled else None
    return QuestionnaireService(
        template_repository=TemplateRepository(session),
        response_repository=ResponseRepository(session),
        action_plan_repository=ActionPlanRepository(session),
        event_publisher=BadgeEventPublisher(BadgeEventRepository(session), handler=handler),
        scorer=QuestionnaireScorer(gap_threshold=settings.gap_threshold),
        plan_generator=ActionPlanGenerator(),
        exceptional_score_threshold=settings.exceptional_score_threshold,
        response_expiry_days=settings.response_expiry_days,
    )


def get_notification_service(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> NotificationService:
    """Build NotificationService."""
    return NotificationService(
        company_directory=CompanyDirectory(session),
        notification_repository=NotificationRepository(session),
        overdue_deliverable_days=settings.overdue_deliverable_days,
    )
