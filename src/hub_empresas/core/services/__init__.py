"""Services package for hub-empresas."""

from hub_empresas.core.services.badge_service import BadgeService
from hub_empresas.core.services.notification_service import NotificationService
from hub_empresas.core.services.questionnaire_service import QuestionnaireService

__all__ = [
    "BadgeService",
    "NotificationService",
    "QuestionnaireService",
]
