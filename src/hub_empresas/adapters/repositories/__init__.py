"""Repository sub-package for hub-empresas.

SQLAlchemy 2.0 async implementations of the interfaces in
``hub_empresas.core.interfaces``.
"""

from hub_empresas.adapters.repositories.badge_repository import (
    BadgeEventRepository,
    BadgeRepository,
    CompanyBadgeRepository,
)
from hub_empresas.adapters.repositories.notification_repository import (
    CompanyDirectory,
    NotificationRepository,
)
from hub_empresas.adapters.repositories.questionnaire_repository import (
    ActionPlanRepository,
    ResponseRepository,
    TemplateRepository,
)

__all__ = [
    "ActionPlanRepository",
    "BadgeEventRepository",
    "BadgeRepository",
    "CompanyBadgeRepository",
    "CompanyDirectory",
    "NotificationRepository",
    "ResponseRepository",
    "TemplateRepository",
]
