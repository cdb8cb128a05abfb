"""Pydantic schemas package for hub-empresas."""

from hub_empresas.api.schemas.badge import (
    AwardBadgesRequest,
    AwardBadgesResponse,
    BadgeListResponse,
    BadgeResponse,
    BadgeStatisticsResponse,
    CompanyBadgeListResponse,
    CreateBadgeRequest,
    ManualAwardRequest,
    ManualAwardResponse,
    UpdateBadgeRequest,
)
from hub_empresas.api.schemas.notification import (
    GenerateNotificationsRequest,
    GenerateNotificationsResponse,
)
from hub_empresas.api.schemas.questionnaire import (
    ActionPlanListResponse,
    ActionPlanResponse,
    ComputeScoreRequest,
    ComputeScoreResponse,
    SaveResponseRequest,
    SaveResponseResponse,
    ScoreHistoryResponse,
    TemplateListResponse,
    UpdateActionPlanRequest,
)

__all__ = [
    "ActionPlanListResponse",
    "ActionPlanResponse",
    "AwardBadgesRequest",
    "AwardBadgesResponse",
    "BadgeListResponse",
    "BadgeResponse",
    "BadgeStatisticsResponse",
    "CompanyBadgeListResponse",
    "ComputeScoreRequest",
    "ComputeScoreResponse",
    "CreateBadgeRequest",
    "GenerateNotificationsRequest",
    "GenerateNotificationsResponse",
    "ManualAwardRequest",
    "ManualAwardResponse",
    "SaveResponseRequest",
    "SaveResponseResponse",
    "ScoreHistoryResponse",
    "TemplateListResponse",
    "UpdateActionPlanRequest",
]
