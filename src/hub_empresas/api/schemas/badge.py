"""Pydantic request/response schemas for the badge API."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hub_empresas.core.badge_rules import BADGE_EVENT_TYPES, BADGE_TYPES


class AwardBadgesRequest(BaseModel):
    """Request body for evaluating an event against the badge catalog.

    Attributes:
        company_id: Company the event belongs to.
        event_type: One of the badge event types.
        event_data: Event payload (score, to_stage, completion_time_hours, ...).
    """

    company_id: uuid.UUID
    event_type: str
    event_data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("event_type")
    @classmethod
    def validate_event_type(cls, value: str) -> str:
        """Reject event types that can never award a badge."""
        if value not in BADGE_EVENT_TYPES:
            raise ValueError(f"event_type must be one of {', '.join(BADGE_EVENT_TYPES)}")
        return value


class AwardedBadgeSchema(BaseModel):
    """A badge granted by a manual award."""

    id: uuid.UUID
    badge_key: str
    label: str
    description: str
    icon: str
    badge_type: str


class AwardBadgesResponse(BaseModel):
    """Result of evaluating an event.

    Attributes:
        badges_awarded: Ids of the badges newly awarded, in catalog order.
        total_badges: Number of badges awarded.
        event_processed: Always True once the event was evaluated.
    """

    badges_awarded: list[uuid.UUID]
    total_badges: int
    event_processed: bool


class BadgeResponse(BaseModel):
    """A catalog badge."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    badge_key: str
    label: str
    description: str
    icon: str
    badge_type: str
    conditions: dict[str, Any]
    is_active: bool
    created_at: datetime


class BadgeListResponse(BaseModel):
    """Active catalog badges."""

    badges: list[BadgeResponse]


class CreateBadgeRequest(BaseModel):
    """Request body for adding a catalog badge."""

    badge_key: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9_]+$")
    label: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    icon: str = ""
    badge_type: str = Field(..., description=" | ".join(BADGE_TYPES))
    conditions: dict[str, Any] = Field(default_factory=dict)


class UpdateBadgeRequest(BaseModel):
    """Request body for changing a catalog badge. Omitted fields are kept."""

    label: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    icon: str | None = None
    badge_type: str | None = None
    conditions: dict[str, Any] | None = None
    is_active: bool | None = None


class CompanyBadgeResponse(BaseModel):
    """A badge earned by a company."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_id: uuid.UUID
    earned_at: datetime
    earned_by_event: str
    badge: BadgeResponse


class CompanyBadgeListResponse(BaseModel):
    """A company's earned badges, most recent first."""

    badges: list[CompanyBadgeResponse]
    total: int


class BadgeStatisticsResponse(BaseModel):
    """A company's badge progress.

    Attributes:
        total_available: Active catalog size.
        total_earned: Badges the company holds.
        completion_percentage: Earned share of the catalog, 0-100.
        recent_badges: Up to five most recent awards.
        by_type: Earned count per badge type.
    """

    total_available: int
    total_earned: int
    completion_percentage: int
    recent_badges: list[CompanyBadgeResponse]
    by_type: dict[str, int]


class ManualAwardRequest(BaseModel):
    """Optional body for a manual award."""

    awarded_by: uuid.UUID | None = None


class ManualAwardResponse(BaseModel):
    """Result of a manual award. awarded is False when already held."""

    badge: AwardedBadgeSchema
    awarded: bool
