"""FastAPI routes for risk notification generation."""

from fastapi import APIRouter, Body, Depends, status

from hub_empresas.api.dependencies import get_notification_service
from hub_empresas.api.schemas.notification import (
    GenerateNotificationsRequest,
    GenerateNotificationsResponse,
)
from hub_empresas.core.services import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post(
    "/generate",
    response_model=GenerateNotificationsResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate company risk notifications",
)
async def generate_notifications(
    body: GenerateNotificationsRequest | None = Body(default=None),
    service: NotificationService = Depends(get_notification_service),
) -> GenerateNotificationsResponse:
    """Notify company owners and staff about companies at risk.

    Intended to be called by a scheduler. Each run creates fresh
    notifications; it does not deduplicate against earlier runs.
    """
    created = await service.generate_risk_notifications(
        now=body.reference_time if body else None
    )
    return GenerateNotificationsResponse(success=True, notifications_created=created)
