"""FastAPI routes for badge awarding, the badge catalog and company badges."""

import uuid

from fastapi import APIRouter, Body, Depends, Path, status

from hub_empresas.api.dependencies import get_badge_service
from hub_empresas.api.schemas.badge import (
    AwardBadgesRequest,
    AwardBadgesResponse,
    BadgeListResponse,
    BadgeResponse,
    BadgeStatisticsResponse,
    CompanyBadgeListResponse,
    CompanyBadgeResponse,
    CreateBadgeRequest,
    ManualAwardRequest,
    ManualAwardResponse,
    UpdateBadgeRequest,
)
from hub_empresas.core.services import BadgeService

router = APIRouter(tags=["Badges"])


# ---------------------------------------------------------------------------
# Awarding
# ---------------------------------------------------------------------------


@router.post(
    "/badges/award",
    response_model=AwardBadgesResponse,
    status_code=status.HTTP_200_OK,
    summary="Evaluate an event against the badge catalog",
)
async def award_badges(
    body: AwardBadgesRequest,
    service: BadgeService = Depends(get_badge_service),
) -> AwardBadgesResponse:
    """Award every active badge the event newly qualifies the company for.

    Badges already held are never re-awarded. A failure on one badge leaves
    it out of badges_awarded without failing the request.
    """
    result = await service.award_badges(
        company_id=body.company_id,
        event_type=body.event_type,
        event_data=body.event_data,
    )
    return AwardBadgesResponse(**result)  # type: ignore[arg-type]


@router.post(
    "/companies/{company_id}/badges/{badge_id}",
    response_model=ManualAwardResponse,
    status_code=status.HTTP_200_OK,
    summary="Award a badge to a company by hand",
)
async def award_badge_manually(
    company_id: uuid.UUID = Path(..., description="Company UUID"),
    badge_id: uuid.UUID = Path(..., description="Badge UUID"),
    body: ManualAwardRequest | None = Body(default=None),
    service: BadgeService = Depends(get_badge_service),
) -> ManualAwardResponse:
    """Grant a badge regardless of its rule; a badge already held is a no-op."""
    result = await service.award_manually(
        company_id=company_id,
        badge_id=badge_id,
        awarded_by=body.awarded_by if body else None,
    )
    return ManualAwardResponse(**result)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Company badges
# ---------------------------------------------------------------------------


@router.get(
    "/companies/{company_id}/badges",
    response_model=CompanyBadgeListResponse,
    summary="List a company's earned badges",
)
async def list_company_badges(
    company_id: uuid.UUID = Path(..., description="Company UUID"),
    service: BadgeService = Depends(get_badge_service),
) -> CompanyBadgeListResponse:
    """Return the company's awards, most recent first."""
    awards = await service.list_company_badges(company_id)
    return CompanyBadgeListResponse(
        badges=[CompanyBadgeResponse.model_validate(award) for award in awards],
        total=len(awards),
    )


@router.get(
    "/companies/{company_id}/badges/statistics",
    response_model=BadgeStatisticsResponse,
    summary="Summarise a company's badge progress",
)
async def company_badge_statistics(
    company_id: uuid.UUID = Path(..., description="Company UUID"),
    service: BadgeService = Depends(get_badge_service),
) -> BadgeStatisticsResponse:
    """Return earned and available counts, completion and recent awards."""
    stats = await service.company_statistics(company_id)
    return BadgeStatisticsResponse(
        total_available=stats["total_available"],  # type: ignore[arg-type]
        total_earned=stats["total_earned"],  # type: ignore[arg-type]
        completion_percentage=stats["completion_percentage"],  # type: ignore[arg-type]
        recent_badges=[
            CompanyBadgeResponse.model_validate(award)
            for award in stats["recent_badges"]  # type: ignore[union-attr]
        ],
        by_type=stats["by_type"],  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Catalog administration
# ---------------------------------------------------------------------------


@router.get(
    "/badges",
    response_model=BadgeListResponse,
    summary="List the active badge catalog",
)
async def list_badges(
    service: BadgeService = Depends(get_badge_service),
) -> BadgeListResponse:
    """Return the active catalog ordered by badge type."""
    badges = await service.list_active_badges()
    return BadgeListResponse(badges=[BadgeResponse.model_validate(b) for b in badges])


@router.post(
    "/badges",
    response_model=BadgeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a badge to the catalog",
)
async def create_badge(
    body: CreateBadgeRequest,
    service: BadgeService = Depends(get_badge_service),
) -> BadgeResponse:
    """Create a catalog badge. Its conditions must resolve to a known rule."""
    record = await service.create_badge(
        badge_key=body.badge_key,
        label=body.label,
        description=body.description,
        icon=body.icon,
        badge_type=body.badge_type,
        conditions=body.conditions,
    )
    return BadgeResponse.model_validate(record)


@router.patch(
    "/badges/{badge_id}",
    response_model=BadgeResponse,
    summary="Update a catalog badge",
)
async def update_badge(
    body: UpdateBadgeRequest,
    badge_id: uuid.UUID = Path(..., description="Badge UUID"),
    service: BadgeService = Depends(get_badge_service),
) -> BadgeResponse:
    """Apply the supplied fields to a catalog badge."""
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    record = await service.update_badge(badge_id, changes)
    return BadgeResponse.model_validate(record)


@router.delete(
    "/badges/{badge_id}",
    response_model=BadgeResponse,
    summary="Deactivate a catalog badge",
)
async def deactivate_badge(
    badge_id: uuid.UUID = Path(..., description="Badge UUID"),
    service: BadgeService = Depends(get_badge_service),
) -> BadgeResponse:
    """Remove a badge from the active catalog. Earned awards are kept."""
    record = await service.deactivate_badge(badge_id)
    return BadgeResponse.model_validate(record)
