"""Abstract interfaces (Protocol classes) for the HUB Empresas service.

Services depend on these interfaces, not on the SQLAlchemy repositories in
``adapters/repositories``, so that they can be tested with plain mocks.
Repository methods raise ``hub_empresas.errors.StoreError`` when the
database fails.
"""

import uuid
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ITemplateRepository(Protocol):
    """Repository interface for questionnaire templates."""

    async def get_by_id(self, template_id: uuid.UUID) -> Any | None:
        """Retrieve a template row by id."""
        ...

    async def list_active(self) -> list[Any]:
        """List active templates ordered by program key."""
        ...


@runtime_checkable
class ICompletionHistory(Protocol):
    """Read access to a company's completed questionnaires."""

    async def list_completed_program_keys(self, company_id: uuid.UUID) -> set[str]:
        """Return the program keys for which the company has a completed response."""
        ...

    async def list_recent_completion_times(
        self, company_id: uuid.UUID, limit: int
    ) -> list[datetime]:
        """Return up to ``limit`` completion timestamps, most recent first."""
        ...


@runtime_checkable
class IResponseRepository(ICompletionHistory, Protocol):
    """Repository interface for questionnaire responses."""

    async def get_by_id(self, response_id: uuid.UUID) -> Any | None:
        """Retrieve a response row by id."""
        ...

    async def create(
        self,
        company_id: uuid.UUID,
        template_id: uuid.UUID,
        program_key: str,
        responses: dict[str, int | None],
        current_step: int,
        total_steps: int,
    ) -> Any:
        """Create an in-progress response row."""
        ...

    async def update_answers(
        self,
        response_id: uuid.UUID,
        company_id: uuid.UUID,
        responses: dict[str, int | None],
        current_step: int,
    ) -> Any | None:
        """Replace the answer map and step pointer; None if no such response."""
        ...

    async def update_scores(
        self,
        response_id: uuid.UUID,
        block_scores: dict[str, float],
        total_score: float,
        status: str,
        completed_at: datetime | None,
        expires_at: datetime | None,
    ) -> Any | None:
        """Persist the score snapshot and lifecycle fields."""
        ...

    async def list_score_history(self, company_id: uuid.UUID) -> list[Any]:
        """List completed, scored responses ordered by completion time."""
        ...


@runtime_checkable
class IActionPlanRepository(Protocol):
    """Repository interface for action plan items."""

    async def replace_for_response(
        self,
        response_id: uuid.UUID,
        items: list[dict[str, Any]],
    ) -> list[Any]:
        """Delete the response's previous plan and insert the new items."""
        ...

    async def list_by_company(
        self,
        company_id: uuid.UUID,
        program_key: str | None,
    ) -> list[Any]:
        """List a company's action items, optionally for one program stage."""
        ...

    async def update_status(self, action_plan_id: uuid.UUID, status: str) -> Any | None:
        """Update an item's status; None if it does not exist."""
        ...


@runtime_checkable
class IBadgeRepository(Protocol):
    """Repository interface for the badge catalog."""

    async def list_active(self) -> list[Any]:
        """List active badges ordered by type and creation time."""
        ...

    async def get_by_id(self, badge_id: uuid.UUID) -> Any | None:
        """Retrieve a badge by id."""
        ...

    async def create(
        self,
        badge_key: str,
        label: str,
        description: str,
        icon: str,
        badge_type: str,
        conditions: dict[str, Any],
    ) -> Any:
        """Create a catalog badge."""
        ...

    async def update(self, badge_id: uuid.UUID, changes: dict[str, Any]) -> Any | None:
        """Apply field changes to a badge; None if it does not exist."""
        ...


@runtime_checkable
class ICompanyBadgeRepository(Protocol):
    """Repository interface for badges earned by companies."""

    async def list_badge_ids(self, company_id: uuid.UUID) -> set[uuid.UUID]:
        """Return the ids of all badges the company holds."""
        ...

    async def award(
        self,
        company_id: uuid.UUID,
        badge_id: uuid.UUID,
        earned_by_event: str,
        metadata: dict[str, Any],
    ) -> Any | None:
        """Insert the award; None when the pair already exists."""
        ...

    async def list_by_company(self, company_id: uuid.UUID) -> list[Any]:
        """List the company's awards with their badge, most recent first."""
        ...


@runtime_checkable
class IBadgeEventRepository(Protocol):
    """Repository interface for badge-triggering events."""

    async def create(
        self,
        company_id: uuid.UUID,
        event_type: str,
        event_data: dict[str, Any],
    ) -> Any:
        """Record a new event."""
        ...

    async def annotate_awarded(
        self,
        event_id: uuid.UUID,
        badge_ids: list[uuid.UUID],
    ) -> None:
        """Store the badges awarded because of an event."""
        ...

    async def annotate_latest_awarded(
        self,
        company_id: uuid.UUID,
        event_type: str,
        badge_ids: list[uuid.UUID],
    ) -> None:
        """Annotate the most recent event of this type for the company."""
        ...


@runtime_checkable
class INotificationRepository(Protocol):
    """Repository interface for user notifications."""

    async def create_many(self, notifications: list[dict[str, Any]]) -> int:
        """Insert notifications and return how many were created."""
        ...


@runtime_checkable
class ICompanyDirectory(Protocol):
    """Read access to companies, staff profiles, evaluations and deliverables."""

    async def get_profile_id(self, company_id: uuid.UUID) -> uuid.UUID | None:
        """Return the owner profile id of a company."""
        ...

    async def list_companies(self) -> list[Any]:
        """List all companies."""
        ...

    async def list_staff_profile_ids(self) -> list[uuid.UUID]:
        """Return the ids of admin and mentor profiles."""
        ...

    async def list_companies_with_valid_evaluation(self) -> set[uuid.UUID]:
        """Return ids of companies that have at least one valid evaluation."""
        ...

    async def list_deliverables(
        self,
        company_id: uuid.UUID,
        program_key: str | None,
    ) -> list[Any]:
        """List a company's deliverables for its current program stage."""
        ...


@runtime_checkable
class IEventPublisher(Protocol):
    """Publisher of badge-triggering domain events."""

    async def publish(
        self,
        company_id: uuid.UUID,
        event_type: str,
        event_data: dict[str, Any],
    ) -> uuid.UUID:
        """Record and dispatch an event, returning its id."""
        ...


@runtime_checkable
class IBadgeCatalog(Protocol):
    """Cached access to the active badge catalog."""

    async def get(self, repository: IBadgeRepository) -> list[Any]:
        """Return the active BadgeDefinitions."""
        ...

    def invalidate(self) -> None:
        """Drop the cached catalog."""
        ...
