"""Repositories for questionnaire templates, responses and action plans.

Implements the questionnaire-side repository interfaces using SQLAlchemy 2.0
async ORM. Writes whose failure the services tolerate (action plans) run
inside a savepoint so a failed statement leaves the request transaction
usable.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hub_empresas.adapters.repositories.base import translate_store_errors
from hub_empresas.core.models import ActionPlan, QuestionnaireResponse, QuestionnaireTemplate
from hub_empresas.observability import get_logger

logger = get_logger(__name__)

_COMPLETED = "completed"


class TemplateRepository:
    """Read access to questionnaire templates."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_store_errors
    async def get_by_id(self, template_id: uuid.UUID) -> QuestionnaireTemplate | None:
        """Retrieve a template by id.

        Args:
            template_id: Template UUID.

        Returns:
            QuestionnaireTemplate or None if not found.
        """
        result = await self._session.execute(
            select(QuestionnaireTemplate).where(QuestionnaireTemplate.id == template_id)
        )
        return result.scalar_one_or_none()

    @translate_store_errors
    async def list_active(self) -> list[QuestionnaireTemplate]:
        """List active templates ordered by program key."""
        result = await self._session.execute(
            select(QuestionnaireTemplate)
            .where(QuestionnaireTemplate.is_active.is_(True))
            .order_by(QuestionnaireTemplate.program_key)
        )
        return list(result.scalars().all())


class ResponseRepository:
    """Persistence for questionnaire responses and completion history."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_store_errors
    async def get_by_id(self, response_id: uuid.UUID) -> QuestionnaireResponse | None:
        """Retrieve a response by id."""
        result = await self._session.execute(
            select(QuestionnaireResponse).where(QuestionnaireResponse.id == response_id)
        )
        return result.scalar_one_or_none()

    @translate_store_errors
    async def create(
        self,
        company_id: uuid.UUID,
        template_id: uuid.UUID,
        program_key: str,
        responses: dict[str, int | None],
        current_step: int,
        total_steps: int,
    ) -> QuestionnaireResponse:
        """Persist a new in-progress response.

        Args:
            company_id: Answering company.
            template_id: Template being answered.
            program_key: Program stage of the template.
            responses: Initial answer map.
            current_step: Wizard step pointer.
            total_steps: Number of steps in the template.

        Returns:
            The persisted QuestionnaireResponse.
        """
        record = QuestionnaireResponse(
            company_id=company_id,
            template_id=template_id,
            program_key=program_key,
            responses=dict(responses),
            current_step=current_step,
            total_steps=total_steps,
            status="in_progress",
        )
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)

        logger.debug(
            "Questionnaire response created",
            response_id=str(record.id),
            company_id=str(company_id),
            program_key=program_key,
        )
        return record

    @translate_store_errors
    async def update_answers(
        self,
        response_id: uuid.UUID,
        company_id: uuid.UUID,
        responses: dict[str, int | None],
        current_step: int,
    ) -> QuestionnaireResponse | None:
        """Replace the answer map of a company's response.

        Returns:
            The updated response, or None if no such response belongs to
            the company.
        """
        result = await self._session.execute(
            update(QuestionnaireResponse)
            .where(
                QuestionnaireResponse.id == response_id,
                QuestionnaireResponse.company_id == company_id,
            )
            .values(responses=dict(responses), current_step=current_step)
            .returning(QuestionnaireResponse)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    @translate_store_errors
    async def update_scores(
        self,
        response_id: uuid.UUID,
        block_scores: dict[str, float],
        total_score: float,
        status: str,
        completed_at: datetime | None,
        expires_at: datetime | None,
    ) -> QuestionnaireResponse | None:
        """Persist the score snapshot and lifecycle fields of a response."""
        result = await self._session.execute(
            update(QuestionnaireResponse)
            .where(QuestionnaireResponse.id == response_id)
            .values(
                block_scores=block_scores,
                total_score=total_score,
                status=status,
                completed_at=completed_at,
                expires_at=expires_at,
            )
            .returning(QuestionnaireResponse)
            .execution_options(synchronize_session=False)
        )
        record = result.scalar_one_or_none()

        logger.debug(
            "Questionnaire scores persisted",
            response_id=str(response_id),
            total_score=total_score,
            status=status,
        )
        return record

    @translate_store_errors
    async def list_score_history(self, company_id: uuid.UUID) -> list[QuestionnaireResponse]:
        """List completed responses with a score, oldest completion first."""
        result = await self._session.execute(
            select(QuestionnaireResponse)
            .where(
                QuestionnaireResponse.company_id == company_id,
                QuestionnaireResponse.status == _COMPLETED,
                QuestionnaireResponse.total_score.is_not(None),
            )
            .order_by(QuestionnaireResponse.completed_at)
        )
        return list(result.scalars().all())

    @translate_store_errors
    async def list_completed_program_keys(self, company_id: uuid.UUID) -> set[str]:
        """Return the program keys the company has completed a questionnaire for."""
        result = await self._session.execute(
            select(QuestionnaireResponse.program_key)
            .where(
                QuestionnaireResponse.company_id == company_id,
                QuestionnaireResponse.status == _COMPLETED,
            )
            .distinct()
        )
        return set(result.scalars().all())

    @translate_store_errors
    async def list_recent_completion_times(
        self,
        company_id: uuid.UUID,
        limit: int,
    ) -> list[datetime]:
        """Return up to ``limit`` completion timestamps, most recent first."""
        result = await self._session.execute(
            select(QuestionnaireResponse.completed_at)
            .where(
                QuestionnaireResponse.company_id == company_id,
                QuestionnaireResponse.status == _COMPLETED,
                QuestionnaireResponse.completed_at.is_not(None),
            )
            .order_by(QuestionnaireResponse.completed_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


class ActionPlanRepository:
    """Persistence for action plan items."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @translate_store_errors
    async def replace_for_response(
        self,
        response_id: uuid.UUID,
        items: list[dict[str, Any]],
    ) -> list[ActionPlan]:
        """Replace the action plan generated for a response.

        Args:
            response_id: Response the plan was generated from.
            items: Action item dicts matching the ActionPlan columns.

        Returns:
            The inserted ActionPlan records.
        """
        async with self._session.begin_nested():
            await self._session.execute(
                delete(ActionPlan).where(ActionPlan.response_id == response_id)
            )
            records = [ActionPlan(response_id=response_id, **item) for item in items]
            self._session.add_all(records)
            await self._session.flush()

        logger.debug(
            "Action plan replaced",
            response_id=str(response_id),
            item_count=len(records),
        )
        return records

    @translate_store_errors
    async def list_by_company(
        self,
        company_id: uuid.UUID,
        program_key: str | None,
    ) -> list[ActionPlan]:
        """List a company's action items, newest first."""
        query = select(ActionPlan).where(ActionPlan.company_id == company_id)
        if program_key is not None:
            query = query.where(ActionPlan.program_key == program_key)
        result = await self._session.execute(query.order_by(ActionPlan.created_at.desc()))
        return list(result.scalars().all())

    @translate_store_errors
    async def update_status(self, action_plan_id: uuid.UUID, status: str) -> ActionPlan | None:
        """Update an action item's status; None if it does not exist."""
        result = await self._session.execute(
            update(ActionPlan)
            .where(ActionPlan.id == action_plan_id)
            .values(status=status)
            .returning(ActionPlan)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()
