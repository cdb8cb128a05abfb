"""Service layer for questionnaire auto-save, scoring and action plans.

Implements the questionnaire flow:
    1. save_response()  create or update a response with the current answers
    2. compute_score()  score the answers, persist the snapshot, regenerate
                        the action plan and raise completion events
    3. action plan listing and status updates, score history

All database access goes through repository interfaces. No SQLAlchemy or
FastAPI imports belong here.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from hub_empresas.core.action_plan import ACTION_STATUSES, ActionItem, ActionPlanGenerator
from hub_empresas.core.badge_rules import (
    EVENT_QUESTIONNAIRE_COMPLETED,
    EVENT_SCORE_EXCEPCIONAL,
)
from hub_empresas.core.interfaces import (
    IActionPlanRepository,
    IEventPublisher,
    IResponseRepository,
    ITemplateRepository,
)
from hub_empresas.core.scoring import (
    QuestionnaireScorer,
    Responses,
    ScoreResult,
    completion_percent,
    count_answered,
)
from hub_empresas.core.templates import Template, template_from_record
from hub_empresas.errors import (
    ActionPlanNotFoundError,
    AnswerOutOfRangeError,
    HubError,
    ResponseNotFoundError,
    StoreError,
    TemplateNotFoundError,
    ValidationError,
)
from hub_empresas.observability import get_logger

logger = get_logger(__name__)

STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"


class QuestionnaireService:
    """Orchestrates questionnaire saving, scoring and remediation planning.

    Args:
        template_repository: Questionnaire template lookup.
        response_repository: Response persistence and completion history.
        action_plan_repository: Action plan persistence.
        event_publisher: Publisher for completion events; None disables them.
        scorer: Scoring engine.
        plan_generator: Action plan generator.
        exceptional_score_threshold: Weighted score raising score_excepcional.
        response_expiry_days: Days a completed response stays valid.
    """

    def __init__(
        self,
        template_repository: ITemplateRepository,
        response_repository: IResponseRepository,
        action_plan_repository: IActionPlanRepository,
        event_publisher: IEventPublisher | None = None,
        scorer: QuestionnaireScorer | None = None,
        plan_generator: ActionPlanGenerator | None = None,
        exceptional_score_threshold: float = 90.0,
        response_expiry_days: int = 90,
    ) -> None:
        self._template_repo = template_repository
        self._response_repo = response_repository
        self._action_plan_repo = action_plan_repository
        self._event_publisher = event_publisher
        self._scorer = scorer or QuestionnaireScorer()
        self._plan_generator = plan_generator or ActionPlanGenerator()
        self._exceptional_score_threshold = exceptional_score_threshold
        self._response_expiry = timedelta(days=response_expiry_days)

    async def _load_template(self, template_id: uuid.UUID) -> Template:
        record = await self._template_repo.get_by_id(template_id)
        if record is None:
            raise TemplateNotFoundError(f"Template {template_id} not found.")
        return template_from_record(record)

    async def list_templates(self) -> list[Template]:
        """Return the active templates."""
        records = await self._template_repo.list_active()
        return [template_from_record(record) for record in records]

    async def save_response(
        self,
        company_id: uuid.UUID,
        template_id: uuid.UUID,
        responses: dict[str, int | None],
        current_step: int | None = None,
        response_id: uuid.UUID | None = None,
    ) -> dict[str, object]:
        """Create or update a company's in-progress response.

        Args:
            company_id: Company answering the questionnaire.
            template_id: Template being answered.
            responses: Full current answer map.
            current_step: Wizard step the company is on (defaults to 1).
            response_id: Existing response to update; None creates a new one.

        Returns:
            Dict with response_id, saved, progress_percent, answered_count
            and total_questions.

        Raises:
            TemplateNotFoundError: If the template does not exist.
            ResponseNotFoundError: If response_id does not belong to the company.
            AnswerOutOfRangeError: If an answer is outside the template scale.
        """
        template = await self._load_template(template_id)
        _validate_answers(template, responses)
        step = current_step or 1

        if response_id is not None:
            record = await self._response_repo.update_answers(
                response_id=response_id,
                company_id=company_id,
                responses=responses,
                current_step=step,
            )
            if record is None:
                raise ResponseNotFoundError(
                    f"Response {response_id} not found for company {company_id}."
                )
        else:
            record = await self._response_repo.create(
                company_id=company_id,
                template_id=template_id,
                program_key=template.program_key,
                responses=responses,
                current_step=step,
                total_steps=template.total_steps,
            )

        answered_count = count_answered(template, responses)
        total_questions = template.total_questions

        logger.debug(
            "Questionnaire response saved",
            response_id=str(record.id),
            company_id=str(company_id),
            answered_count=answered_count,
            total_questions=total_questions,
        )

        return {
            "response_id": record.id,
            "saved": True,
            "progress_percent": completion_percent(answered_count, total_questions),
            "answered_count": answered_count,
            "total_questions": total_questions,
        }

    async def compute_score(
        self,
        response_id: uuid.UUID,
        company_id: uuid.UUID,
        template_id: uuid.UUID,
        responses: dict[str, int | None],
    ) -> dict[str, object]:
        """Score a response, persist the snapshot and derive the action plan.

        When the questionnaire is complete the response is marked completed
        (expiring after the configured number of days) and completion events
        are published. An incomplete questionnaire stays in progress with its
        completion timestamps cleared. The stored action plan is replaced on
        every call; it is empty when the questionnaire is incomplete or has
        no gaps.

        Args:
            response_id: Response being scored.
            company_id: Owning company.
            template_id: Template of the response.
            responses: Answer map to score.

        Returns:
            Dict with block_scores, weighted_score, pass_threshold, is_passed,
            gaps, action_plan and completion_rate.

        Raises:
            TemplateNotFoundError: If the template does not exist.
            ResponseNotFoundError: If the response does not exist or belongs to
                another company or template.
            StoreError: If the score snapshot cannot be persisted.
        """
        template = await self._load_template(template_id)
        _validate_answers(template, responses)

        response_record = await self._response_repo.get_by_id(response_id)
        if response_record is None or response_record.company_id != company_id:
            raise ResponseNotFoundError(
                f"Response {response_id} not found for company {company_id}."
            )
        if response_record.template_id != template_id:
            raise ResponseNotFoundError(
                f"Response {response_id} not found for template {template_id}."
            )

        result = self._scorer.score(template, responses)

        now = datetime.now(tz=timezone.utc)
        completed_at = now if result.is_complete else None
        expires_at = now + self._response_expiry if result.is_complete else None

        await self._response_repo.update_scores(
            response_id=response_id,
            block_scores=result.block_scores,
            total_score=result.weighted_score,
            status=STATUS_COMPLETED if result.is_complete else STATUS_IN_PROGRESS,
            completed_at=completed_at,
            expires_at=expires_at,
        )

        action_plan: list[ActionItem] = []
        if result.is_complete and result.gaps:
            action_plan = self._plan_generator.generate(
                gaps=result.gaps,
                blocks=template.blocks,
                responses=responses,
                company_id=company_id,
                program_key=template.program_key,
                max_score_per_question=template.max_score_per_question,
            )
        # An empty plan clears items left from an earlier scoring of this response.
        await self._save_action_plan(response_id, action_plan)

        if result.is_complete:
            await self._publish_completion_events(
                company_id=company_id,
                response_id=response_id,
                program_key=template.program_key,
                weighted_score=result.weighted_score,
                started_at=response_record.started_at,
                completed_at=now,
            )

        logger.info(
            "Questionnaire score computed",
            response_id=str(response_id),
            company_id=str(company_id),
            program_key=template.program_key,
            weighted_score=result.weighted_score,
            is_passed=result.is_passed,
            is_complete=result.is_complete,
            gap_count=len(result.gaps),
            action_item_count=len(action_plan),
        )

        return _score_payload(result, action_plan)

    async def _save_action_plan(
        self,
        response_id: uuid.UUID,
        action_plan: list[ActionItem],
    ) -> None:
        # A plan that fails to save does not invalidate the computed score.
        try:
            await self._action_plan_repo.replace_for_response(
                response_id=response_id,
                items=[_action_item_to_dict(item) for item in action_plan],
            )
        except StoreError as exc:
            logger.error(
                "Action plan could not be saved",
                response_id=str(response_id),
                item_count=len(action_plan),
                error=str(exc),
            )

    async def _publish_completion_events(
        self,
        company_id: uuid.UUID,
        response_id: uuid.UUID,
        program_key: str,
        weighted_score: float,
        started_at: datetime | None,
        completed_at: datetime,
    ) -> None:
        if self._event_publisher is None:
            return

        events: list[tuple[str, dict[str, Any]]] = []
        base_payload: dict[str, Any] = {
            "score": weighted_score,
            "program_key": program_key,
            "response_id": str(response_id),
        }
        if weighted_score >= self._exceptional_score_threshold:
            events.append((EVENT_SCORE_EXCEPCIONAL, dict(base_payload)))
        events.append(
            (
                EVENT_QUESTIONNAIRE_COMPLETED,
                {
                    **base_payload,
                    "completion_time_hours": _elapsed_hours(started_at, completed_at),
                },
            )
        )

        for event_type, payload in events:
            try:
                await self._event_publisher.publish(company_id, event_type, payload)
            except HubError as exc:
                logger.error(
                    "Badge event could not be published",
                    company_id=str(company_id),
                    event_type=event_type,
                    error=str(exc),
                )

    async def list_action_plans(
        self,
        company_id: uuid.UUID,
        program_key: str | None = None,
    ) -> list[Any]:
        """List a company's action items, optionally for one program stage."""
        return await self._action_plan_repo.list_by_company(company_id, program_key)

    async def update_action_plan_status(
        self,
        action_plan_id: uuid.UUID,
        status: str,
    ) -> Any:
        """Change an action item's status.

        Raises:
            ValidationError: If the status is not a known action status.
            ActionPlanNotFoundError: If the item does not exist.
        """
        if status not in ACTION_STATUSES:
            raise ValidationError(
                f"Invalid action plan status {status!r}; expected one of {', '.join(ACTION_STATUSES)}."
            )
        record = await self._action_plan_repo.update_status(action_plan_id, status)
        if record is None:
            raise ActionPlanNotFoundError(f"Action plan {action_plan_id} not found.")

        logger.info(
            "Action plan status updated",
            action_plan_id=str(action_plan_id),
            status=status,
        )
        return record

    async def get_score_history(self, company_id: uuid.UUID) -> list[Any]:
        """Return the company's completed, scored responses oldest first."""
        return await self._response_repo.list_score_history(company_id)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _validate_answers(template: Template, responses: Responses) -> None:
    """Reject answers outside 0..max_score_per_question for known questions."""
    known_ids = template.question_ids
    for question_id, answer in responses.items():
        if answer is None or question_id not in known_ids:
            continue
        if not 0 <= answer <= template.max_score_per_question:
            raise AnswerOutOfRangeError(
                f"Answer {answer!r} for question {question_id!r} is outside the "
                f"0-{template.max_score_per_question} scale."
            )


def _elapsed_hours(started_at: datetime | None, completed_at: datetime) -> int:
    """Whole hours between start and completion, 0 when the start is unknown."""
    if started_at is None:
        return 0
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)
    return max(0, round((completed_at - started_at).total_seconds() / 3600))


def _action_item_to_dict(item: ActionItem) -> dict[str, Any]:
    return {
        "company_id": item.company_id,
        "program_key": item.program_key,
        "priority": item.priority,
        "category": item.category,
        "item_reference": item.item_reference,
        "action_description": item.action_description,
        "estimated_effort_hours": item.estimated_effort_hours,
        "status": item.status,
    }


def _score_payload(result: ScoreResult, action_plan: list[ActionItem]) -> dict[str, object]:
    return {
        "block_scores": result.block_scores,
        "weighted_score": result.weighted_score,
        "pass_threshold": result.pass_threshold,
        "is_passed": result.is_passed,
        "gaps": [
            {"block": gap.block, "score": gap.score, "weight": gap.weight}
            for gap in result.gaps
        ],
        "action_plan": [_action_item_to_dict(item) for item in action_plan],
        "completion_rate": result.completion_rate,
    }
