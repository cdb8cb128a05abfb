"""Pydantic request/response schemas for the questionnaire API.

All API inputs and outputs are strictly typed Pydantic v2 models.
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ActionStatus = Literal["pending", "in_progress", "completed", "cancelled"]


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class QuestionSchema(BaseModel):
    """A single template question."""

    id: str
    text: str
    type: str


class BlockSchema(BaseModel):
    """A weighted block of questions."""

    name: str
    weight: float
    questions: list[QuestionSchema]


class TemplateResponse(BaseModel):
    """An active questionnaire template.

    Attributes:
        id: Template UUID.
        program_key: Program stage the template belongs to.
        title: Display title.
        blocks: Weighted question blocks in display order.
        max_score_per_question: Top of the answer scale.
        pass_threshold: Fraction 0-1 of the weighted score required to pass.
        scale: Human-readable answer scale.
        total_questions: Number of questions across all blocks.
    """

    id: uuid.UUID
    program_key: str
    title: str
    blocks: list[BlockSchema]
    max_score_per_question: int
    pass_threshold: float
    scale: str
    total_questions: int


class TemplateListResponse(BaseModel):
    """Active templates."""

    templates: list[TemplateResponse]


# ---------------------------------------------------------------------------
# Save response
# ---------------------------------------------------------------------------


class SaveResponseRequest(BaseModel):
    """Request body for auto-saving a questionnaire response.

    Attributes:
        company_id: Company answering the questionnaire.
        template_id: Template being answered.
        responses: Full current answer map, question id to answer (null when
            unanswered).
        current_step: Wizard step the company is on.
        response_id: Existing response to update; omitted on first save.
    """

    company_id: uuid.UUID
    template_id: uuid.UUID
    responses: dict[str, int | None] = Field(default_factory=dict)
    current_step: int | None = Field(default=None, ge=1)
    response_id: uuid.UUID | None = None


class SaveResponseResponse(BaseModel):
    """Result of an auto-save."""

    response_id: uuid.UUID
    saved: bool
    progress_percent: int
    answered_count: int
    total_questions: int


# ---------------------------------------------------------------------------
# Compute score
# ---------------------------------------------------------------------------


class ComputeScoreRequest(BaseModel):
    """Request body for scoring a response."""

    response_id: uuid.UUID
    company_id: uuid.UUID
    template_id: uuid.UUID
    responses: dict[str, int | None] = Field(default_factory=dict)


class GapSchema(BaseModel):
    """A block scoring below the gap threshold."""

    block: str
    score: float
    weight: float


class ActionItemSchema(BaseModel):
    """A generated remediation item."""

    company_id: uuid.UUID
    program_key: str
    priority: Literal["high", "medium", "low"]
    category: str
    item_reference: str
    action_description: str
    estimated_effort_hours: int
    status: ActionStatus


class ComputeScoreResponse(BaseModel):
    """Score snapshot of a response.

    Attributes:
        block_scores: Block name to score 0-100.
        weighted_score: Weighted total 0-100.
        pass_threshold: Passing score on the 0-100 scale.
        is_passed: Whether the weighted score reaches the threshold.
        gaps: Blocks below the gap threshold in template order.
        action_plan: Items generated for the gaps (empty if incomplete).
        completion_rate: Percent of template questions answered.
    """

    block_scores: dict[str, float]
    weighted_score: float
    pass_threshold: float
    is_passed: bool
    gaps: list[GapSchema]
    action_plan: list[ActionItemSchema]
    completion_rate: int


# ---------------------------------------------------------------------------
# Action plans and history
# ---------------------------------------------------------------------------


class ActionPlanResponse(BaseModel):
    """A persisted action plan item."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    response_id: uuid.UUID | None
    company_id: uuid.UUID
    program_key: str
    priority: str
    category: str
    item_reference: str
    action_description: str
    estimated_effort_hours: int | None
    due_date: datetime | None
    status: str
    created_at: datetime


class ActionPlanListResponse(BaseModel):
    """A company's action plan items."""

    items: list[ActionPlanResponse]
    total: int


class UpdateActionPlanRequest(BaseModel):
    """Request body for changing an action item's status."""

    status: ActionStatus


class ScoreHistoryEntry(BaseModel):
    """One completed, scored response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    program_key: str
    total_score: float
    block_scores: dict[str, float] | None
    completed_at: datetime | None


class ScoreHistoryResponse(BaseModel):
    """A company's score history, oldest first."""

    history: list[ScoreHistoryEntry]
