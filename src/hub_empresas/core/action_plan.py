"""Automatic action plan generation from questionnaire gaps.

For every gap block, each question answered below full marks becomes one
remediation item. Gaps are processed heaviest block first so that the most
consequential work leads the plan.

Priority is a function of the block score, not of the individual answer:
    score < 50  -> high
    score < 70  -> medium
    otherwise   -> low

Effort estimate per item:
    answer 0 (not started) -> 8 hours
    partial answer         -> 4 hours
"""

import uuid
from dataclasses import dataclass
from typing import Mapping

from hub_empresas.core.scoring import Gap
from hub_empresas.core.templates import Block

ACTION_STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed", "cancelled")

_HIGH_PRIORITY_BELOW: float = 50.0
_MEDIUM_PRIORITY_BELOW: float = 70.0
_EFFORT_NOT_STARTED_HOURS: int = 8
_EFFORT_PARTIAL_HOURS: int = 4


@dataclass(frozen=True)
class ActionItem:
    """A remediation task for one under-scored question.

    Attributes:
        company_id: Company that owns the plan.
        program_key: Program stage of the questionnaire.
        priority: high | medium | low, from the owning block's score.
        category: Always 'question' for generated items.
        item_reference: The question id.
        action_description: Text shown to the company.
        estimated_effort_hours: 8 for unanswered/zero answers, 4 for partial.
        status: Initial status, always 'pending'.
    """

    company_id: uuid.UUID
    program_key: str
    priority: str
    category: str
    item_reference: str
    action_description: str
    estimated_effort_hours: int
    status: str = "pending"


def priority_for_block_score(score: float) -> str:
    """Map a block score to an action priority tier."""
    if score < _HIGH_PRIORITY_BELOW:
        return "high"
    if score < _MEDIUM_PRIORITY_BELOW:
        return "medium"
    # Unreachable while the gap threshold is 70.
    return "low"


def effort_for_answer(answer: int) -> int:
    return _EFFORT_NOT_STARTED_HOURS if answer == 0 else _EFFORT_PARTIAL_HOURS


class ActionPlanGenerator:
    """Builds ordered remediation plans from scoring gaps.

    The generator is pure: identical inputs always produce the same ordered
    list. Persisting the plan, and removing a previous plan for the same
    response, is the caller's job.
    """

    def generate(
        self,
        gaps: list[Gap],
        blocks: tuple[Block, ...],
        responses: Mapping[str, int | None],
        company_id: uuid.UUID,
        program_key: str,
        max_score_per_question: int = 2,
    ) -> list[ActionItem]:
        """Generate action items for every under-scored question in the gaps.

        Args:
            gaps: Gap blocks from the scorer.
            blocks: Template blocks, used for question order and text.
            responses: Answer map; missing answers count as 0.
            company_id: Owner of the generated items.
            program_key: Program stage of the questionnaire.
            max_score_per_question: Full-marks answer value.

        Returns:
            Items ordered by descending gap weight (stable on ties), then by
            question order within each block.
        """
        blocks_by_name: dict[str, Block] = {block.name: block for block in blocks}
        ordered_gaps = sorted(gaps, key=lambda gap: gap.weight, reverse=True)

        items: list[ActionItem] = []
        for gap in ordered_gaps:
            block = blocks_by_name.get(gap.block)
            if block is None:
                continue

            priority = priority_for_block_score(gap.score)
            for question in block.questions:
                answer = responses.get(question.question_id) or 0
                if answer >= max_score_per_question:
                    continue
                items.append(
                    ActionItem(
                        company_id=company_id,
                        program_key=program_key,
                        priority=priority,
                        category="question",
                        item_reference=question.question_id,
                        action_description=f"Melhorar: {question.text}",
                        estimated_effort_hours=effort_for_answer(answer),
                    )
                )
        return items
