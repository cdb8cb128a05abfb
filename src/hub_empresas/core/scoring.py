"""Questionnaire scoring algorithm.

Answers are integers on the template scale (0=Não, 1=Parcial, 2=Sim on the
current templates). Each block is scored as the percentage of the maximum
attainable points; the weighted score combines block scores using the block
weights as given. Blocks scoring under the gap threshold become gaps that
feed the action plan generator.

This module is independent of the database layer so that the scoring logic
can be unit-tested without any infrastructure.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from hub_empresas.core.templates import Block, Template
from hub_empresas.observability import get_logger

logger = get_logger(__name__)

GAP_THRESHOLD: float = 70.0

_TWO_PLACES = Decimal("0.01")

Responses = Mapping[str, int | None]


def round_half_up(value: float, places: int = 2) -> float:
    """Round ``value`` half-up at the given number of decimal places.

    ``round()`` rounds half to even and operates on the binary float, so
    12.345 would become 12.34. Going through the decimal repr keeps the
    rounding on the digits as written.

    Args:
        value: Number to round.
        places: Decimal places to keep.

    Returns:
        Rounded float.
    """
    quantum = _TWO_PLACES if places == 2 else Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class Gap:
    """A block scoring below the proficiency threshold.

    Attributes:
        block: Block name.
        score: Block score 0-100.
        weight: Block weight, used to rank remediation priority.
    """

    block: str
    score: float
    weight: float


@dataclass(frozen=True)
class ScoreResult:
    """Output of a full scoring pass.

    Attributes:
        block_scores: Block name -> score 0-100, in template order.
        weighted_score: Weighted total rounded to 2 decimals.
        pass_threshold: Pass mark on the 0-100 scale.
        is_passed: weighted_score >= pass_threshold (independent of completeness).
        gaps: Blocks under the gap threshold, in template order.
        is_complete: Every template question has an answer.
        answered_count: Number of template questions answered.
        total_questions: Number of questions in the template.
    """

    block_scores: dict[str, float]
    weighted_score: float
    pass_threshold: float
    is_passed: bool
    gaps: list[Gap]
    is_complete: bool
    answered_count: int
    total_questions: int

    @property
    def completion_rate(self) -> int:
        """Answered share of the template as a whole percentage."""
        return completion_percent(self.answered_count, self.total_questions)


def completion_percent(answered_count: int, total_questions: int) -> int:
    """Whole-number percentage of answered questions, 0 for empty templates."""
    if total_questions <= 0:
        return 0
    return int(round_half_up(answered_count / total_questions * 100, places=0))


def count_answered(template: Template, responses: Responses) -> int:
    """Count answers that belong to a template question and are not None.

    Keys that do not match any template question are ignored.
    """
    known_ids = template.question_ids
    return sum(
        1
        for question_id, answer in responses.items()
        if question_id in known_ids and answer is not None
    )


class QuestionnaireScorer:
    """Scoring engine for stage questionnaires.

    Args:
        gap_threshold: Block score below which a block is reported as a gap.
    """

    def __init__(self, gap_threshold: float = GAP_THRESHOLD) -> None:
        self.gap_threshold = gap_threshold

    def score_block(
        self,
        block: Block,
        responses: Responses,
        max_score_per_question: int,
    ) -> float:
        """Compute the 0-100 score for a single block.

        Missing answers contribute nothing to the numerator but still count
        towards the denominator.

        Args:
            block: The block to score.
            responses: Answer map for the whole questionnaire.
            max_score_per_question: Top of the answer scale.

        Returns:
            Block score rounded half-up to 2 decimals; 0.0 when the block has
            no questions or the scale maximum is 0.
        """
        max_possible = len(block.questions) * max_score_per_question
        if max_possible <= 0:
            return 0.0

        total = sum(
            answer
            for answer in (responses.get(q.question_id) for q in block.questions)
            if answer is not None
        )
        return round_half_up(total / max_possible * 100)

    def score_weighted(
        self,
        blocks: tuple[Block, ...],
        block_scores: Mapping[str, float],
    ) -> float:
        """Combine block scores using the block weights as given.

        Args:
            blocks: Template blocks carrying the weights.
            block_scores: Block name -> block score.

        Returns:
            Weighted score rounded half-up to 2 decimals.
        """
        weighted = sum(block_scores.get(block.name, 0.0) * block.weight for block in blocks)
        return round_half_up(weighted)

    def identify_gaps(
        self,
        blocks: tuple[Block, ...],
        block_scores: Mapping[str, float],
    ) -> list[Gap]:
        """Return the blocks scoring strictly below the gap threshold."""
        return [
            Gap(block=block.name, score=block_scores.get(block.name, 0.0), weight=block.weight)
            for block in blocks
            if block_scores.get(block.name, 0.0) < self.gap_threshold
        ]

    def score(self, template: Template, responses: Responses) -> ScoreResult:
        """Run the full scoring pass for an answer map.

        Args:
            template: The questionnaire template.
            responses: question_id -> answer (or None when unanswered).

        Returns:
            ScoreResult with block scores, weighted score, pass flag, gaps
            and completeness.
        """
        weight_total = sum(block.weight for block in template.blocks)
        if template.blocks and abs(weight_total - 1.0) > 1e-6:
            logger.warning(
                "Template block weights do not sum to 1.0",
                template_id=str(template.template_id),
                weight_total=weight_total,
            )

        block_scores: dict[str, float] = {
            block.name: self.score_block(block, responses, template.max_score_per_question)
            for block in template.blocks
        }
        weighted_score = self.score_weighted(template.blocks, block_scores)
        pass_threshold = round_half_up(template.pass_threshold * 100)
        gaps = self.identify_gaps(template.blocks, block_scores)

        answered_count = count_answered(template, responses)
        total_questions = template.total_questions

        result = ScoreResult(
            block_scores=block_scores,
            weighted_score=weighted_score,
            pass_threshold=pass_threshold,
            is_passed=weighted_score >= pass_threshold,
            gaps=gaps,
            is_complete=answered_count >= total_questions,
            answered_count=answered_count,
            total_questions=total_questions,
        )

        logger.debug(
            "Questionnaire scored",
            program_key=template.program_key,
            weighted_score=weighted_score,
            gap_count=len(gaps),
            answered_count=answered_count,
            total_questions=total_questions,
        )
        return result
