"""Questionnaire template value objects and program stage constants.

Templates are stored as JSON documents on the ``questionnaire_templates``
table. ``template_from_record`` converts a stored row into immutable value
objects so that the scoring and action plan code never touches the ORM.

Program stages (linear, in order):
    hotel_de_projetos   Hotel de Projetos
    pre_residencia      Pré-Residência
    residencia          Residência
"""

import uuid
from dataclasses import dataclass
from typing import Any

PROGRAM_STAGES: tuple[str, ...] = ("hotel_de_projetos", "pre_residencia", "residencia")

PROGRAM_LABELS: dict[str, str] = {
    "hotel_de_projetos": "Hotel de Projetos",
    "pre_residencia": "Pré-Residência",
    "residencia": "Residência",
}

DEFAULT_MAX_SCORE_PER_QUESTION: int = 2
DEFAULT_SCALE: str = "0=Não, 1=Parcial, 2=Sim"


@dataclass(frozen=True)
class Question:
    """A single question inside a block.

    Attributes:
        question_id: Stable identifier used as the key of the answer map.
        text: Prompt text shown to the company.
        type: Answer type, always 'scale' for current templates.
    """

    question_id: str
    text: str
    type: str = "scale"


@dataclass(frozen=True)
class Block:
    """A named, weighted group of questions.

    Attributes:
        name: Block name, unique within the template.
        weight: Fraction of the weighted score contributed by this block.
        questions: Questions in presentation order.
    """

    name: str
    weight: float
    questions: tuple[Question, ...]


@dataclass(frozen=True)
class Template:
    """A stage questionnaire.

    Attributes:
        template_id: Template UUID.
        program_key: Program stage this questionnaire belongs to.
        title: Display title.
        blocks: Weighted blocks in template order.
        max_score_per_question: Top of the integer answer scale.
        pass_threshold: Fraction in [0, 1] of the weighted score needed to pass.
        scale: Human-readable description of the scale.
    """

    template_id: uuid.UUID | None
    program_key: str
    title: str
    blocks: tuple[Block, ...]
    max_score_per_question: int = DEFAULT_MAX_SCORE_PER_QUESTION
    pass_threshold: float = 0.7
    scale: str = DEFAULT_SCALE

    @property
    def question_ids(self) -> frozenset[str]:
        return frozenset(q.question_id for block in self.blocks for q in block.questions)

    @property
    def total_questions(self) -> int:
        return sum(len(block.questions) for block in self.blocks)

    @property
    def total_steps(self) -> int:
        """Number of wizard steps, one per block and never less than one."""
        return len(self.blocks) or 1


def blocks_from_document(document: dict[str, Any] | list[Any] | None) -> tuple[Block, ...]:
    """Parse the stored ``blocks`` JSON into Block value objects.

    Accepts both the wrapped ``{"blocks": [...]}`` shape used by the
    templates table and a bare list.

    Args:
        document: Stored blocks JSON.

    Returns:
        Tuple of Block objects in stored order.
    """
    if document is None:
        return ()
    raw_blocks = document.get("blocks", []) if isinstance(document, dict) else document

    blocks: list[Block] = []
    for raw_block in raw_blocks or []:
        questions = tuple(
            Question(
                question_id=str(raw_question["id"]),
                text=str(raw_question.get("text", "")),
                type=str(raw_question.get("type", "scale")),
            )
            for raw_question in raw_block.get("questions") or []
        )
        blocks.append(
            Block(
                name=str(raw_block["name"]),
                weight=float(raw_block.get("weight", 0.0)),
                questions=questions,
            )
        )
    return tuple(blocks)


def template_from_record(record: Any) -> Template:
    """Build a Template from a QuestionnaireTemplate ORM row.

    Args:
        record: Row (or any object) with id, program_key, title, blocks,
            scoring_rules and pass_threshold attributes.

    Returns:
        Immutable Template.
    """
    scoring_rules: dict[str, Any] = record.scoring_rules or {}
    return Template(
        template_id=record.id,
        program_key=record.program_key,
        title=record.title,
        blocks=blocks_from_document(record.blocks),
        max_score_per_question=int(
            scoring_rules.get("max_score_per_question", DEFAULT_MAX_SCORE_PER_QUESTION)
        ),
        pass_threshold=float(record.pass_threshold),
        scale=str(scoring_rules.get("scale", DEFAULT_SCALE)),
    )
