"""Builders for ORM-like rows used across the test suite."""

import uuid
from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock

COMPANY_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
TEMPLATE_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
RESPONSE_ID = uuid.UUID("33333333-3333-3333-3333-333333333333")
PROFILE_ID = uuid.UUID("44444444-4444-4444-4444-444444444444")

DEFAULT_BLOCKS: list[dict[str, Any]] = [
    {
        "name": "Problema",
        "weight": 0.6,
        "questions": [
            {"id": "q1", "text": "Problema validado com clientes", "type": "scale"},
            {"id": "q2", "text": "Público-alvo definido", "type": "scale"},
        ],
    },
    {
        "name": "Solução",
        "weight": 0.4,
        "questions": [
            {"id": "q3", "text": "Protótipo construído", "type": "scale"},
            {"id": "q4", "text": "Proposta de valor clara", "type": "scale"},
        ],
    },
]


def make_template_record(
    blocks: list[dict[str, Any]] | None = None,
    pass_threshold: float = 0.7,
    program_key: str = "hotel_de_projetos",
    template_id: uuid.UUID = TEMPLATE_ID,
) -> MagicMock:
    """Build a QuestionnaireTemplate-like row.

    The default blocks form the 0.6/0.4 template used across the scoring
    tests: "Problema" (q1, q2) and "Solução" (q3, q4).
    """
    record = MagicMock()
    record.id = template_id
    record.program_key = program_key
    record.title = "Questionário Hotel de Projetos"
    record.blocks = {"blocks": DEFAULT_BLOCKS if blocks is None else blocks}
    record.scoring_rules = {"scale": "0=Não, 1=Parcial, 2=Sim", "max_score_per_question": 2}
    record.pass_threshold = pass_threshold
    return record


def make_response_record(
    response_id: uuid.UUID = RESPONSE_ID,
    company_id: uuid.UUID = COMPANY_ID,
    started_at: datetime | None = None,
) -> MagicMock:
    """Build a QuestionnaireResponse-like row."""
    record = MagicMock()
    record.id = response_id
    record.company_id = company_id
    record.template_id = TEMPLATE_ID
    record.program_key = "hotel_de_projetos"
    record.started_at = started_at or datetime.now(tz=timezone.utc)
    return record


def make_badge_record(
    badge_key: str,
    conditions: dict[str, Any] | None = None,
    badge_type: str = "achievement",
    badge_id: uuid.UUID | None = None,
) -> MagicMock:
    """Build a Badge-like row."""
    record = MagicMock()
    record.id = badge_id or uuid.uuid4()
    record.badge_key = badge_key
    record.label = badge_key.replace("_", " ").title()
    record.description = f"Badge {badge_key}"
    record.icon = "🏅"
    record.badge_type = badge_type
    record.conditions = conditions or {}
    record.is_active = True
    record.created_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return record


def make_company_badge_record(badge: MagicMock, company_id: uuid.UUID = COMPANY_ID) -> MagicMock:
    """Build a CompanyBadge-like row joined to its badge."""
    record = MagicMock()
    record.id = uuid.uuid4()
    record.company_id = company_id
    record.badge_id = badge.id
    record.earned_at = datetime(2025, 2, 1, tzinfo=timezone.utc)
    record.earned_by_event = "questionnaire_completed"
    record.badge = badge
    return record
