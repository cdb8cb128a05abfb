"""hub: initial schema: questionnaires, action plans, badges, notifications.

Creates the tables owned by this service and seeds the default badge
catalog. The companies, profiles, evaluations and deliverables tables are
owned by the platform and are only read here.

Revision ID: hub_001_initial
Revises:
Create Date: 2025-03-01 00:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "hub_001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_DEFAULT_BADGES: list[dict[str, object]] = [
    {
        "badge_key": "hotel_aprovado",
        "label": "Hotel de Projetos Aprovado",
        "description": "Completou com sucesso a etapa Hotel de Projetos",
        "icon": "🏨",
        "badge_type": "stage_progression",
        "conditions": {"stage": "hotel_de_projetos", "score_min": 70},
    },
    {
        "badge_key": "pre_residencia_aprovado",
        "label": "Pré-Residência Aprovado",
        "description": "Completou com sucesso a etapa Pré-Residência",
        "icon": "🚀",
        "badge_type": "stage_progression",
        "conditions": {"stage": "pre_residencia", "score_min": 70},
    },
    {
        "badge_key": "residencia_aprovado",
        "label": "Residência Aprovado",
        "description": "Completou com sucesso a etapa Residência",
        "icon": "💼",
        "badge_type": "stage_progression",
        "conditions": {"stage": "residencia", "score_min": 70},
    },
    {
        "badge_key": "graduado_programa",
        "label": "Graduado do Programa",
        "description": "Completou todas as etapas do programa",
        "icon": "👑",
        "badge_type": "stage_progression",
        "conditions": {"all_stages_completed": True},
    },
    {
        "badge_key": "score_excepcional",
        "label": "Score Excepcional",
        "description": "Atingiu score ≥ 90% em questionário",
        "icon": "🎯",
        "badge_type": "achievement",
        "conditions": {"score_min": 90},
    },
    {
        "badge_key": "mestre_canvas",
        "label": "Mestre do Canvas",
        "description": "Canvas aprovado sem revisões",
        "icon": "📊",
        "badge_type": "achievement",
        "conditions": {"deliverable_type": "canvas", "revisions_count": 0},
    },
    {
        "badge_key": "resposta_rapida",
        "label": "Resposta Rápida",
        "description": "Completou questionário em menos de 24 horas",
        "icon": "⚡",
        "badge_type": "achievement",
        "conditions": {"completion_time_hours": 24},
    },
    {
        "badge_key": "streak_master",
        "label": "Streak Master",
        "description": "Completou 3 questionários consecutivos",
        "icon": "🔥",
        "badge_type": "achievement",
        "conditions": {"consecutive_questionnaires": 3},
    },
    {
        "badge_key": "meta_financeira",
        "label": "Meta Financeira Atingida",
        "description": "Atingiu meta financeira estabelecida",
        "icon": "💰",
        "badge_type": "milestone",
        "conditions": {"metric": "financial_target"},
    },
    {
        "badge_key": "validacao_usuarios",
        "label": "Validação com Usuários",
        "description": "Realizou ≥ 20 entrevistas com usuários",
        "icon": "👥",
        "badge_type": "milestone",
        "conditions": {"interviews": 20},
    },
    {
        "badge_key": "mvp_validado",
        "label": "MVP Validado",
        "description": "MVP testado com sucesso",
        "icon": "🛠️",
        "badge_type": "milestone",
        "conditions": {"milestone": "mvp_validated"},
    },
    {
        "badge_key": "crescimento_sustentavel",
        "label": "Crescimento Sustentável",
        "description": "Crescimento mensal consistente por 3 meses",
        "icon": "📈",
        "badge_type": "milestone",
        "conditions": {"growth_months": 3},
    },
]


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamp_column(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    """Create the service tables and seed the badge catalog."""
    # questionnaire_templates: stage questionnaires with weighted blocks
    op.create_table(
        "questionnaire_templates",
        _id_column(),
        sa.Column(
            "program_key",
            sa.String(50),
            nullable=False,
            comment="Program stage: hotel_de_projetos | pre_residencia | residencia",
        ),
        sa.Column("version", sa.String(20), nullable=False, server_default="1.0"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column(
            "blocks",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
            comment='{"blocks": [{"name", "weight", "questions": [{"id", "text", "type"}]}]}',
        ),
        sa.Column(
            "scoring_rules",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text(
                """'{"scale": "0=Não, 1=Parcial, 2=Sim", "max_score_per_question": 2}'::jsonb"""
            ),
        ),
        sa.Column(
            "pass_threshold",
            sa.Numeric(3, 2),
            nullable=False,
            server_default="0.70",
            comment="Fraction 0-1 of the weighted score required to pass",
        ),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
    )
    op.create_index(
        "ix_questionnaire_templates_program_key",
        "questionnaire_templates",
        ["program_key"],
    )

    # questionnaire_responses: per-company answers and score snapshots
    op.create_table(
        "questionnaire_responses",
        _id_column(),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "template_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("questionnaire_templates.id"),
            nullable=False,
        ),
        sa.Column("program_key", sa.String(50), nullable=False),
        sa.Column("current_step", sa.Integer, nullable=False, server_default="1"),
        sa.Column("total_steps", sa.Integer, nullable=False, server_default="1"),
        sa.Column(
            "responses",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
            comment="question_id -> integer answer on the template scale",
        ),
        sa.Column("block_scores", postgresql.JSONB, nullable=True),
        sa.Column("total_score", sa.Numeric(5, 2), nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default="in_progress",
            comment="in_progress | completed",
        ),
        _timestamp_column("started_at"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
    )
    op.create_index(
        "ix_questionnaire_responses_company_id",
        "questionnaire_responses",
        ["company_id"],
    )
    op.create_index(
        "ix_questionnaire_responses_template_id",
        "questionnaire_responses",
        ["template_id"],
    )
    op.create_index(
        "ix_questionnaire_responses_program_key",
        "questionnaire_responses",
        ["program_key"],
    )
    op.create_index(
        "ix_questionnaire_responses_status",
        "questionnaire_responses",
        ["status"],
    )

    # action_plans: remediation items generated from score gaps
    op.create_table(
        "action_plans",
        _id_column(),
        sa.Column(
            "response_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("questionnaire_responses.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("program_key", sa.String(50), nullable=False),
        sa.Column("priority", sa.String(10), nullable=False, comment="high | medium | low"),
        sa.Column(
            "category",
            sa.String(20),
            nullable=False,
            server_default="question",
            comment="question | deliverable | mentorship",
        ),
        sa.Column("item_reference", sa.String(100), nullable=False),
        sa.Column("action_description", sa.Text, nullable=False),
        sa.Column("estimated_effort_hours", sa.Integer, nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default="pending",
            comment="pending | in_progress | completed | cancelled",
        ),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
    )
    op.create_index("ix_action_plans_response_id", "action_plans", ["response_id"])
    op.create_index("ix_action_plans_company_id", "action_plans", ["company_id"])

    # badges: admin-managed catalog
    badges = op.create_table(
        "badges",
        _id_column(),
        sa.Column("badge_key", sa.String(100), nullable=False, unique=True),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("icon", sa.String(255), nullable=False, server_default=""),
        sa.Column(
            "badge_type",
            sa.String(30),
            nullable=False,
            comment="stage_progression | achievement | milestone",
        ),
        sa.Column(
            "conditions",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _timestamp_column("created_at"),
    )
    op.create_index("ix_badges_is_active", "badges", ["is_active"])

    # company_badges: earned badges, one row per (company, badge)
    op.create_table(
        "company_badges",
        _id_column(),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "badge_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("badges.id"),
            nullable=False,
        ),
        _timestamp_column("earned_at"),
        sa.Column("earned_by_event", sa.String(50), nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.UniqueConstraint("company_id", "badge_id", name="uq_company_badges_company_badge"),
    )
    op.create_index("ix_company_badges_company_id", "company_badges", ["company_id"])
    op.create_index("ix_company_badges_badge_id", "company_badges", ["badge_id"])

    # badge_events: domain events seeding badge evaluation
    op.create_table(
        "badge_events",
        _id_column(),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column(
            "event_data",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "badges_awarded",
            postgresql.ARRAY(postgresql.UUID(as_uuid=True)),
            nullable=True,
            comment="Badges awarded because of this event",
        ),
        _timestamp_column("triggered_at"),
    )
    op.create_index("ix_badge_events_company_id", "badge_events", ["company_id"])
    op.create_index("ix_badge_events_event_type", "badge_events", ["event_type"])

    # notifications: user-facing messages
    op.create_table(
        "notifications",
        _id_column(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column(
            "type",
            sa.String(30),
            nullable=False,
            comment="badge_earned | error | warning | info",
        ),
        sa.Column("priority", sa.String(10), nullable=False, server_default="normal"),
        sa.Column("action_url", sa.String(255), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        _timestamp_column("created_at"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.bulk_insert(badges, _DEFAULT_BADGES)


def downgrade() -> None:
    """Drop all service tables."""
    op.drop_table("notifications")
    op.drop_table("badge_events")
    op.drop_table("company_badges")
    op.drop_table("badges")
    op.drop_table("action_plans")
    op.drop_table("questionnaire_responses")
    op.drop_table("questionnaire_templates")
