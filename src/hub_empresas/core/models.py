"""SQLAlchemy ORM models for the HUB Empresas service.

Tables:
    questionnaire_templates    stage questionnaires with weighted blocks
    questionnaire_responses    per-company answer sets and score snapshots
    action_plans               remediation items generated from score gaps
    badges                     admin-managed badge catalog
    company_badges             badges earned by companies (unique per pair)
    badge_events               domain events that seed badge evaluation
    notifications              user-facing messages
    companies, profiles, evaluations, deliverables   read models used by
        badge notifications and risk detection
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative base for all HUB Empresas ORM models."""


class QuestionnaireTemplate(Base):
    """Questionnaire for one program stage.

    ``blocks`` stores ``{"blocks": [{"name", "weight", "questions": [...]}]}``
    and ``scoring_rules`` stores ``{"scale", "max_score_per_question"}``.

    Table: questionnaire_templates
    """

    __tablename__ = "questionnaire_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    program_key: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="Program stage: hotel_de_projetos | pre_residencia | residencia",
    )
    version: Mapped[str] = mapped_column(String(20), nullable=False, default="1.0")
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    blocks: Mapped[dict] = mapped_column(JSONB, nullable=False, server_default="{}")
    scoring_rules: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default='{"scale": "0=Não, 1=Parcial, 2=Sim", "max_score_per_question": 2}',
    )
    pass_threshold: Mapped[float] = mapped_column(
        Numeric(3, 2),
        nullable=False,
        default=0.7,
        comment="Fraction 0-1 of the weighted score required to pass",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class QuestionnaireResponse(Base):
    """A company's answers to one questionnaire template.

    Created on first auto-save, mutated on every save, and completed when
    every template question has an answer.

    Table: questionnaire_responses
    """

    __tablename__ = "questionnaire_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("questionnaire_templates.id"),
        nullable=False,
        index=True,
    )
    program_key: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_steps: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    responses: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default="{}",
        comment="question_id -> integer answer on the template scale",
    )
    block_scores: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    total_score: Mapped[float | None] = mapped_column(Numeric(5, 2), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="in_progress",
        index=True,
        comment="in_progress | completed",
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class ActionPlan(Base):
    """A single remediation task generated from a score gap.

    Table: action_plans
    """

    __tablename__ = "action_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    response_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("questionnaire_responses.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    program_key: Mapped[str] = mapped_column(String(50), nullable=False)
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, comment="high | medium | low"
    )
    category: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="question",
        comment="question | deliverable | mentorship",
    )
    item_reference: Mapped[str] = mapped_column(String(100), nullable=False)
    action_description: Mapped[str] = mapped_column(Text, nullable=False)
    estimated_effort_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        comment="pending | in_progress | completed | cancelled",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class Badge(Base):
    """Badge catalog entry.

    ``conditions`` holds the declarative rule parameters, either the legacy
    per-badge shape (``{"score_min": 90}``) or an explicit ``{"kind": ...}``.

    Table: badges
    """

    __tablename__ = "badges"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    badge_key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    badge_type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="stage_progression | achievement | milestone",
    )
    conditions: Mapped[dict] = mapped_column(JSONB, nullable=False, server_default="{}")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class CompanyBadge(Base):
    """A badge earned by a company. At most one row per (company, badge).

    Table: company_badges
    """

    __tablename__ = "company_badges"
    __table_args__ = (
        UniqueConstraint("company_id", "badge_id", name="uq_company_badges_company_badge"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    badge_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("badges.id"), nullable=False, index=True
    )
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    earned_by_event: Mapped[str] = mapped_column(String(50), nullable=False)
    award_metadata: Mapped[dict] = mapped_column(
        "metadata", JSONB, nullable=False, server_default="{}"
    )

    badge: Mapped[Badge] = relationship(lazy="raise")


class BadgeEvent(Base):
    """A domain occurrence that seeds badge evaluation.

    Table: badge_events
    """

    __tablename__ = "badge_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    event_data: Mapped[dict] = mapped_column(JSONB, nullable=False, server_default="{}")
    badges_awarded: Mapped[list[uuid.UUID] | None] = mapped_column(
        ARRAY(UUID(as_uuid=True)), nullable=True
    )
    triggered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class Notification(Base):
    """A user-facing message.

    Table: notifications
    """

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="badge_earned | error | warning | info",
    )
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="normal")
    action_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notification_metadata: Mapped[dict] = mapped_column(
        "metadata", JSONB, nullable=False, server_default="{}"
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class Company(Base):
    """Incubated company. Only the fields this service reads are mapped.

    Table: companies
    """

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    profile_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, comment="Owner profile receiving notifications"
    )
    current_program_key: Mapped[str | None] = mapped_column(String(50), nullable=True)


class Profile(Base):
    """Platform user profile.

    Table: profiles
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="admin | mentor | company"
    )


class Evaluation(Base):
    """Mentor evaluation of a company.

    Table: evaluations
    """

    __tablename__ = "evaluations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    is_valid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Deliverable(Base):
    """A company deliverable for a program stage.

    Table: deliverables
    """

    __tablename__ = "deliverables"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True
    )
    program_key: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pendente", comment="pendente | aprovado | ..."
    )
    approval_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
