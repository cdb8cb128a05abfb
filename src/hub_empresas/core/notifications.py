"""Notification content builders.

Pure functions producing notification row dicts for the notifications
table: badge award messages and the periodic company risk alerts. Message
text is in Portuguese, the language of the platform's users.
"""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

from hub_empresas.core.badge_rules import BadgeDefinition

APPROVED_DELIVERABLE_STATUS = "aprovado"


def build_badge_notification(
    profile_id: uuid.UUID,
    badge: BadgeDefinition,
    event_data: Mapping[str, Any],
) -> dict[str, Any]:
    """Build the 'badge earned' notification for a company owner.

    Args:
        profile_id: Profile of the company owner.
        badge: The awarded badge.
        event_data: Payload of the event that earned the badge.

    Returns:
        Notification row dict.
    """
    return {
        "user_id": profile_id,
        "title": "Badge Conquistado!",
        "message": (
            f'Parabéns! Você conquistou o badge "{badge.label}". {badge.description}'
        ),
        "type": "badge_earned",
        "priority": "normal",
        "action_url": None,
        "notification_metadata": {
            "badge_id": str(badge.badge_id),
            "badge_key": badge.badge_key,
            "badge_icon": badge.icon,
            "event_data": dict(event_data),
        },
    }


@dataclass(frozen=True)
class CompanyRisk:
    """Risk indicators for one company.

    Attributes:
        has_valid_evaluation: At least one valid mentor evaluation exists.
        overdue_count: Unapproved deliverables older than the overdue window.
        pending_required_count: Required deliverables not yet approved.
    """

    has_valid_evaluation: bool
    overdue_count: int
    pending_required_count: int

    @property
    def at_risk(self) -> bool:
        return (
            not self.has_valid_evaluation
            or self.overdue_count > 0
            or self.pending_required_count > 0
        )


def assess_company_risk(
    has_valid_evaluation: bool,
    deliverables: Iterable[Any],
    now: datetime,
    overdue_days: int = 30,
) -> CompanyRisk:
    """Compute a company's risk indicators.

    Args:
        has_valid_evaluation: Whether the company has a valid evaluation.
        deliverables: Deliverable rows with status, approval_required, created_at.
        now: Reference time (timezone-aware).
        overdue_days: Pending days after which a deliverable is overdue.

    Returns:
        CompanyRisk for the company.
    """
    overdue_count = 0
    pending_required_count = 0
    for deliverable in deliverables:
        approved = deliverable.status == APPROVED_DELIVERABLE_STATUS
        if deliverable.approval_required and not approved:
            pending_required_count += 1
        if not approved:
            days_pending = math.floor((now - deliverable.created_at).total_seconds() / 86400)
            if days_pending > overdue_days:
                overdue_count += 1

    return CompanyRisk(
        has_valid_evaluation=has_valid_evaluation,
        overdue_count=overdue_count,
        pending_required_count=pending_required_count,
    )


def build_company_notifications(
    company: Any,
    risk: CompanyRisk,
    overdue_days: int = 30,
) -> list[dict[str, Any]]:
    """Build the alerts sent to the company owner."""
    if company.profile_id is None:
        return []

    notifications: list[dict[str, Any]] = []
    if not risk.has_valid_evaluation:
        notifications.append(
            _risk_notification(
                company.profile_id,
                "error",
                "Avaliação Pendente",
                f"Sua empresa {company.name} ainda não possui avaliação válida. "
                "Entre em contato com um mentor.",
                "/dashboard",
            )
        )
    if risk.overdue_count > 0:
        notifications.append(
            _risk_notification(
                company.profile_id,
                "warning",
                "Deliverables em Atraso",
                f"Você tem {risk.overdue_count} deliverable(s) pendente(s) há mais de "
                f"{overdue_days} dias. Ação urgente necessária!",
                "/dashboard",
            )
        )
    if risk.pending_required_count > 0:
        notifications.append(
            _risk_notification(
                company.profile_id,
                "warning",
                "Deliverables Obrigatórios Pendentes",
                f"Você tem {risk.pending_required_count} deliverable(s) "
                "obrigatório(s) pendente(s).",
                "/dashboard",
            )
        )
    return notifications


def build_staff_notifications(
    company: Any,
    risk: CompanyRisk,
    staff_profile_ids: Iterable[uuid.UUID],
) -> list[dict[str, Any]]:
    """Build the 'company at risk' alerts sent to every admin and mentor."""
    if not risk.at_risk:
        return []

    issues: list[str] = []
    if not risk.has_valid_evaluation:
        issues.append("sem avaliação válida")
    if risk.overdue_count > 0:
        issues.append(f"{risk.overdue_count} deliverable(s) em atraso")
    if risk.pending_required_count > 0:
        issues.append(f"{risk.pending_required_count} pendente(s)")

    message = f"A empresa {company.name} precisa de atenção: " + ", ".join(issues)
    severity = "error" if risk.overdue_count > 0 else "warning"
    return [
        _risk_notification(
            profile_id, severity, "Empresa em Risco", message, f"/empresas/{company.id}"
        )
        for profile_id in staff_profile_ids
    ]


def _risk_notification(
    user_id: uuid.UUID,
    notification_type: str,
    title: str,
    message: str,
    action_url: str,
) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "title": title,
        "message": message,
        "type": notification_type,
        "priority": "normal",
        "action_url": action_url,
        "notification_metadata": {},
    }
