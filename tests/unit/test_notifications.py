"""Unit tests for notification content builders."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from hub_empresas.core.badge_rules import badge_from_record
from hub_empresas.core.notifications import (
    CompanyRisk,
    assess_company_risk,
    build_badge_notification,
    build_company_notifications,
    build_staff_notifications,
)
from tests.factories import COMPANY_ID, PROFILE_ID, make_badge_record

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _deliverable(days_old: float, status: str = "pendente", approval_required: bool = False):
    return SimpleNamespace(
        status=status,
        approval_required=approval_required,
        created_at=NOW - timedelta(days=days_old),
    )


def _company(profile_id: uuid.UUID | None = PROFILE_ID):
    return SimpleNamespace(id=COMPANY_ID, name="Acme", profile_id=profile_id)


class TestAssessCompanyRisk:
    """Tests for assess_company_risk."""

    def test_overdue_uses_whole_days_strictly_greater(self) -> None:
        deliverables = [
            _deliverable(30.9),  # 30 whole days
            _deliverable(31.0),
        ]

        risk = assess_company_risk(True, deliverables, NOW)

        assert risk.overdue_count == 1

    def test_approved_deliverables_never_count(self) -> None:
        deliverables = [_deliverable(90, status="aprovado", approval_required=True)]

        risk = assess_company_risk(True, deliverables, NOW)

        assert risk == CompanyRisk(True, 0, 0)
        assert risk.at_risk is False

    def test_pending_required(self) -> None:
        deliverables = [
            _deliverable(1, approval_required=True),
            _deliverable(1, approval_required=False),
        ]

        risk = assess_company_risk(True, deliverables, NOW)

        assert risk.pending_required_count == 1
        assert risk.overdue_count == 0
        assert risk.at_risk is True

    def test_missing_evaluation_is_at_risk(self) -> None:
        risk = assess_company_risk(False, [], NOW)
        assert risk.at_risk is True

    def test_custom_overdue_window(self) -> None:
        risk = assess_company_risk(True, [_deliverable(8)], NOW, overdue_days=7)
        assert risk.overdue_count == 1


class TestCompanyNotifications:
    """Tests for build_company_notifications."""

    def test_one_alert_per_issue(self) -> None:
        risk = CompanyRisk(has_valid_evaluation=False, overdue_count=2, pending_required_count=1)

        notifications = build_company_notifications(_company(), risk)

        assert [n["title"] for n in notifications] == [
            "Avaliação Pendente",
            "Deliverables em Atraso",
            "Deliverables Obrigatórios Pendentes",
        ]
        assert [n["type"] for n in notifications] == ["error", "warning", "warning"]
        assert all(n["user_id"] == PROFILE_ID for n in notifications)
        assert "2 deliverable(s)" in notifications[1]["message"]

    def test_company_without_owner_gets_nothing(self) -> None:
        risk = CompanyRisk(False, 1, 1)
        assert build_company_notifications(_company(profile_id=None), risk) == []

    def test_healthy_company_gets_nothing(self) -> None:
        assert build_company_notifications(_company(), CompanyRisk(True, 0, 0)) == []


class TestStaffNotifications:
    """Tests for build_staff_notifications."""

    def test_one_per_staff_member(self) -> None:
        staff = [uuid.uuid4(), uuid.uuid4()]
        risk = CompanyRisk(has_valid_evaluation=False, overdue_count=0, pending_required_count=2)

        notifications = build_staff_notifications(_company(), risk, staff)

        assert [n["user_id"] for n in notifications] == staff
        assert notifications[0]["type"] == "warning"
        assert notifications[0]["action_url"] == f"/empresas/{COMPANY_ID}"
        assert notifications[0]["message"] == (
            "A empresa Acme precisa de atenção: sem avaliação válida, 2 pendente(s)"
        )

    def test_overdue_raises_severity(self) -> None:
        risk = CompanyRisk(has_valid_evaluation=True, overdue_count=1, pending_required_count=0)

        notifications = build_staff_notifications(_company(), risk, [uuid.uuid4()])

        assert notifications[0]["type"] == "error"

    def test_not_at_risk(self) -> None:
        assert build_staff_notifications(_company(), CompanyRisk(True, 0, 0), [uuid.uuid4()]) == []


def test_badge_notification() -> None:
    badge = badge_from_record(make_badge_record("score_excepcional"))

    notification = build_badge_notification(PROFILE_ID, badge, {"score": 92})

    assert notification["user_id"] == PROFILE_ID
    assert notification["type"] == "badge_earned"
    assert badge.label in notification["message"]
    assert notification["notification_metadata"] == {
        "badge_id": str(badge.badge_id),
        "badge_key": "score_excepcional",
        "badge_icon": badge.icon,
        "event_data": {"score": 92},
    }
