"""Integration tests for the HUB Empresas API.

Services are replaced with AsyncMocks through dependency overrides, so
these tests exercise routing, request validation, response serialisation
and the error envelope without a database.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from hub_empresas.api.dependencies import (
    get_badge_service,
    get_notification_service,
    get_questionnaire_service,
)
from hub_empresas.core.templates import template_from_record
from hub_empresas.errors import (
    AnswerOutOfRangeError,
    BadgeNotFoundError,
    ResponseNotFoundError,
    StoreError,
    TemplateNotFoundError,
)
from hub_empresas.main import app
from tests.factories import (
    COMPANY_ID,
    RESPONSE_ID,
    TEMPLATE_ID,
    make_badge_record,
    make_company_badge_record,
    make_template_record,
)


@pytest.fixture()
def questionnaire_service() -> AsyncMock:
    service = AsyncMock()
    app.dependency_overrides[get_questionnaire_service] = lambda: service
    return service


@pytest.fixture()
def badge_service() -> AsyncMock:
    service = AsyncMock()
    app.dependency_overrides[get_badge_service] = lambda: service
    return service


@pytest.fixture()
def notification_service() -> AsyncMock:
    service = AsyncMock()
    app.dependency_overrides[get_notification_service] = lambda: service
    return service


def _score_result() -> dict[str, object]:
    return {
        "block_scores": {"Problema": 100.0, "Solução": 25.0},
        "weighted_score": 70.0,
        "pass_threshold": 70.0,
        "is_passed": True,
        "gaps": [{"block": "Solução", "score": 25.0, "weight": 0.4}],
        "action_plan": [
            {
                "company_id": COMPANY_ID,
                "program_key": "hotel_de_projetos",
                "priority": "high",
                "category": "question",
                "item_reference": "q3",
                "action_description": "Melhorar: Protótipo construído",
                "estimated_effort_hours": 8,
                "status": "pending",
            }
        ],
        "completion_rate": 100,
    }


# ---------------------------------------------------------------------------
# Questionnaires
# ---------------------------------------------------------------------------


class TestQuestionnaireRoutes:
    """Routes backed by QuestionnaireService."""

    @pytest.mark.asyncio()
    async def test_list_templates(self, client: AsyncClient, questionnaire_service: AsyncMock) -> None:
        questionnaire_service.list_templates.return_value = [
            template_from_record(make_template_record())
        ]

        response = await client.get("/api/v1/questionnaires/templates")

        assert response.status_code == 200
        template = response.json()["templates"][0]
        assert template["id"] == str(TEMPLATE_ID)
        assert template["total_questions"] == 4
        assert [block["name"] for block in template["blocks"]] == ["Problema", "Solução"]
        assert template["blocks"][1]["questions"][0] == {
            "id": "q3",
            "text": "Protótipo construído",
            "type": "scale",
        }

    @pytest.mark.asyncio()
    async def test_save_response(self, client: AsyncClient, questionnaire_service: AsyncMock) -> None:
        questionnaire_service.save_response.return_value = {
            "response_id": RESPONSE_ID,
            "saved": True,
            "progress_percent": 50,
            "answered_count": 2,
            "total_questions": 4,
        }

        response = await client.post(
            "/api/v1/questionnaires/responses",
            json={
                "company_id": str(COMPANY_ID),
                "template_id": str(TEMPLATE_ID),
                "responses": {"q1": 2, "q2": None, "q3": 1},
                "current_step": 2,
            },
        )

        assert response.status_code == 200
        assert response.json()["response_id"] == str(RESPONSE_ID)
        assert response.json()["progress_percent"] == 50
        kwargs = questionnaire_service.save_response.await_args.kwargs
        assert kwargs["responses"] == {"q1": 2, "q2": None, "q3": 1}
        assert kwargs["current_step"] == 2
        assert kwargs["response_id"] is None

    @pytest.mark.asyncio()
    async def test_save_response_rejects_malformed_body(
        self, client: AsyncClient, questionnaire_service: AsyncMock
    ) -> None:
        response = await client.post(
            "/api/v1/questionnaires/responses",
            json={"company_id": "not-a-uuid", "template_id": str(TEMPLATE_ID)},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert "company_id" in response.json()["error"]["message"]
        questionnaire_service.save_response.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_out_of_range_answer(
        self, client: AsyncClient, questionnaire_service: AsyncMock
    ) -> None:
        questionnaire_service.save_response.side_effect = AnswerOutOfRangeError(
            "Answer 5 for question 'q1' is outside the 0-2 scale."
        )

        response = await client.post(
            "/api/v1/questionnaires/responses",
            json={
                "company_id": str(COMPANY_ID),
                "template_id": str(TEMPLATE_ID),
                "responses": {"q1": 5},
            },
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_ANSWER"

    @pytest.mark.asyncio()
    async def test_compute_score(self, client: AsyncClient, questionnaire_service: AsyncMock) -> None:
        questionnaire_service.compute_score.return_value = _score_result()

        response = await client.post(
            "/api/v1/questionnaires/score",
            json={
                "response_id": str(RESPONSE_ID),
                "company_id": str(COMPANY_ID),
                "template_id": str(TEMPLATE_ID),
                "responses": {"q1": 2, "q2": 2, "q3": 0, "q4": 1},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["weighted_score"] == 70.0
        assert body["block_scores"] == {"Problema": 100.0, "Solução": 25.0}
        assert body["gaps"][0]["block"] == "Solução"
        assert body["action_plan"][0]["estimated_effort_hours"] == 8

    @pytest.mark.asyncio()
    async def test_compute_score_unknown_template(
        self, client: AsyncClient, questionnaire_service: AsyncMock
    ) -> None:
        questionnaire_service.compute_score.side_effect = TemplateNotFoundError(
            f"Template {TEMPLATE_ID} not found."
        )

        response = await client.post(
            "/api/v1/questionnaires/score",
            json={
                "response_id": str(RESPONSE_ID),
                "company_id": str(COMPANY_ID),
                "template_id": str(TEMPLATE_ID),
                "responses": {},
            },
        )

        assert response.status_code == 404
        assert response.json() == {
            "error": {
                "code": "TEMPLATE_NOT_FOUND",
                "message": f"Template {TEMPLATE_ID} not found.",
            }
        }

    @pytest.mark.asyncio()
    async def test_compute_score_unknown_response(
        self, client: AsyncClient, questionnaire_service: AsyncMock
    ) -> None:
        questionnaire_service.compute_score.side_effect = ResponseNotFoundError("missing")

        response = await client.post(
            "/api/v1/questionnaires/score",
            json={
                "response_id": str(RESPONSE_ID),
                "company_id": str(COMPANY_ID),
                "template_id": str(TEMPLATE_ID),
            },
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESPONSE_NOT_FOUND"

    @pytest.mark.asyncio()
    async def test_store_failure(self, client: AsyncClient, questionnaire_service: AsyncMock) -> None:
        questionnaire_service.compute_score.side_effect = StoreError("Database operation failed.")

        response = await client.post(
            "/api/v1/questionnaires/score",
            json={
                "response_id": str(RESPONSE_ID),
                "company_id": str(COMPANY_ID),
                "template_id": str(TEMPLATE_ID),
            },
        )

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "STORE_ERROR"

    @pytest.mark.asyncio()
    async def test_action_plans(self, client: AsyncClient, questionnaire_service: AsyncMock) -> None:
        item = MagicMock()
        item.id = uuid.uuid4()
        item.response_id = RESPONSE_ID
        item.company_id = COMPANY_ID
        item.program_key = "hotel_de_projetos"
        item.priority = "high"
        item.category = "question"
        item.item_reference = "q3"
        item.action_description = "Melhorar: Protótipo construído"
        item.estimated_effort_hours = 8
        item.due_date = None
        item.status = "pending"
        item.created_at = datetime(2025, 3, 1, tzinfo=timezone.utc)
        questionnaire_service.list_action_plans.return_value = [item]

        response = await client.get(
            f"/api/v1/companies/{COMPANY_ID}/action-plans",
            params={"program_key": "hotel_de_projetos"},
        )

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["items"][0]["item_reference"] == "q3"
        questionnaire_service.list_action_plans.assert_awaited_once_with(
            COMPANY_ID, "hotel_de_projetos"
        )

    @pytest.mark.asyncio()
    async def test_action_plan_status_must_be_known(
        self, client: AsyncClient, questionnaire_service: AsyncMock
    ) -> None:
        response = await client.patch(
            f"/api/v1/action-plans/{uuid.uuid4()}",
            json={"status": "done"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio()
    async def test_score_history(self, client: AsyncClient, questionnaire_service: AsyncMock) -> None:
        entry = MagicMock()
        entry.id = RESPONSE_ID
        entry.program_key = "hotel_de_projetos"
        entry.total_score = 70.0
        entry.block_scores = {"Problema": 100.0, "Solução": 25.0}
        entry.completed_at = datetime(2025, 3, 1, tzinfo=timezone.utc)
        questionnaire_service.get_score_history.return_value = [entry]

        response = await client.get(f"/api/v1/companies/{COMPANY_ID}/score-history")

        assert response.status_code == 200
        assert response.json()["history"][0]["total_score"] == 70.0


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


class TestBadgeRoutes:
    """Routes backed by BadgeService."""

    @pytest.mark.asyncio()
    async def test_award_badges(self, client: AsyncClient, badge_service: AsyncMock) -> None:
        badge = make_badge_record("score_excepcional")
        badge_service.award_badges.return_value = {
            "badges_awarded": [badge.id],
            "total_badges": 1,
            "event_processed": True,
        }

        response = await client.post(
            "/api/v1/badges/award",
            json={
                "company_id": str(COMPANY_ID),
                "event_type": "score_excepcional",
                "event_data": {"score": 92},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total_badges"] == 1
        assert body["event_processed"] is True
        assert body["badges_awarded"] == [str(badge.id)]
        badge_service.award_badges.assert_awaited_once_with(
            company_id=COMPANY_ID,
            event_type="score_excepcional",
            event_data={"score": 92},
        )

    @pytest.mark.asyncio()
    async def test_award_badges_rejects_unknown_event_type(
        self, client: AsyncClient, badge_service: AsyncMock
    ) -> None:
        response = await client.post(
            "/api/v1/badges/award",
            json={"company_id": str(COMPANY_ID), "event_type": "logged_in"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        badge_service.award_badges.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_company_badges(self, client: AsyncClient, badge_service: AsyncMock) -> None:
        award = make_company_badge_record(make_badge_record("mvp_validado", badge_type="milestone"))
        badge_service.list_company_badges.return_value = [award]

        response = await client.get(f"/api/v1/companies/{COMPANY_ID}/badges")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["badges"][0]["badge"]["badge_key"] == "mvp_validado"

    @pytest.mark.asyncio()
    async def test_statistics(self, client: AsyncClient, badge_service: AsyncMock) -> None:
        badge_service.company_statistics.return_value = {
            "total_available": 12,
            "total_earned": 3,
            "completion_percentage": 25,
            "recent_badges": [make_company_badge_record(make_badge_record("score_excepcional"))],
            "by_type": {"stage_progression": 1, "achievement": 2, "milestone": 0},
        }

        response = await client.get(f"/api/v1/companies/{COMPANY_ID}/badges/statistics")

        assert response.status_code == 200
        assert response.json()["completion_percentage"] == 25
        assert len(response.json()["recent_badges"]) == 1

    @pytest.mark.asyncio()
    async def test_manual_award_of_unknown_badge(
        self, client: AsyncClient, badge_service: AsyncMock
    ) -> None:
        badge_id = uuid.uuid4()
        badge_service.award_manually.side_effect = BadgeNotFoundError(f"Badge {badge_id} not found.")

        response = await client.post(f"/api/v1/companies/{COMPANY_ID}/badges/{badge_id}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "BADGE_NOT_FOUND"

    @pytest.mark.asyncio()
    async def test_create_badge(self, client: AsyncClient, badge_service: AsyncMock) -> None:
        badge_service.create_badge.return_value = make_badge_record(
            "nota_maxima", {"kind": "threshold", "field": "score", "limit": 100}
        )

        response = await client.post(
            "/api/v1/badges",
            json={
                "badge_key": "nota_maxima",
                "label": "Nota Máxima",
                "badge_type": "achievement",
                "conditions": {"kind": "threshold", "field": "score", "limit": 100},
            },
        )

        assert response.status_code == 201
        assert response.json()["badge_key"] == "nota_maxima"

    @pytest.mark.asyncio()
    async def test_create_badge_rejects_bad_key(
        self, client: AsyncClient, badge_service: AsyncMock
    ) -> None:
        response = await client.post(
            "/api/v1/badges",
            json={"badge_key": "Nota Máxima", "label": "Nota", "badge_type": "achievement"},
        )

        assert response.status_code == 422
        badge_service.create_badge.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_update_badge_sends_only_given_fields(
        self, client: AsyncClient, badge_service: AsyncMock
    ) -> None:
        badge = make_badge_record("score_excepcional")
        badge_service.update_badge.return_value = badge

        response = await client.patch(f"/api/v1/badges/{badge.id}", json={"label": "Nota 10"})

        assert response.status_code == 200
        badge_service.update_badge.assert_awaited_once_with(badge.id, {"label": "Nota 10"})


# ---------------------------------------------------------------------------
# Notifications and framework errors
# ---------------------------------------------------------------------------


@pytest.mark.asyncio()
async def test_generate_notifications(client: AsyncClient, notification_service: AsyncMock) -> None:
    notification_service.generate_risk_notifications.return_value = 7

    response = await client.post("/api/v1/notifications/generate")

    assert response.status_code == 200
    assert response.json() == {"success": True, "notifications_created": 7}
    notification_service.generate_risk_notifications.assert_awaited_once_with(now=None)


@pytest.mark.asyncio()
async def test_unknown_route_uses_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/v1/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio()
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
