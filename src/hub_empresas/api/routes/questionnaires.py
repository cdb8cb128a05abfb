"""FastAPI routes for questionnaires, action plans and score history.

All routes are thin: they parse inputs, delegate to QuestionnaireService,
and serialise responses. Domain errors propagate to the application's
HubError handler, which renders the error envelope.
"""

import uuid

from fastapi import APIRouter, Depends, Path, Query, status

from hub_empresas.api.dependencies import get_questionnaire_service
from hub_empresas.api.schemas.questionnaire import (
    ActionPlanListResponse,
    ActionPlanResponse,
    BlockSchema,
    ComputeScoreRequest,
    ComputeScoreResponse,
    QuestionSchema,
    SaveResponseRequest,
    SaveResponseResponse,
    ScoreHistoryEntry,
    ScoreHistoryResponse,
    TemplateListResponse,
    TemplateResponse,
    UpdateActionPlanRequest,
)
from hub_empresas.core.services import QuestionnaireService
from hub_empresas.core.templates import Template

router = APIRouter(tags=["Questionnaires"])


@router.get(
    "/questionnaires/templates",
    response_model=TemplateListResponse,
    summary="List active questionnaire templates",
)
async def list_templates(
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> TemplateListResponse:
    """Return every active template with its weighted blocks."""
    templates = await service.list_templates()
    return TemplateListResponse(templates=[_template_response(t) for t in templates])


@router.post(
    "/questionnaires/responses",
    response_model=SaveResponseResponse,
    status_code=status.HTTP_200_OK,
    summary="Auto-save a questionnaire response",
)
async def save_response(
    body: SaveResponseRequest,
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> SaveResponseResponse:
    """Create or update a company's in-progress response.

    The first save omits response_id and creates the response; later saves
    pass it back with the full current answer map.
    """
    result = await service.save_response(
        company_id=body.company_id,
        template_id=body.template_id,
        responses=body.responses,
        current_step=body.current_step,
        response_id=body.response_id,
    )
    return SaveResponseResponse(**result)  # type: ignore[arg-type]


@router.post(
    "/questionnaires/score",
    response_model=ComputeScoreResponse,
    status_code=status.HTTP_200_OK,
    summary="Score a questionnaire response",
)
async def compute_score(
    body: ComputeScoreRequest,
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> ComputeScoreResponse:
    """Compute block and weighted scores, gaps and the action plan.

    A complete questionnaire is marked completed, its action plan replaced,
    and questionnaire_completed (plus score_excepcional for scores of 90 and
    above) published for badge evaluation.
    """
    result = await service.compute_score(
        response_id=body.response_id,
        company_id=body.company_id,
        template_id=body.template_id,
        responses=body.responses,
    )
    return ComputeScoreResponse(**result)  # type: ignore[arg-type]


@router.get(
    "/companies/{company_id}/action-plans",
    response_model=ActionPlanListResponse,
    summary="List a company's action plan items",
)
async def list_action_plans(
    company_id: uuid.UUID = Path(..., description="Company UUID"),
    program_key: str | None = Query(default=None, description="Restrict to one program stage"),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> ActionPlanListResponse:
    """Return the company's action items, newest first."""
    items = await service.list_action_plans(company_id, program_key)
    return ActionPlanListResponse(
        items=[ActionPlanResponse.model_validate(item) for item in items],
        total=len(items),
    )


@router.patch(
    "/action-plans/{action_plan_id}",
    response_model=ActionPlanResponse,
    summary="Update an action plan item's status",
)
async def update_action_plan(
    body: UpdateActionPlanRequest,
    action_plan_id: uuid.UUID = Path(..., description="Action plan item UUID"),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> ActionPlanResponse:
    """Move an action item to pending, in_progress, completed or cancelled."""
    record = await service.update_action_plan_status(action_plan_id, body.status)
    return ActionPlanResponse.model_validate(record)


@router.get(
    "/companies/{company_id}/score-history",
    response_model=ScoreHistoryResponse,
    summary="List a company's completed questionnaire scores",
)
async def score_history(
    company_id: uuid.UUID = Path(..., description="Company UUID"),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> ScoreHistoryResponse:
    """Return completed, scored responses, oldest first."""
    records = await service.get_score_history(company_id)
    return ScoreHistoryResponse(
        history=[ScoreHistoryEntry.model_validate(record) for record in records]
    )


def _template_response(template: Template) -> TemplateResponse:
    return TemplateResponse(
        id=template.template_id,  # type: ignore[arg-type]
        program_key=template.program_key,
        title=template.title,
        blocks=[
            BlockSchema(
                name=block.name,
                weight=block.weight,
                questions=[
                    QuestionSchema(id=q.question_id, text=q.text, type=q.type)
                    for q in block.questions
                ],
            )
            for block in template.blocks
        ],
        max_score_per_question=template.max_score_per_question,
        pass_threshold=template.pass_threshold,
        scale=template.scale,
        total_questions=template.total_questions,
    )
