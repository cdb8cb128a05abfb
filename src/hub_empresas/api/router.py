"""Top-level API router for hub-empresas.

API prefix: /api/v1
"""

from fastapi import APIRouter

from hub_empresas.api.routes import badges, notifications, questionnaires

router = APIRouter()
router.include_router(questionnaires.router)
router.include_router(badges.router)
router.include_router(notifications.router)
