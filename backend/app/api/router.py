"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import events, inscriptions
from app.schemas.common import ErrorResponse

# Every failure is rendered as {"success": false, "error": ...} by app.main
ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 500)}

api_router = APIRouter(prefix="/api", responses=ERROR_RESPONSES)
api_router.include_router(events.router)
api_router.include_router(inscriptions.router)
