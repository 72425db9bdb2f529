from __future__ import annotations

from fastapi import APIRouter, Depends

from workforce.application import get_dashboard_service
from workforce.domain import SessionContext

from .deps import require_privileged

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary")
async def get_summary(session: SessionContext = Depends(require_privileged)) -> dict:
    """Consolidated admin dashboard, the only query the dashboard polls."""
    service = get_dashboard_service()
    return service.summary(session).model_dump(mode="json")
