"""
Dashboard API Endpoints.

Financial summary over the caller's cycles.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from backend.app.api.v1.deps import get_dashboard_service
from backend.app.core.actor import Actor
from backend.app.core.dependencies import get_current_actor
from backend.app.schemas.dashboard import FinancialSummary, StatusFilter
from backend.app.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=FinancialSummary)
async def get_dashboard(
    status_filter: StatusFilter = Query(StatusFilter.ALL, alias="status"),
    start: Optional[datetime] = Query(None, description="Earliest departure (inclusive)"),
    end: Optional[datetime] = Query(None, description="Latest departure (inclusive)"),
    recent_limit: Optional[int] = Query(None, ge=1, le=100),
    actor: Actor = Depends(get_current_actor),
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Totals for freights, commissions, losses, fuelings and expenses.

    Admins see every cycle they own; drivers see the cycles assigned to them.
    """
    filters = {"status": status_filter, "start": start, "end": end}
    if recent_limit is not None:
        filters["recent_limit"] = recent_limit
    return await service.build_summary(actor, filters)
