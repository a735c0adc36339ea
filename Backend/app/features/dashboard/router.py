from typing import Annotated, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from app.features.auth.deps import get_current_user
from app.features.auth.models import User
from app.features.dashboard.schemas import DashboardOverview
from app.features.dashboard.service import DashboardService
from app.utils.finance_utils import resolve_window

router = APIRouter()


@router.get("/overview", response_model=DashboardOverview)
async def get_dashboard_overview(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[DashboardService, Depends()],
    month: Optional[str] = Query(None, description="Month selector, YYYY-MM (defaults to the current month)")
):
    try:
        window_start, window_end = resolve_window(month=month)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return await service.get_overview(current_user.id, window_start, window_end)
