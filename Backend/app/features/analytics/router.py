from datetime import date
from typing import Annotated, List, Optional, Tuple
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, status
from app.features.auth.deps import get_current_user
from app.features.auth.models import User
from app.features.analytics.schemas import (
    AnalyticsSnapshot,
    BudgetStatus,
    CategoryBreakdown,
    SpendingStatistics
)
from app.features.analytics.service import AnalyticsService
from app.utils.finance_utils import resolve_window

router = APIRouter()


def get_window(
    month: Optional[str] = Query(None, description="Month selector, YYYY-MM"),
    start: Optional[date] = Query(None, description="Window start (inclusive)"),
    end: Optional[date] = Query(None, description="Window end (inclusive)")
) -> Tuple[date, date]:
    """Reporting window from query params; defaults to the current month."""
    try:
        return resolve_window(month=month, start=start, end=end)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/summary", response_model=AnalyticsSnapshot)
async def get_analytics_summary(
    current_user: Annotated[User, Depends(get_current_user)],
    window: Annotated[Tuple[date, date], Depends(get_window)],
    service: Annotated[AnalyticsService, Depends()]
):
    """
    Category breakdown, spending statistics and budget statuses for a window.
    Call again after any change to refresh.
    """
    window_start, window_end = window
    return await service.refresh(current_user.id, window_start, window_end)


@router.get("/breakdown", response_model=List[CategoryBreakdown])
async def get_category_breakdown(
    current_user: Annotated[User, Depends(get_current_user)],
    window: Annotated[Tuple[date, date], Depends(get_window)],
    service: Annotated[AnalyticsService, Depends()]
):
    window_start, window_end = window
    return await service.get_breakdown(current_user.id, window_start, window_end)


@router.get("/statistics", response_model=SpendingStatistics)
async def get_spending_statistics(
    current_user: Annotated[User, Depends(get_current_user)],
    window: Annotated[Tuple[date, date], Depends(get_window)],
    service: Annotated[AnalyticsService, Depends()]
):
    window_start, window_end = window
    return await service.get_statistics(current_user.id, window_start, window_end)


@router.get("/budgets", response_model=List[BudgetStatus])
async def get_budget_statuses(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AnalyticsService, Depends()],
    active_on: Optional[date] = Query(None, description="Only budgets whose window contains this date")
):
    """Spent amount, percentage used and overage for each budget."""
    return await service.get_budget_statuses(current_user.id, active_on=active_on)


@router.get("/budgets/{budget_id}", response_model=BudgetStatus)
async def get_budget_status(
    budget_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AnalyticsService, Depends()]
):
    budget_status = await service.get_budget_status(current_user.id, budget_id)
    if not budget_status:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
    return budget_status
