import logging
from typing import Annotated, List, Optional
from uuid import UUID
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.features.auth.deps import get_current_user
from app.features.auth.models import User
from app.features.analytics.schemas import ExpenseRecord
from app.features.analytics.service import AnalyticsService
from app.features.expenses.models import Expense
from app.features.expenses.schemas import ExpenseCreate, ExpenseUpdate, ExpenseResponse
from app.features.expenses.service import ExpenseService
from app.features.notifications.service import NotificationService
from app.utils.finance_utils import get_month_date_range, parse_month

router = APIRouter()
logger = logging.getLogger(__name__)


async def _check_budget_alerts(
    user_id: UUID,
    expense: Expense,
    analytics: AnalyticsService,
    notifications: NotificationService
) -> None:
    """Re-evaluate the budgets this expense counts toward and store any alerts."""
    try:
        affected = await analytics.statuses_for_expense(user_id, ExpenseRecord.model_validate(expense))
        await notifications.record_budget_alerts(user_id, affected)
    except Exception as e:
        # The expense is already saved; a failed alert check must not fail the request
        logger.error(f"Error checking budget alerts for expense {expense.id}: {e}", exc_info=True)


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[ExpenseService, Depends()],
    analytics: Annotated[AnalyticsService, Depends()],
    notifications: Annotated[NotificationService, Depends()]
):
    """Record an expense and raise budget alerts if it pushes a budget past its threshold."""
    try:
        expense = await service.create_expense(db, current_user.id, expense_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await _check_budget_alerts(current_user.id, expense, analytics, notifications)
    return expense


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[ExpenseService, Depends()],
    month: Optional[str] = Query(None, description="Month selector, YYYY-MM"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    category_id: Optional[UUID] = Query(None),
    budget_id: Optional[UUID] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0)
):
    if month:
        try:
            month_range = get_month_date_range(parse_month(month))
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        start, end = month_range["month_start"], month_range["month_end"]

    return await service.get_user_expenses(
        db,
        current_user.id,
        start=start,
        end=end,
        category_id=category_id,
        budget_id=budget_id,
        limit=limit,
        offset=offset
    )


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[ExpenseService, Depends()]
):
    expense = await service.get_expense_by_id(db, expense_id, current_user.id)
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: UUID,
    expense_data: ExpenseUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[ExpenseService, Depends()],
    analytics: Annotated[AnalyticsService, Depends()],
    notifications: Annotated[NotificationService, Depends()]
):
    try:
        expense = await service.update_expense(db, expense_id, current_user.id, expense_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")

    await _check_budget_alerts(current_user.id, expense, analytics, notifications)
    return expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[ExpenseService, Depends()]
):
    if not await service.delete_expense(db, expense_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
