from typing import List, Optional
from datetime import date
from decimal import Decimal
from pydantic import BaseModel
from app.features.analytics.schemas import BudgetBand, BudgetStatus, ExceededBudget, RecordId


class RecentExpense(BaseModel):
    id: RecordId
    amount: Decimal
    description: Optional[str] = None
    expense_date: date
    category_name: str
    category_icon: Optional[str] = None


class DashboardOverview(BaseModel):
    window_start: date
    window_end: date
    total_expenses: Decimal  # all time
    total_budget: Decimal
    monthly_expenses: Decimal
    expenses_this_month: int
    budget_used_percentage: float
    budget_used_band: BudgetBand
    budgets_exceeded: int
    exceeded_budgets: List[ExceededBudget] = []
    budgets: List[BudgetStatus] = []
    recent_expenses: List[RecentExpense] = []
