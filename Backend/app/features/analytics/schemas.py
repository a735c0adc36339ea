from enum import Enum
from typing import List, Optional, Union
from uuid import UUID
from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import date, datetime

RecordId = Union[UUID, str]


class BudgetPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BudgetBand(str, Enum):
    ON_TRACK = "on_track"
    CAUTION = "caution"
    NEAR_LIMIT = "near_limit"
    OVER_BUDGET = "over_budget"


class AlertLevel(str, Enum):
    WARNING = "warning"
    EXCEEDED = "exceeded"


# --- Snapshot records consumed by the engine ---

class ExpenseRecord(BaseModel):
    id: RecordId
    amount: Decimal = Field(..., ge=0)
    description: Optional[str] = None
    expense_date: date
    category_id: Optional[RecordId] = None
    budget_id: Optional[RecordId] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True


class CategoryRecord(BaseModel):
    id: RecordId
    name: str
    color: Optional[str] = None
    icon: Optional[str] = None

    class Config:
        from_attributes = True
        frozen = True


class BudgetRecord(BaseModel):
    id: RecordId
    name: str
    category_id: RecordId
    amount: Decimal
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: date
    end_date: date

    class Config:
        from_attributes = True
        frozen = True


# --- Derived view models ---

class CategoryBreakdown(BaseModel):
    category_id: RecordId
    name: str
    color: Optional[str] = None
    icon: Optional[str] = None
    total_amount: Decimal
    transaction_count: int
    percentage_of_total: float


class LargestExpense(BaseModel):
    expense_id: Optional[RecordId] = None
    amount: Decimal = Decimal(0)
    description: str = ""
    category_name: str = ""


class SpendingStatistics(BaseModel):
    total_amount: Decimal
    transaction_count: int
    days_in_window: int
    average_daily_amount: Decimal
    most_frequent_category_name: str
    largest_expense: LargestExpense


class BudgetStatus(BaseModel):
    budget_id: RecordId
    name: str
    category_id: RecordId
    budget_amount: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal
    percentage_used: float
    is_exceeded: bool
    overage_amount: Decimal
    band: BudgetBand
    start_date: date
    end_date: date


class ExceededBudget(BaseModel):
    budget_id: RecordId
    name: str
    category_name: str
    spent_amount: Decimal
    budget_amount: Decimal
    overage_amount: Decimal


class BudgetSummary(BaseModel):
    total_budget: Decimal
    budgets_exceeded: int
    exceeded_budgets: List[ExceededBudget] = []


class BudgetAlert(BaseModel):
    budget_id: RecordId
    level: AlertLevel
    title: str
    message: str


class AnalyticsSnapshot(BaseModel):
    window_start: date
    window_end: date
    breakdown: List[CategoryBreakdown]
    statistics: SpendingStatistics
    budgets: List[BudgetStatus] = []
