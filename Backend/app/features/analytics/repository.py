import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.features.analytics.schemas import BudgetRecord, CategoryRecord, ExpenseRecord
from app.features.budgets.models import Budget
from app.features.categories.models import Category
from app.features.expenses.models import Expense

settings = get_settings()
logger = logging.getLogger(__name__)


class BudgetMatchRule(str, Enum):
    CATEGORY = "category"
    BUDGET = "budget"


class SpendingRepository:
    """
    Read-only access to a user's expenses, categories and budgets.

    Every method returns frozen snapshot records so the aggregation engine
    never sees live ORM objects. Queries share one session and run one
    after another.
    """

    def __init__(self, db: AsyncSession, match_rule: Optional[BudgetMatchRule] = None):
        self.db = db
        self.match_rule = BudgetMatchRule(match_rule or settings.BUDGET_MATCH_RULE)

    async def list_expenses(
        self,
        user_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> List[ExpenseRecord]:
        stmt = select(Expense).where(Expense.user_id == user_id)
        if start:
            stmt = stmt.where(Expense.expense_date >= start)
        if end:
            stmt = stmt.where(Expense.expense_date <= end)
        stmt = stmt.order_by(desc(Expense.expense_date), desc(Expense.created_at))

        result = await self.db.execute(stmt)
        return [ExpenseRecord.model_validate(row) for row in result.scalars().all()]

    async def list_recent_expenses(self, user_id: UUID, limit: int = 5) -> List[ExpenseRecord]:
        stmt = (
            select(Expense)
            .where(Expense.user_id == user_id)
            .order_by(desc(Expense.created_at), desc(Expense.expense_date))
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [ExpenseRecord.model_validate(row) for row in result.scalars().all()]

    async def total_expenses(self, user_id: UUID) -> Decimal:
        result = await self.db.execute(
            select(func.sum(Expense.amount)).where(Expense.user_id == user_id)
        )
        return Decimal(str(result.scalar() or 0))

    async def list_categories(self, user_id: UUID) -> List[CategoryRecord]:
        stmt = select(Category).where(Category.user_id == user_id).order_by(Category.name)
        result = await self.db.execute(stmt)
        return [CategoryRecord.model_validate(row) for row in result.scalars().all()]

    async def list_budgets(
        self,
        user_id: UUID,
        active_from: Optional[date] = None,
        active_to: Optional[date] = None
    ) -> List[BudgetRecord]:
        """Budgets of a user, optionally only those whose window overlaps [active_from, active_to]."""
        stmt = select(Budget).where(Budget.user_id == user_id)
        if active_to:
            stmt = stmt.where(Budget.start_date <= active_to)
        if active_from:
            stmt = stmt.where(Budget.end_date >= active_from)
        stmt = stmt.order_by(Budget.start_date, Budget.name)

        result = await self.db.execute(stmt)
        return [BudgetRecord.model_validate(row) for row in result.scalars().all()]

    async def get_budget(self, user_id: UUID, budget_id: UUID) -> Optional[BudgetRecord]:
        result = await self.db.execute(
            select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
        )
        budget = result.scalar_one_or_none()
        return BudgetRecord.model_validate(budget) if budget else None

    async def list_budget_expenses(self, user_id: UUID, budget: BudgetRecord) -> List[ExpenseRecord]:
        """Expenses that count toward ``budget`` under the configured match rule."""
        stmt = (
            select(Expense)
            .where(Expense.user_id == user_id)
            .where(Expense.expense_date >= budget.start_date)
            .where(Expense.expense_date <= budget.end_date)
        )
        if self.match_rule == BudgetMatchRule.BUDGET:
            stmt = stmt.where(Expense.budget_id == budget.id)
        else:
            stmt = stmt.where(Expense.category_id == budget.category_id)

        result = await self.db.execute(stmt)
        return [ExpenseRecord.model_validate(row) for row in result.scalars().all()]

    def expense_counts_toward(self, expense, budget: BudgetRecord) -> bool:
        """In-memory twin of the ``list_budget_expenses`` filter."""
        if not (budget.start_date <= expense.expense_date <= budget.end_date):
            return False
        if self.match_rule == BudgetMatchRule.BUDGET:
            return expense.budget_id is not None and expense.budget_id == budget.id
        return expense.category_id is not None and expense.category_id == budget.category_id


def get_spending_repository(db: AsyncSession = Depends(get_db)) -> SpendingRepository:
    return SpendingRepository(db)
