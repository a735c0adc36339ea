import logging
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import Depends

from app.features.analytics import engine
from app.features.analytics.exceptions import InvalidWindow
from app.features.analytics.repository import SpendingRepository, get_spending_repository
from app.features.analytics.schemas import (
    AnalyticsSnapshot,
    BudgetRecord,
    BudgetStatus,
    CategoryBreakdown,
    SpendingStatistics,
)

logger = logging.getLogger(__name__)


def _check_window(window_start: date, window_end: date) -> None:
    # Fail before touching the database
    if window_end < window_start:
        raise InvalidWindow(window_start, window_end)


class AnalyticsService:
    """Feeds repository snapshots through the aggregation engine."""

    def __init__(self, repository: SpendingRepository = Depends(get_spending_repository)):
        self.repository = repository

    async def refresh(
        self,
        user_id: UUID,
        window_start: date,
        window_end: date
    ) -> AnalyticsSnapshot:
        """
        Recompute everything for a window from a fresh snapshot.

        This is the one entry point for a manual refresh, a month change or
        a change in the underlying data.
        """
        _check_window(window_start, window_end)

        expenses = await self.repository.list_expenses(user_id, window_start, window_end)
        categories = await self.repository.list_categories(user_id)
        budgets = await self.repository.list_budgets(user_id, active_from=window_start, active_to=window_end)
        statuses = await self._statuses_for(user_id, budgets)

        return AnalyticsSnapshot(
            window_start=window_start,
            window_end=window_end,
            breakdown=engine.compute_category_breakdown(expenses, categories),
            statistics=engine.compute_spending_statistics(expenses, window_start, window_end, categories),
            budgets=statuses,
        )

    async def get_breakdown(self, user_id: UUID, window_start: date, window_end: date) -> List[CategoryBreakdown]:
        _check_window(window_start, window_end)
        expenses = await self.repository.list_expenses(user_id, window_start, window_end)
        categories = await self.repository.list_categories(user_id)
        return engine.compute_category_breakdown(expenses, categories)

    async def get_statistics(self, user_id: UUID, window_start: date, window_end: date) -> SpendingStatistics:
        _check_window(window_start, window_end)
        expenses = await self.repository.list_expenses(user_id, window_start, window_end)
        categories = await self.repository.list_categories(user_id)
        return engine.compute_spending_statistics(expenses, window_start, window_end, categories)

    async def get_budget_statuses(self, user_id: UUID, active_on: Optional[date] = None) -> List[BudgetStatus]:
        budgets = await self.repository.list_budgets(user_id, active_from=active_on, active_to=active_on)
        return await self._statuses_for(user_id, budgets)

    async def budgets_with_status(
        self,
        user_id: UUID,
        active_on: Optional[date] = None
    ) -> List[Tuple[BudgetRecord, BudgetStatus]]:
        budgets = await self.repository.list_budgets(user_id, active_from=active_on, active_to=active_on)
        statuses = await self._statuses_for(user_id, budgets)
        return list(zip(budgets, statuses))

    async def get_budget_status(self, user_id: UUID, budget_id: UUID) -> Optional[BudgetStatus]:
        budget = await self.repository.get_budget(user_id, budget_id)
        if not budget:
            return None
        expenses = await self.repository.list_budget_expenses(user_id, budget)
        return engine.compute_budget_status(budget, expenses)

    async def statuses_for_expense(self, user_id: UUID, expense) -> List[Tuple[BudgetRecord, BudgetStatus]]:
        """Budgets an expense counts toward, each paired with its fresh status."""
        candidates = await self.repository.list_budgets(
            user_id, active_from=expense.expense_date, active_to=expense.expense_date
        )
        affected = [b for b in candidates if self.repository.expense_counts_toward(expense, b)]

        results = []
        for budget in affected:
            expenses = await self.repository.list_budget_expenses(user_id, budget)
            results.append((budget, engine.compute_budget_status(budget, expenses)))
        return results

    async def _statuses_for(self, user_id: UUID, budgets: List[BudgetRecord]) -> List[BudgetStatus]:
        # One query per budget, issued sequentially on the shared session
        statuses = []
        for budget in budgets:
            expenses = await self.repository.list_budget_expenses(user_id, budget)
            statuses.append(engine.compute_budget_status(budget, expenses))
        return statuses
