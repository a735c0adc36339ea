import logging
from datetime import date
from uuid import UUID
from fastapi import Depends
from app.core.config import get_settings
from app.features.analytics import engine
from app.features.analytics.repository import SpendingRepository, get_spending_repository
from app.features.dashboard.schemas import DashboardOverview, RecentExpense

settings = get_settings()
logger = logging.getLogger(__name__)


class DashboardService:
    def __init__(self, repository: SpendingRepository = Depends(get_spending_repository)):
        self.repository = repository

    async def get_overview(self, user_id: UUID, window_start: date, window_end: date) -> DashboardOverview:
        """Headline cards for the dashboard: totals, budget gauge, alerts and latest activity."""
        total_expenses = await self.repository.total_expenses(user_id)
        monthly = await self.repository.list_expenses(user_id, window_start, window_end)
        categories = await self.repository.list_categories(user_id)
        budgets = await self.repository.list_budgets(user_id)
        recent = await self.repository.list_recent_expenses(user_id, settings.RECENT_EXPENSES_LIMIT)

        # Each budget is measured over its own window, not the dashboard month
        statuses = []
        for budget in budgets:
            budget_expenses = await self.repository.list_budget_expenses(user_id, budget)
            statuses.append(engine.compute_budget_status(budget, budget_expenses))

        stats = engine.compute_spending_statistics(monthly, window_start, window_end, categories)
        summary = engine.summarize_budgets(budgets, statuses, categories)
        budget_used = engine.compute_overall_usage(stats.total_amount, summary.total_budget)

        by_id = {c.id: c for c in categories}
        recent_expenses = []
        for expense in recent:
            category = by_id.get(expense.category_id) if expense.category_id else None
            recent_expenses.append(
                RecentExpense(
                    id=expense.id,
                    amount=expense.amount,
                    description=expense.description,
                    expense_date=expense.expense_date,
                    category_name=category.name if category else engine.UNCATEGORIZED_LABEL,
                    category_icon=category.icon if category else None,
                )
            )

        return DashboardOverview(
            window_start=window_start,
            window_end=window_end,
            total_expenses=total_expenses,
            total_budget=summary.total_budget,
            monthly_expenses=stats.total_amount,
            expenses_this_month=stats.transaction_count,
            budget_used_percentage=budget_used,
            budget_used_band=engine.classify_budget_usage(budget_used),
            budgets_exceeded=summary.budgets_exceeded,
            exceeded_budgets=summary.exceeded_budgets,
            budgets=statuses,
            recent_expenses=recent_expenses,
        )
