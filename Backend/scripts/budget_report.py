"""
Print a user's spending breakdown, statistics and budget statuses for a month.

Usage (from Backend/):
    python -m scripts.budget_report someone@example.com [YYYY-MM]
"""
import asyncio
import sys

from sqlalchemy import select

from app.core.database import AsyncSessionLocal
from app.features.auth.models import User
from app.features.analytics.repository import SpendingRepository
from app.features.analytics.service import AnalyticsService
from app.utils.finance_utils import resolve_window


async def main(email: str, month: str = None):
    window_start, window_end = resolve_window(month=month)

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if not user:
            print(f"No user with email {email}")
            return 1

        snapshot = await AnalyticsService(SpendingRepository(db)).refresh(user.id, window_start, window_end)

    print(f"--- Spending {window_start} to {window_end} ---")
    stats = snapshot.statistics
    print(f"Total: {stats.total_amount:,.2f} across {stats.transaction_count} expense(s)")
    print(f"Daily average: {stats.average_daily_amount:,.2f} over {stats.days_in_window} day(s)")
    print(f"Most frequent category: {stats.most_frequent_category_name}")
    if stats.largest_expense.expense_id:
        largest = stats.largest_expense
        print(f"Largest expense: {largest.amount:,.2f} {largest.description} ({largest.category_name})")

    print("\n--- By category ---")
    if not snapshot.breakdown:
        print("None found.")
    for item in snapshot.breakdown:
        print(f"{item.name:<24} {item.total_amount:>12,.2f} {item.percentage_of_total:>6.2f}% ({item.transaction_count})")

    print("\n--- Budgets ---")
    if not snapshot.budgets:
        print("None found.")
    for budget in snapshot.budgets:
        flag = " EXCEEDED" if budget.is_exceeded else ""
        print(
            f"{budget.name:<24} {budget.spent_amount:>12,.2f} / {budget.budget_amount:,.2f} "
            f"({budget.percentage_used:.1f}%, {budget.band.value}){flag}"
        )
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)))
