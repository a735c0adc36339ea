import uuid
from datetime import date
from decimal import Decimal

import pytest

from app.features.analytics.exceptions import InvalidWindow
from app.features.analytics.repository import BudgetMatchRule, SpendingRepository
from app.features.analytics.schemas import BudgetBand, ExpenseRecord
from app.features.analytics.service import AnalyticsService
from app.features.budgets.models import Budget
from app.features.categories.models import Category
from app.features.expenses.models import Expense

JAN_START = date(2026, 1, 1)
JAN_END = date(2026, 1, 31)


async def seed(db, user):
    food = Category(user_id=user.id, name="Food & Dining", color="#EF4444")
    transport = Category(user_id=user.id, name="Transport", color="#3B82F6")
    db.add_all([food, transport])
    await db.flush()

    budget = Budget(
        user_id=user.id,
        category_id=food.id,
        name="Groceries",
        amount=Decimal("10000"),
        period="monthly",
        start_date=JAN_START,
        end_date=JAN_END,
    )
    db.add(budget)
    await db.flush()

    db.add_all([
        # Linked to the budget directly
        Expense(user_id=user.id, category_id=food.id, budget_id=budget.id, amount=Decimal("7000"),
                description="Market", expense_date=date(2026, 1, 5)),
        # Same category, no link
        Expense(user_id=user.id, category_id=food.id, amount=Decimal("5000"),
                description="Supermarket", expense_date=date(2026, 1, 20)),
        Expense(user_id=user.id, category_id=transport.id, amount=Decimal("3000"),
                description="Moto", expense_date=date(2026, 1, 12)),
        # Outside the January window
        Expense(user_id=user.id, category_id=food.id, amount=Decimal("900"),
                description="December groceries", expense_date=date(2025, 12, 30)),
    ])
    await db.commit()
    return food, transport, budget


@pytest.mark.asyncio
async def test_refresh_builds_snapshot_for_window(db_session, user):
    food, transport, budget = await seed(db_session, user)
    service = AnalyticsService(SpendingRepository(db_session, BudgetMatchRule.CATEGORY))

    snapshot = await service.refresh(user.id, JAN_START, JAN_END)

    assert snapshot.statistics.total_amount == Decimal("15000")
    assert snapshot.statistics.transaction_count == 3
    assert snapshot.statistics.most_frequent_category_name == "Food & Dining"
    assert snapshot.statistics.largest_expense.description == "Market"
    assert [item.name for item in snapshot.breakdown] == ["Food & Dining", "Transport"]
    assert snapshot.breakdown[0].percentage_of_total == pytest.approx(80.0)

    assert len(snapshot.budgets) == 1
    status = snapshot.budgets[0]
    assert status.budget_id == budget.id
    assert status.spent_amount == Decimal("12000")
    assert status.overage_amount == Decimal("2000")
    assert status.band == BudgetBand.OVER_BUDGET


@pytest.mark.asyncio
async def test_budget_rule_counts_only_linked_expenses(db_session, user):
    _, _, budget = await seed(db_session, user)
    service = AnalyticsService(SpendingRepository(db_session, BudgetMatchRule.BUDGET))

    status = await service.get_budget_status(user.id, budget.id)

    assert status.spent_amount == Decimal("7000")
    assert status.percentage_used == pytest.approx(70.0)
    assert status.is_exceeded is False


@pytest.mark.asyncio
async def test_refresh_rejects_inverted_window(db_session, user):
    service = AnalyticsService(SpendingRepository(db_session))

    with pytest.raises(InvalidWindow):
        await service.refresh(user.id, JAN_END, JAN_START)


@pytest.mark.asyncio
async def test_missing_budget_status_is_none(db_session, user):
    service = AnalyticsService(SpendingRepository(db_session))

    assert await service.get_budget_status(user.id, uuid.uuid4()) is None


@pytest.mark.asyncio
async def test_budget_statuses_filtered_by_active_date(db_session, user):
    await seed(db_session, user)
    service = AnalyticsService(SpendingRepository(db_session))

    assert len(await service.get_budget_statuses(user.id, active_on=date(2026, 1, 15))) == 1
    assert await service.get_budget_statuses(user.id, active_on=date(2026, 2, 15)) == []


@pytest.mark.asyncio
async def test_statuses_for_expense_finds_affected_budgets(db_session, user):
    food, transport, budget = await seed(db_session, user)
    service = AnalyticsService(SpendingRepository(db_session, BudgetMatchRule.CATEGORY))

    food_expense = ExpenseRecord(id=uuid.uuid4(), amount=Decimal("10"), expense_date=date(2026, 1, 8),
                                 category_id=food.id)
    transport_expense = ExpenseRecord(id=uuid.uuid4(), amount=Decimal("10"), expense_date=date(2026, 1, 8),
                                      category_id=transport.id)

    affected = await service.statuses_for_expense(user.id, food_expense)
    assert [b.id for b, _ in affected] == [budget.id]
    assert affected[0][1].spent_amount == Decimal("12000")

    assert await service.statuses_for_expense(user.id, transport_expense) == []


@pytest.mark.asyncio
async def test_other_users_data_is_invisible(db_session, user):
    await seed(db_session, user)
    service = AnalyticsService(SpendingRepository(db_session))

    snapshot = await service.refresh(uuid.uuid4(), JAN_START, JAN_END)

    assert snapshot.breakdown == []
    assert snapshot.budgets == []
    assert snapshot.statistics.most_frequent_category_name == "No expenses"


def test_expense_counts_toward_matches_rule():
    budget_id, category_id = uuid.uuid4(), uuid.uuid4()
    budget = Budget(id=budget_id, name="Food", category_id=category_id, amount=Decimal("100"),
                    start_date=JAN_START, end_date=JAN_END)

    linked = ExpenseRecord(id="e1", amount=Decimal("5"), expense_date=date(2026, 1, 3), budget_id=budget_id)
    same_category = ExpenseRecord(id="e2", amount=Decimal("5"), expense_date=date(2026, 1, 3),
                                  category_id=category_id)
    outside = ExpenseRecord(id="e3", amount=Decimal("5"), expense_date=date(2026, 2, 3),
                            category_id=category_id, budget_id=budget_id)

    by_category = SpendingRepository(None, BudgetMatchRule.CATEGORY)
    assert not by_category.expense_counts_toward(linked, budget)
    assert by_category.expense_counts_toward(same_category, budget)
    assert not by_category.expense_counts_toward(outside, budget)

    by_budget = SpendingRepository(None, BudgetMatchRule.BUDGET)
    assert by_budget.expense_counts_toward(linked, budget)
    assert not by_budget.expense_counts_toward(same_category, budget)
    assert not by_budget.expense_counts_toward(outside, budget)
