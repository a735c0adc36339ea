import uuid
from datetime import date
from decimal import Decimal

import pytest

from app.features.analytics import engine
from app.features.analytics.schemas import BudgetRecord, ExpenseRecord
from app.features.notifications.service import BUDGET_ALERT, NotificationService


def make_budget(amount="10000"):
    return BudgetRecord(
        id=uuid.UUID("00000000-0000-0000-0000-00000000b001"),
        name="Groceries",
        category_id=uuid.UUID("00000000-0000-0000-0000-00000000c001"),
        amount=Decimal(amount),
        start_date=date(2026, 1, 1),
        end_date=date(2026, 1, 31),
    )


def status_for(budget, spent):
    expense = ExpenseRecord(id="e1", amount=Decimal(spent), expense_date=date(2026, 1, 10))
    return engine.compute_budget_status(budget, [expense])


@pytest.mark.asyncio
async def test_records_warning_and_exceeded_alerts(db_session, user):
    service = NotificationService(db_session)
    budget = make_budget()

    warning = await service.record_budget_alerts(user.id, [(budget, status_for(budget, "8500"))])
    assert len(warning) == 1
    assert warning[0].title == "Budget Alert"
    assert warning[0].type == BUDGET_ALERT

    exceeded = await service.record_budget_alerts(user.id, [(budget, status_for(budget, "12000"))])
    assert len(exceeded) == 1
    assert exceeded[0].title == "Budget Exceeded!"
    assert exceeded[0].message == 'You have exceeded your "Groceries" budget by 2,000.'

    assert len(await service.list_notifications(user.id)) == 2


@pytest.mark.asyncio
async def test_below_threshold_records_nothing(db_session, user):
    service = NotificationService(db_session)
    budget = make_budget()

    assert await service.record_budget_alerts(user.id, [(budget, status_for(budget, "1000"))]) == []
    assert await service.list_notifications(user.id) == []


@pytest.mark.asyncio
async def test_unread_alert_is_not_repeated(db_session, user):
    service = NotificationService(db_session)
    budget = make_budget()

    await service.record_budget_alerts(user.id, [(budget, status_for(budget, "9000"))])
    repeat = await service.record_budget_alerts(user.id, [(budget, status_for(budget, "9500"))])
    assert repeat == []

    # Once read, the next crossing alerts again
    assert await service.mark_all_read(user.id) == 1
    again = await service.record_budget_alerts(user.id, [(budget, status_for(budget, "9600"))])
    assert len(again) == 1
    assert len(await service.list_notifications(user.id, unread_only=True)) == 1
