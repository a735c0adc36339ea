import logging
from uuid import UUID
from datetime import date
from typing import List, Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from app.features.budgets.models import Budget
from app.features.budgets.schemas import BudgetCreate, BudgetUpdate
from app.features.categories.models import Category
from app.features.expenses.models import Expense
from app.features.notifications.models import Notification

logger = logging.getLogger(__name__)


class BudgetService:

    async def _check_category(self, db: AsyncSession, user_id: UUID, category_id: UUID) -> None:
        result = await db.execute(
            select(Category.id).where(Category.id == category_id, Category.user_id == user_id)
        )
        if result.first() is None:
            raise ValueError("Category not found")

    async def create_budget(self, db: AsyncSession, user_id: UUID, data: BudgetCreate) -> Budget:
        await self._check_category(db, user_id, data.category_id)

        values = data.model_dump()
        values["period"] = data.period.value
        budget = Budget(user_id=user_id, **values)
        db.add(budget)
        await db.commit()
        await db.refresh(budget)
        logger.info(f"Created budget '{budget.name}' for user {user_id}")
        return budget

    async def get_user_budgets(
        self,
        db: AsyncSession,
        user_id: UUID,
        active_on: Optional[date] = None
    ) -> List[Budget]:
        """Budgets of a user, optionally only those whose window contains ``active_on``."""
        stmt = select(Budget).where(Budget.user_id == user_id)

        if active_on:
            stmt = stmt.where(Budget.start_date <= active_on, Budget.end_date >= active_on)

        stmt = stmt.order_by(Budget.start_date, Budget.name)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_budget_by_id(self, db: AsyncSession, budget_id: UUID, user_id: UUID) -> Optional[Budget]:
        result = await db.execute(
            select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def update_budget(
        self,
        db: AsyncSession,
        budget_id: UUID,
        user_id: UUID,
        data: BudgetUpdate
    ) -> Optional[Budget]:
        budget = await self.get_budget_by_id(db, budget_id, user_id)
        if not budget:
            return None

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("category_id"):
            await self._check_category(db, user_id, update_data["category_id"])
        if update_data.get("period"):
            update_data["period"] = update_data["period"].value

        start_date = update_data.get("start_date") or budget.start_date
        end_date = update_data.get("end_date") or budget.end_date
        if end_date < start_date:
            raise ValueError("end_date must not be before start_date")

        for field, value in update_data.items():
            setattr(budget, field, value)

        await db.commit()
        await db.refresh(budget)
        logger.info(f"Updated budget {budget_id}")
        return budget

    async def delete_budget(self, db: AsyncSession, budget_id: UUID, user_id: UUID) -> bool:
        budget = await self.get_budget_by_id(db, budget_id, user_id)
        if not budget:
            return False

        await db.execute(
            update(Expense)
            .where(Expense.user_id == user_id, Expense.budget_id == budget_id)
            .values(budget_id=None)
        )
        await db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.budget_id == budget_id)
            .values(budget_id=None)
        )
        await db.delete(budget)
        await db.commit()
        logger.info(f"Deleted budget {budget_id}")
        return True
