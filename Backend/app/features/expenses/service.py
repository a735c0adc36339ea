import logging
from uuid import UUID
from datetime import date
from typing import List, Optional
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from app.features.expenses.models import Expense
from app.features.expenses.schemas import ExpenseCreate, ExpenseUpdate
from app.features.categories.models import Category
from app.features.budgets.models import Budget

logger = logging.getLogger(__name__)


class ExpenseService:

    async def _check_references(
        self,
        db: AsyncSession,
        user_id: UUID,
        category_id: Optional[UUID],
        budget_id: Optional[UUID]
    ) -> None:
        """Referenced category/budget must exist and belong to the user."""
        if category_id:
            result = await db.execute(
                select(Category.id).where(Category.id == category_id, Category.user_id == user_id)
            )
            if result.first() is None:
                raise ValueError("Category not found")
        if budget_id:
            result = await db.execute(
                select(Budget.id).where(Budget.id == budget_id, Budget.user_id == user_id)
            )
            if result.first() is None:
                raise ValueError("Budget not found")

    async def create_expense(self, db: AsyncSession, user_id: UUID, data: ExpenseCreate) -> Expense:
        await self._check_references(db, user_id, data.category_id, data.budget_id)

        expense = Expense(user_id=user_id, **data.model_dump())
        db.add(expense)
        await db.commit()
        await db.refresh(expense)
        logger.info(f"Recorded expense {expense.id} of {expense.amount} for user {user_id}")
        return expense

    async def get_user_expenses(
        self,
        db: AsyncSession,
        user_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
        category_id: Optional[UUID] = None,
        budget_id: Optional[UUID] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Expense]:
        stmt = select(Expense).where(Expense.user_id == user_id)

        if start:
            stmt = stmt.where(Expense.expense_date >= start)
        if end:
            stmt = stmt.where(Expense.expense_date <= end)
        if category_id:
            stmt = stmt.where(Expense.category_id == category_id)
        if budget_id:
            stmt = stmt.where(Expense.budget_id == budget_id)

        stmt = stmt.order_by(desc(Expense.expense_date), desc(Expense.created_at)).offset(offset).limit(limit)

        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_expense_by_id(self, db: AsyncSession, expense_id: UUID, user_id: UUID) -> Optional[Expense]:
        result = await db.execute(
            select(Expense).where(Expense.id == expense_id, Expense.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def update_expense(
        self,
        db: AsyncSession,
        expense_id: UUID,
        user_id: UUID,
        data: ExpenseUpdate
    ) -> Optional[Expense]:
        expense = await self.get_expense_by_id(db, expense_id, user_id)
        if not expense:
            return None

        update_data = data.model_dump(exclude_unset=True)
        await self._check_references(
            db, user_id, update_data.get("category_id"), update_data.get("budget_id")
        )

        for field, value in update_data.items():
            setattr(expense, field, value)

        await db.commit()
        await db.refresh(expense)
        logger.info(f"Updated expense {expense_id}")
        return expense

    async def delete_expense(self, db: AsyncSession, expense_id: UUID, user_id: UUID) -> bool:
        expense = await self.get_expense_by_id(db, expense_id, user_id)
        if not expense:
            return False

        await db.delete(expense)
        await db.commit()
        logger.info(f"Deleted expense {expense_id}")
        return True
