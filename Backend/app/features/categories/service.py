import logging
from uuid import UUID
from typing import List, Optional
from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from app.features.categories.models import Category
from app.features.categories.schemas import CategoryCreate, CategoryUpdate
from app.features.budgets.models import Budget
from app.features.expenses.models import Expense
from app.features.notifications.models import Notification

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"name": "Transport", "icon": "🚗", "color": "#3B82F6"},
    {"name": "Food & Dining", "icon": "🍽️", "color": "#EF4444"},
    {"name": "Shopping", "icon": "🛍️", "color": "#8B5CF6"},
    {"name": "Entertainment", "icon": "🎬", "color": "#F59E0B"},
    {"name": "Bills & Utilities", "icon": "💡", "color": "#10B981"},
    {"name": "Healthcare", "icon": "🏥", "color": "#EC4899"},
    {"name": "Education", "icon": "📚", "color": "#6366F1"},
    {"name": "Savings", "icon": "💰", "color": "#059669"},
    {"name": "Other", "icon": "📦", "color": "#6B7280"},
]


class CategoryService:

    async def get_user_categories(self, db: AsyncSession, user_id: UUID) -> List[Category]:
        result = await db.execute(
            select(Category).where(Category.user_id == user_id).order_by(Category.name)
        )
        return list(result.scalars().all())

    async def get_category_by_id(self, db: AsyncSession, category_id: UUID, user_id: UUID) -> Optional[Category]:
        result = await db.execute(
            select(Category).where(Category.id == category_id, Category.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _name_taken(self, db: AsyncSession, user_id: UUID, name: str, exclude_id: Optional[UUID] = None) -> bool:
        stmt = select(Category.id).where(Category.user_id == user_id, Category.name == name)
        if exclude_id:
            stmt = stmt.where(Category.id != exclude_id)
        result = await db.execute(stmt)
        return result.first() is not None

    async def create_category(self, db: AsyncSession, user_id: UUID, data: CategoryCreate) -> Category:
        if await self._name_taken(db, user_id, data.name):
            raise ValueError(f"Category '{data.name}' already exists")

        category = Category(user_id=user_id, **data.model_dump())
        db.add(category)
        await db.commit()
        await db.refresh(category)
        logger.info(f"Created category '{category.name}' for user {user_id}")
        return category

    async def create_default_categories(self, db: AsyncSession, user_id: UUID) -> List[Category]:
        """Seed the starter set for a new user, skipping names that already exist."""
        existing = {c.name for c in await self.get_user_categories(db, user_id)}
        created = []
        for item in DEFAULT_CATEGORIES:
            if item["name"] in existing:
                continue
            category = Category(user_id=user_id, **item)
            db.add(category)
            created.append(category)
        await db.commit()
        logger.info(f"Seeded {len(created)} default categories for user {user_id}")
        return created

    async def update_category(
        self,
        db: AsyncSession,
        category_id: UUID,
        user_id: UUID,
        data: CategoryUpdate
    ) -> Optional[Category]:
        category = await self.get_category_by_id(db, category_id, user_id)
        if not category:
            return None

        update_data = data.model_dump(exclude_unset=True)
        new_name = update_data.get("name")
        if new_name and new_name != category.name and await self._name_taken(db, user_id, new_name, category.id):
            raise ValueError(f"Category '{new_name}' already exists")

        for field, value in update_data.items():
            setattr(category, field, value)

        await db.commit()
        await db.refresh(category)
        logger.info(f"Updated category {category_id}")
        return category

    async def delete_category(self, db: AsyncSession, category_id: UUID, user_id: UUID) -> bool:
        """Delete a category; its expenses become uncategorized and its budgets go with it."""
        category = await self.get_category_by_id(db, category_id, user_id)
        if not category:
            return False

        await db.execute(
            update(Expense)
            .where(Expense.user_id == user_id, Expense.category_id == category_id)
            .values(category_id=None)
        )
        budget_ids = select(Budget.id).where(Budget.user_id == user_id, Budget.category_id == category_id)
        await db.execute(
            update(Expense)
            .where(Expense.user_id == user_id, Expense.budget_id.in_(budget_ids))
            .values(budget_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.budget_id.in_(budget_ids))
            .values(budget_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.execute(delete(Budget).where(Budget.user_id == user_id, Budget.category_id == category_id))
        await db.delete(category)
        await db.commit()
        logger.info(f"Deleted category {category_id}")
        return True
