import uuid
import logging
from typing import Iterable, List, Optional, Tuple
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import Depends
from app.core.config import get_settings
from app.core.database import get_db
from app.features.analytics.engine import evaluate_budget_alert
from app.features.analytics.schemas import BudgetRecord, BudgetStatus
from app.features.notifications.models import Notification

settings = get_settings()
logger = logging.getLogger(__name__)

BUDGET_ALERT = "budget_alert"


class NotificationService:
    def __init__(self, db: AsyncSession = Depends(get_db)):
        self.db = db

    async def list_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def mark_read(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> Optional[Notification]:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            return None

        notification.is_read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_read(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def _has_unread(self, user_id: uuid.UUID, budget_id, title: str) -> bool:
        result = await self.db.execute(
            select(Notification.id).where(
                Notification.user_id == user_id,
                Notification.budget_id == budget_id,
                Notification.title == title,
                Notification.is_read == False
            )
        )
        return result.first() is not None

    async def record_budget_alerts(
        self,
        user_id: uuid.UUID,
        budget_statuses: Iterable[Tuple[BudgetRecord, BudgetStatus]]
    ) -> List[Notification]:
        """
        Store a budget_alert notification for every budget over the warning
        threshold. An identical unread alert for the same budget is not repeated.
        """
        created = []
        for budget, status in budget_statuses:
            alert = evaluate_budget_alert(budget, status, settings.BUDGET_ALERT_THRESHOLD)
            if alert is None:
                continue
            if await self._has_unread(user_id, budget.id, alert.title):
                continue

            notification = Notification(
                user_id=user_id,
                budget_id=budget.id,
                title=alert.title,
                message=alert.message,
                type=BUDGET_ALERT,
            )
            self.db.add(notification)
            created.append(notification)

        if created:
            await self.db.commit()
            logger.info(f"Recorded {len(created)} budget alert(s) for user {user_id}")
        return created
