import logging
import zoneinfo
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import select, distinct

from app.core.database import AsyncSessionLocal
from app.core.config import get_settings
from app.utils.finance_utils import get_today

logger = logging.getLogger(__name__)
settings = get_settings()

scheduler = AsyncIOScheduler(timezone=zoneinfo.ZoneInfo(settings.APP_TIMEZONE))


async def run_budget_alert_sweep():
    """
    Re-check every budget that is active today and store alerts for the
    ones past the warning threshold. Runs daily.
    """
    logger.info("Starting Budget Alert Sweep...")
    from app.features.budgets.models import Budget
    from app.features.analytics.repository import SpendingRepository
    from app.features.analytics.service import AnalyticsService
    from app.features.notifications.service import NotificationService

    today = get_today()

    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(distinct(Budget.user_id))
            .where(Budget.start_date <= today)
            .where(Budget.end_date >= today)
        )
        user_ids = list(result.scalars().all())
        logger.info(f"Budget Alert Sweep: {len(user_ids)} user(s) with active budgets.")

        repository = SpendingRepository(db)
        analytics = AnalyticsService(repository)
        notification_service = NotificationService(db)

        for user_id in user_ids:
            try:
                pairs = await analytics.budgets_with_status(user_id, active_on=today)
                await notification_service.record_budget_alerts(user_id, pairs)
            except Exception as e:
                await db.rollback()
                logger.error(f"Budget alert sweep failed for user {user_id}: {e}", exc_info=True)

    logger.info("Budget Alert Sweep Completed.")


def register_jobs():
    # Triggers default to the host zone, not the scheduler's
    scheduler.add_job(
        run_budget_alert_sweep,
        CronTrigger(hour=8, minute=0, timezone=zoneinfo.ZoneInfo(settings.APP_TIMEZONE)),
        id="budget_alert_sweep",
        replace_existing=True,
    )


def start_scheduler():
    if not settings.ENABLE_SCHEDULER:
        logger.info("Scheduler disabled (ENABLE_SCHEDULER=false).")
        return

    register_jobs()
    scheduler.start()
    logger.info("Scheduler started: budget alert sweep daily at 08:00.")


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
