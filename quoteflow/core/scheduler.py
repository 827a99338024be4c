import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from quoteflow.core.config import PORTAL_LOCK_CRON, QUOTE_EXPIRY_CRON
from quoteflow.core.db import AsyncSessionLocal

from quoteflow.services.portal.portal_lock_service import lock_expired_portals
from quoteflow.services.quotes.quote_expiry_service import expire_overdue_quotes

logger = logging.getLogger(__name__)

# A run that overlaps the next tick is skipped, never doubled
scheduler = AsyncIOScheduler(job_defaults={"max_instances": 1, "coalesce": True})


async def portal_lock_job():
    async with AsyncSessionLocal() as db:
        result = await lock_expired_portals(db)
    logger.info("Portal lock job results: %s", result.model_dump())


async def expire_quotes_job():
    async with AsyncSessionLocal() as db:
        expired = await expire_overdue_quotes(db)
    logger.info("Quote expiry job expired %s quote(s)", expired)


scheduler.add_job(
    portal_lock_job,
    CronTrigger.from_crontab(PORTAL_LOCK_CRON),
    id="portal_lock",
    replace_existing=True,
)
scheduler.add_job(
    expire_quotes_job,
    CronTrigger.from_crontab(QUOTE_EXPIRY_CRON),
    id="quote_expiry",
    replace_existing=True,
)
