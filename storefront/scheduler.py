"""
Scheduled stock analysis tasks.

Runs the sales ranking cache builder and the low-stock reorder check inside
the FastAPI process on an AsyncIOScheduler.
"""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR

from storefront.core.config import get_settings
from storefront.database import async_session
from storefront.services.cache_service import CacheService
from storefront.services.stock_analysis import JobSummary, SalesRankingCacheJob, StockReorderJob

logger = logging.getLogger(__name__)

SALES_RANKING_JOB_ID = "sales_ranking_cache"
STOCK_REORDER_JOB_ID = "stock_reorder_alerts"

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None
_cache: Optional[CacheService] = None


def _get_cache() -> CacheService:
    global _cache
    if _cache is None:
        _cache = CacheService.from_settings()
    return _cache


async def sales_ranking_task() -> JobSummary:
    """Rebuild every seller's 7-day sales ranking in the cache"""
    return await SalesRankingCacheJob(async_session, _get_cache()).run()


async def stock_reorder_task() -> JobSummary:
    """Alert sellers whose products will sell out within the critical window"""
    return await StockReorderJob(async_session, _get_cache()).run()


JOBS = {
    SALES_RANKING_JOB_ID: sales_ranking_task,
    STOCK_REORDER_JOB_ID: stock_reorder_task,
}


def job_listener(event):
    """Listen to job events for logging"""
    if event.exception:
        logger.error(f"Job {event.job_id} crashed: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now()}")


def create_scheduler(cache: Optional[CacheService] = None) -> AsyncIOScheduler:
    """Create and configure the scheduler"""
    global scheduler, _cache

    if cache is not None:
        _cache = cache

    if scheduler is not None:
        return scheduler

    settings = get_settings()
    scheduler = AsyncIOScheduler()
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    if settings.SCHEDULER_ENABLED:
        scheduler.add_job(
            sales_ranking_task,
            CronTrigger.from_crontab(settings.SALES_RANKING_SCHEDULE),
            id=SALES_RANKING_JOB_ID,
            name="Sales Ranking Cache",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=600
        )
        logger.info(f"Sales ranking job added with schedule: {settings.SALES_RANKING_SCHEDULE}")

        scheduler.add_job(
            stock_reorder_task,
            CronTrigger.from_crontab(settings.STOCK_REORDER_SCHEDULE),
            id=STOCK_REORDER_JOB_ID,
            name="Stock Reorder Alerts",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=3600
        )
        logger.info(f"Stock reorder job added with schedule: {settings.STOCK_REORDER_SCHEDULE}")
    else:
        logger.info("Scheduled jobs are disabled. Set SCHEDULER_ENABLED=true to enable")

    return scheduler


async def start_scheduler(cache: Optional[CacheService] = None):
    """Start the scheduler"""
    global scheduler

    if scheduler is None:
        scheduler = create_scheduler(cache)
    elif cache is not None:
        create_scheduler(cache)

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started successfully")

        jobs = scheduler.get_jobs()
        if jobs:
            logger.info(f"Active scheduled jobs: {len(jobs)}")
            for job in jobs:
                logger.info(f"  - {job.name}: {job.trigger}")
        else:
            logger.info("No scheduled jobs configured")


async def stop_scheduler():
    """Stop the scheduler gracefully"""
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped successfully")


async def run_job_now(job_id: str) -> Optional[JobSummary]:
    """Run a job immediately, outside its schedule. Returns None for an unknown id."""
    task = JOBS.get(job_id)
    if task is None:
        return None
    logger.info(f"Manually triggering {job_id}...")
    return await task()


async def get_scheduler_status():
    """Get current scheduler status and job information"""
    global scheduler

    if scheduler is None:
        return {"status": "not_initialized", "jobs": []}

    jobs_info = []
    for job in scheduler.get_jobs():
        jobs_info.append({
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            "trigger": str(job.trigger)
        })

    return {
        "status": "running" if scheduler.running else "stopped",
        "jobs": jobs_info
    }
