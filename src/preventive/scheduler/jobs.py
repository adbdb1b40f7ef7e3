"""
APScheduler jobs for risk maintenance.

  daily_risk_calculation  rescore every user with data in the last week
  drift_check             average yesterday's drift scores, warn if high
  risk_cleanup            weekly retention sweep of scores and evidence

Service calls are synchronous DB work, so each job hands them to a worker
thread. Job bodies never raise: a failing job must not stop the scheduler.
"""
import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from preventive.config import get_settings

logger = logging.getLogger(__name__)


def build_scheduler(service) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        service: RiskInsightsService shared by every job.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        _daily_risk_calculation,
        trigger="cron",
        hour=settings.risk_calculation_hour,
        minute=0,
        id="daily_risk_calculation",
        replace_existing=True,
        kwargs={"service": service},
    )
    scheduler.add_job(
        _drift_check,
        trigger="cron",
        hour=settings.drift_check_hour,
        minute=0,
        id="drift_check",
        replace_existing=True,
        kwargs={"service": service},
    )
    scheduler.add_job(
        _risk_cleanup,
        trigger="cron",
        day_of_week="sun",
        hour=settings.cleanup_hour,
        minute=0,
        id="risk_cleanup",
        replace_existing=True,
        kwargs={"service": service},
    )

    return scheduler


async def _daily_risk_calculation(service) -> None:
    """Rescore each active user; one user's failure does not stop the rest."""
    logger.info("Starting daily risk calculation...")

    try:
        user_ids = await asyncio.to_thread(service.active_user_ids)
    except Exception:
        logger.exception("Daily risk calculation failed")
        return

    logger.info("Found %d active users for risk calculation", len(user_ids))
    success_count = 0
    error_count = 0
    for user_id in user_ids:
        try:
            await asyncio.to_thread(service.calculate_risk_scores, user_id)
            success_count += 1
        except Exception:
            error_count += 1
            logger.exception("Failed to calculate risk for user %s", user_id)

    logger.info(
        "Daily risk calculation complete. Success: %d, Errors: %d",
        success_count,
        error_count,
    )


async def _drift_check(service) -> None:
    logger.info("Starting model drift check...")
    try:
        await asyncio.to_thread(service.check_drift)
    except Exception as exc:
        logger.error("Model drift check failed: %s", exc)


async def _risk_cleanup(service) -> None:
    logger.info("Starting risk score cleanup...")
    try:
        await asyncio.to_thread(service.cleanup_old_records)
    except Exception as exc:
        logger.error("Risk score cleanup failed: %s", exc)
