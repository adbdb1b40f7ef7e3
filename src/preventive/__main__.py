"""
Main entrypoint: runs the risk scheduler, or a one-off scoring pass.

FastAPI runs separately under uvicorn.

Usage:
    python -m preventive                      # starts the scheduler
    python -m preventive calculate [USER_ID]  # score one user now
    uvicorn preventive.api.main:app --host 0.0.0.0 --port 8000  # starts API
"""
import asyncio
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _build_service():
    from preventive.config import get_settings
    from preventive.db.engine import get_engine
    from preventive.monitoring.drift import DriftMonitor
    from preventive.services.risk_insights import RiskInsightsService

    settings = get_settings()
    return RiskInsightsService(
        engine=get_engine(),
        monitor=DriftMonitor(min_samples=settings.drift_min_samples),
        settings=settings,
    )


def _run_calculate(user_id: int) -> None:
    service = _build_service()
    scores = service.calculate_risk_scores(user_id)
    if not scores:
        logger.info("Insufficient data for risk calculation (user %s)", user_id)
        return
    for score in scores:
        logger.info(
            "%-17s score=%3d level=%-6s confidence=%.2f",
            score.category,
            score.score,
            score.level,
            score.confidence,
        )


async def _run_scheduler() -> None:
    from preventive.config import get_settings
    from preventive.scheduler.jobs import build_scheduler

    settings = get_settings()
    scheduler = build_scheduler(_build_service())
    scheduler.start()
    logger.info(
        "Scheduler started (risk calculation at %02d:00 UTC, drift check at %02d:00 UTC)",
        settings.risk_calculation_hour,
        settings.drift_check_hour,
    )

    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down...")
    finally:
        scheduler.shutdown()
        logger.info("Goodbye.")


if __name__ == "__main__":
    # Dispatch on first argument: `python -m preventive calculate [USER_ID]` or just `python -m preventive`
    if len(sys.argv) > 1 and sys.argv[1] == "calculate":
        from preventive.config import get_settings
        uid = int(sys.argv[2]) if len(sys.argv) > 2 else get_settings().user_id
        _run_calculate(uid)
    else:
        asyncio.run(_run_scheduler())
