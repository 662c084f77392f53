from datetime import datetime
import logging
from zoneinfo import ZoneInfo

from apscheduler.schedulers.blocking import BlockingScheduler
from sqlalchemy.orm import Session, sessionmaker

from referral_dispatch.config import Settings
from referral_dispatch.pipeline import build_job
from referral_dispatch.store import StoreUnavailableError
from referral_dispatch.window import day_window


logger = logging.getLogger(__name__)


def _run_daily_job(settings: Settings, session_factory: sessionmaker[Session]) -> None:
    tz = ZoneInfo(settings.timezone)
    window = day_window(datetime.now(tz).date(), tz)

    try:
        report = build_job(settings, session_factory).run(window)
    except StoreUnavailableError:
        logger.error("scheduled registration run aborted", extra={"window": window.label})
        return

    if report.has_errors:
        logger.error(
            "scheduled registration run finished with errors",
            extra={"window": window.label, "total": report.total, "errors": report.errors},
        )
        return
    logger.info(
        "scheduled registration run completed",
        extra={"window": window.label, "total": report.total, "registered": report.registered},
    )


def start_scheduler(settings: Settings, session_factory: sessionmaker[Session], *, run_now: bool = False) -> None:
    scheduler = BlockingScheduler(timezone=settings.timezone)
    scheduler.add_job(
        _run_daily_job,
        "cron",
        args=[settings, session_factory],
        hour=settings.schedule_hour,
        minute=settings.schedule_minute,
        id="daily_registration",
        replace_existing=True,
        max_instances=1,
    )

    logger.info(
        "scheduler started",
        extra={
            "schedule_hour": settings.schedule_hour,
            "schedule_minute": settings.schedule_minute,
            "timezone": settings.timezone,
        },
    )

    if run_now:
        _run_daily_job(settings, session_factory)

    scheduler.start()
