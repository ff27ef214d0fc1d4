"""
APScheduler wiring for the SLA compliance sweep.

``make_scheduler`` registers one interval job, ``sla_compliance_sweep``,
that fires immediately on start and then every
``settings.SLA_CHECK_INTERVAL_HOURS`` hours.  Overlapping runs are
suppressed and missed runs are coalesced into one.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger
from django.conf import settings
from django.db import close_old_connections
from django.utils import timezone

logger = logging.getLogger(__name__)

JOB_ID = "sla_compliance_sweep"

_scheduler: BackgroundScheduler | None = None


def run_sla_sweep_job() -> dict:
    """Scheduler entry point; returns the sweep summary, never raises."""
    from .services import SLAComplianceService

    close_old_connections()
    try:
        return SLAComplianceService.run_sweep().as_dict()
    except Exception:
        logger.exception("SLA sweep job crashed")
        return {"checked": 0, "overdue": 0, "cleared": 0, "errors": 1, "newly_overdue": []}
    finally:
        close_old_connections()


def make_scheduler(*, blocking: bool = False) -> BackgroundScheduler | BlockingScheduler:
    """
    Create a scheduler with the SLA job registered (not started).

    The interval comes from ``SLA_CHECK_INTERVAL_HOURS``.
    """
    scheduler_class = BlockingScheduler if blocking else BackgroundScheduler
    sched = scheduler_class(timezone=settings.TIME_ZONE)

    sched.add_job(
        run_sla_sweep_job,
        IntervalTrigger(hours=settings.SLA_CHECK_INTERVAL_HOURS),
        id=JOB_ID,
        name="SLA compliance sweep",
        replace_existing=True,
        next_run_time=timezone.now(),
        coalesce=True,
        max_instances=1,
    )
    return sched


def start_scheduler() -> BackgroundScheduler:
    """Start the process-wide background scheduler once."""
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        return _scheduler

    _scheduler = make_scheduler()
    _scheduler.start()
    logger.info(
        "SLA scheduler started (every %s hour(s))",
        settings.SLA_CHECK_INTERVAL_HOURS,
    )
    return _scheduler


def shutdown_scheduler() -> None:
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)
    _scheduler = None
