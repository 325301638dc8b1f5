"""APScheduler-based ticking for scheduled rules and SLA checks.

Uses APScheduler 3.x with AsyncIOScheduler. On start, rules that were
never scheduled get their first ``next_run_at``; afterwards two interval
jobs poll for due rules and overdue approvals.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from flowline.settings import Settings, get_settings

logger = logging.getLogger(__name__)

RULES_JOB_ID = "workflow:scheduled_rules"
SLA_JOB_ID = "approvals:sla_breaches"


class SchedulerService:
    """Owns the AsyncIOScheduler for the engine's periodic jobs.

    Lifecycle:
        scheduler = SchedulerService()
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    _instance: SchedulerService | None = None

    def __init__(self) -> None:
        settings = get_settings()
        self._scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)
        self._running = False

    @classmethod
    def get_instance(cls) -> SchedulerService | None:
        """Get the running scheduler (None if not started)."""
        return cls._instance

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Initialize rule schedules and start the periodic jobs."""
        settings = get_settings()
        if not settings.scheduler_enabled:
            logger.info("Scheduler disabled via settings")
            return

        from flowline.scheduler.rules import initialize_scheduled_rules

        try:
            await initialize_scheduled_rules()
        except Exception as e:
            # Tables may not exist yet (migrations not run)
            logger.warning("Could not initialize scheduled rules: %s", e)

        self._scheduler.start()
        self._running = True
        SchedulerService._instance = self

        self._schedule_rule_processing(settings)
        self._schedule_sla_checks(settings)

        logger.info("Scheduler started")

    async def stop(self) -> None:
        """Shut down without waiting for running jobs."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            SchedulerService._instance = None
            logger.info("Scheduler stopped")

    def _schedule_rule_processing(self, settings: Settings) -> None:
        self._scheduler.add_job(
            _execute_scheduled_rules,
            trigger=IntervalTrigger(seconds=settings.scheduled_rules_interval_seconds),
            id=RULES_JOB_ID,
            replace_existing=True,
            name="workflow:process_scheduled_rules",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )
        logger.info(
            "Scheduled rule processing every %d seconds",
            settings.scheduled_rules_interval_seconds,
        )

    def _schedule_sla_checks(self, settings: Settings) -> None:
        self._scheduler.add_job(
            _execute_sla_check,
            trigger=IntervalTrigger(minutes=settings.sla_check_interval_minutes),
            id=SLA_JOB_ID,
            replace_existing=True,
            name="approvals:check_sla_breaches",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
        )
        logger.info("SLA breach check every %d minutes", settings.sla_check_interval_minutes)


async def _execute_scheduled_rules() -> None:
    """APScheduler job: one scheduled-rule tick."""
    from flowline.scheduler.rules import process_scheduled_rules

    try:
        await process_scheduled_rules()
    except Exception:
        logger.exception("Scheduled rule processing failed")


async def _execute_sla_check() -> None:
    """APScheduler job: one SLA breach pass."""
    from flowline.scheduler.sla import check_sla_breaches

    await check_sla_breaches()
