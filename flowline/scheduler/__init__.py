"""Periodic work: cron matching, scheduled rules and SLA monitoring."""

from flowline.scheduler.cron import cron_matches, next_cron_run, parse_cron
from flowline.scheduler.service import SchedulerService

__all__ = ["SchedulerService", "cron_matches", "next_cron_run", "parse_cron"]
