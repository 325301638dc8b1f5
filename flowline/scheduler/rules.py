"""Scheduled rule runner.

Each tick loads the rules whose ``next_run_at`` has passed, runs their
actions against a synthesized ``scheduled:rule_triggered`` event, logs
the outcome and moves ``next_run_at`` forward. Failures are contained:
a failed action does not stop its siblings, and a failed rule does not
stop the tick.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from flowline.actions.registry import execute_actions
from flowline.events import SystemEvent, scheduled_rule_event
from flowline.exceptions import InvalidCronExpressionError, ValidationError, describe_error
from flowline.scheduler.cron import next_cron_run
from flowline.settings import Settings, get_settings

if TYPE_CHECKING:
    from flowline.storage.entities import WorkflowRule

logger = logging.getLogger(__name__)

ACTION_SUCCESS = "success"
ACTION_FAILED = "failed"


def compute_next_run(expression: str, now: datetime, settings: Settings | None = None) -> datetime:
    """Next due time of a cron rule in the configured scheduler timezone."""
    settings = settings or get_settings()
    return next_cron_run(
        expression,
        now,
        tz=settings.scheduler_timezone,
        max_years=settings.cron_scan_max_years,
    )


async def initialize_scheduled_rules(now: datetime | None = None) -> int:
    """Backfill ``next_run_at`` for active cron rules that have none.

    Rules with an invalid expression are logged and left untouched.

    Returns:
        Number of rules initialized.
    """
    from flowline.dal.workflow_rules import WorkflowRuleRepository
    from flowline.storage import get_committing_session

    settings = get_settings()
    now = now or datetime.now(UTC)
    initialized = 0

    async with get_committing_session() as session:
        repo = WorkflowRuleRepository(session)
        for rule in await repo.list_uninitialized():
            if not rule.cron_expression:
                continue
            try:
                next_run = compute_next_run(rule.cron_expression, now, settings)
            except InvalidCronExpressionError as e:
                logger.error("[ScheduledRules] Rule %s has an invalid schedule: %s", rule.id, e)
                continue
            await repo.set_next_run(rule.id, next_run)
            initialized += 1

    if initialized:
        logger.info("[ScheduledRules] Initialized nextRunAt for %d rule(s)", initialized)
    return initialized


async def run_rule_actions(
    rule_id: str,
    actions: Any,
    event: SystemEvent,
) -> list[dict[str, Any]]:
    """Run every action in order, recording each outcome.

    A failing action is recorded and the next one still runs. Entries
    that are not action objects are recorded as failed.
    """
    if not isinstance(actions, list):
        message = f"Rule actions must be a list, got {type(actions).__name__}"
        logger.error("[ScheduledRules] Rule %s: %s", rule_id, message)
        return [{"type": "", "status": ACTION_FAILED, "error": message}]

    actions_run: list[dict[str, Any]] = []
    for action in actions:
        action_type = action.get("type", "") if isinstance(action, dict) else ""
        try:
            if not isinstance(action, dict):
                raise ValidationError(f"Malformed action entry: {action!r}")
            await execute_actions(action_type, action.get("params") or {}, event)
            actions_run.append({"type": action_type, "status": ACTION_SUCCESS})
        except Exception as e:
            message = describe_error(e)
            logger.error(
                "[ScheduledRules] Action %s failed for rule %s: %s",
                action_type,
                rule_id,
                message,
            )
            actions_run.append({"type": action_type, "status": ACTION_FAILED, "error": message})
    return actions_run


async def _record_execution(
    rule: WorkflowRule,
    event: SystemEvent,
    actions_run: list[dict[str, Any]],
) -> None:
    from flowline.dal.workflow_rules import ExecutionLogRepository
    from flowline.storage import get_committing_session

    failures = [a for a in actions_run if a["status"] != ACTION_SUCCESS]
    try:
        async with get_committing_session() as session:
            await ExecutionLogRepository(session).add(
                rule_id=rule.id,
                event_type=event.type,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
                matched=True,
                success=not failures,
                error=failures[0].get("error") if failures else None,
                event_data=event.to_dict(),
                actions_run=actions_run,
            )
    except Exception:
        logger.exception("[ScheduledRules] Failed to log execution for rule %s", rule.id)


async def _reschedule(
    rule: WorkflowRule,
    now: datetime,
    settings: Settings,
    last_run_at: datetime | None = None,
) -> None:
    from flowline.dal.workflow_rules import WorkflowRuleRepository
    from flowline.storage import get_committing_session

    try:
        next_run = compute_next_run(rule.cron_expression or "", now, settings)
        async with get_committing_session() as session:
            await WorkflowRuleRepository(session).set_next_run(rule.id, next_run, last_run_at)
    except Exception as e:
        logger.error("[ScheduledRules] Failed to update nextRunAt for rule %s: %s", rule.id, e)


async def process_rule(rule: WorkflowRule, now: datetime, settings: Settings) -> bool:
    """Run one due rule.

    Returns:
        True if the rule's actions were executed.
    """
    workflow = rule.workflow
    if workflow is None or not workflow.is_active:
        logger.debug("[ScheduledRules] Skipping rule %s: workflow inactive", rule.id)
        if settings.reschedule_inactive_workflows:
            await _reschedule(rule, now, settings)
        return False

    event = scheduled_rule_event(
        entity_type=workflow.entity_type,
        rule_id=rule.id,
        rule_name=rule.name,
        cron_expression=rule.cron_expression or "",
        now=now,
    )
    try:
        actions_run = await run_rule_actions(rule.id, rule.actions or [], event)
    except Exception as e:
        logger.exception("[ScheduledRules] Actions failed for rule %s", rule.id)
        actions_run = [{"type": "", "status": ACTION_FAILED, "error": describe_error(e)}]
    await _record_execution(rule, event, actions_run)
    await _reschedule(rule, now, settings, last_run_at=now)
    return True


async def process_scheduled_rules(now: datetime | None = None) -> int:
    """Execute every due scheduled rule, one after another.

    Returns:
        Number of rules whose actions ran.
    """
    from flowline.dal.workflow_rules import WorkflowRuleRepository
    from flowline.storage import get_session

    settings = get_settings()
    now = now or datetime.now(UTC)

    async with get_session() as session:
        due = await WorkflowRuleRepository(session).list_due(now)

    executed = 0
    for rule in due:
        try:
            if await process_rule(rule, now, settings):
                executed += 1
        except Exception:
            logger.exception("[ScheduledRules] Rule %s failed", rule.id)

    if executed:
        logger.info("[ScheduledRules] Executed %d scheduled rule(s)", executed)
    return executed
