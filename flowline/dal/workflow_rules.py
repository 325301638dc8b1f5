"""Repositories for scheduled workflow rules and their execution logs."""

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from flowline.storage.entities import WorkflowExecutionLog, WorkflowRule


class WorkflowRuleRepository:
    """Queries over cron-scheduled rules."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, rule_id: str) -> WorkflowRule | None:
        """Get a rule by ID."""
        return await self.session.get(WorkflowRule, rule_id)

    async def list_uninitialized(self) -> list[WorkflowRule]:
        """Active cron rules that have never been scheduled."""
        stmt = (
            select(WorkflowRule)
            .where(WorkflowRule.is_active == True)  # noqa: E712
            .where(WorkflowRule.cron_expression.is_not(None))
            .where(WorkflowRule.next_run_at.is_(None))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_due(self, now: datetime) -> list[WorkflowRule]:
        """Active cron rules whose next run is at or before ``now``.

        The parent workflow is eagerly loaded.
        """
        stmt = (
            select(WorkflowRule)
            .options(selectinload(WorkflowRule.workflow))
            .where(WorkflowRule.is_active == True)  # noqa: E712
            .where(WorkflowRule.cron_expression.is_not(None))
            .where(WorkflowRule.next_run_at <= now)
            .order_by(WorkflowRule.next_run_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_scheduled(self) -> list[WorkflowRule]:
        """All rules carrying a cron expression, for operator listings."""
        stmt = (
            select(WorkflowRule)
            .options(selectinload(WorkflowRule.workflow))
            .where(WorkflowRule.cron_expression.is_not(None))
            .order_by(WorkflowRule.next_run_at.asc().nulls_last())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_next_run(
        self,
        rule_id: str,
        next_run_at: datetime,
        last_run_at: datetime | None = None,
    ) -> None:
        """Persist the next due time (and optionally the last run time)."""
        values: dict[str, Any] = {"next_run_at": next_run_at}
        if last_run_at is not None:
            values["last_run_at"] = last_run_at
        await self.session.execute(
            update(WorkflowRule).where(WorkflowRule.id == rule_id).values(**values)
        )


class ExecutionLogRepository:
    """Append-only writer for rule execution logs."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(
        self,
        rule_id: str,
        event_type: str,
        entity_type: str,
        entity_id: str,
        success: bool,
        event_data: dict[str, Any],
        actions_run: list[dict[str, Any]],
        error: str | None = None,
        matched: bool = True,
    ) -> WorkflowExecutionLog:
        """Record one processed rule cycle."""
        entry = WorkflowExecutionLog(
            rule_id=rule_id,
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            matched=matched,
            success=success,
            error=error,
            event_data=event_data,
            actions_run=actions_run,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_for_rule(self, rule_id: str, limit: int = 20) -> list[WorkflowExecutionLog]:
        """Most recent executions of a rule."""
        stmt = (
            select(WorkflowExecutionLog)
            .where(WorkflowExecutionLog.rule_id == rule_id)
            .order_by(WorkflowExecutionLog.executed_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
