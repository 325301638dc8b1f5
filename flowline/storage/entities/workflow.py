"""Workflow, rule and execution-log models.

A Workflow groups rules for one entity type. Rules carrying a cron
expression are picked up by the scheduled rule runner; every processed
cycle appends one WorkflowExecutionLog row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flowline.storage.models import Base, TimestampMixin, UUIDMixin


class Workflow(Base, UUIDMixin, TimestampMixin):
    """Named group of rules attached to one entity type."""

    __tablename__ = "workflows"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Document type the workflow reacts to, e.g. 'mrrv'",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    rules: Mapped[list[WorkflowRule]] = relationship(back_populates="workflow")


class WorkflowRule(Base, UUIDMixin, TimestampMixin):
    """One rule: an ordered action list, optionally on a cron schedule."""

    __tablename__ = "workflow_rules"
    __table_args__ = (Index("ix_workflow_rules_due", "is_active", "next_run_at"),)

    workflow_id: Mapped[str] = mapped_column(
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    trigger_event: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        doc="Event type matched by the event-driven layer (unused for cron rules)",
    )
    conditions: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    actions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="Ordered list of {type, params} entries",
    )
    cron_expression: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        doc="5-field cron expression, e.g. '*/5 * * * *'",
    )
    next_run_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Next due time; only meaningful when cron_expression is set",
    )
    last_run_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    workflow: Mapped[Workflow] = relationship(back_populates="rules")


class WorkflowExecutionLog(Base, UUIDMixin):
    """Append-only record of one processed rule cycle."""

    __tablename__ = "workflow_execution_logs"

    rule_id: Mapped[str] = mapped_column(
        ForeignKey("workflow_rules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    matched: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    actions_run: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="Per-action outcomes: {type, status, error?}",
    )
    executed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
