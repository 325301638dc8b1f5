"""Approval chain configuration and per-document approval steps."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flowline.storage.entities.employee import Employee
from flowline.storage.models import Base, TimestampMixin, UUIDMixin


class ApprovalStepStatus(StrEnum):
    """Lifecycle of one approval level. Terminal once it leaves PENDING."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SKIPPED = "skipped"


class ApprovalWorkflow(Base, UUIDMixin, TimestampMixin):
    """One amount bracket of a document type's approval chain."""

    __tablename__ = "approval_workflows"

    document_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    approver_role: Mapped[str] = mapped_column(String(50), nullable=False)
    min_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=0)
    max_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(15, 2),
        nullable=True,
        doc="Upper bound of the bracket; null means unbounded",
    )
    sla_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)


class ApprovalStep(Base, UUIDMixin):
    """One level of a document's approval chain."""

    __tablename__ = "approval_steps"
    __table_args__ = (
        UniqueConstraint(
            "document_type",
            "document_id",
            "level",
            name="uq_approval_steps_document_level",
        ),
    )

    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    document_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    approver_role: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApprovalStepStatus.PENDING.value,
    )
    approver_id: Mapped[str | None] = mapped_column(ForeignKey("employees.id"), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    approver: Mapped[Employee | None] = relationship()
