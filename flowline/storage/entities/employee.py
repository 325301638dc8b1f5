"""Employee and delegation models."""

from __future__ import annotations

from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flowline.storage.models import Base, TimestampMixin, UUIDMixin

ADMIN_ROLE = "admin"
DELEGATION_SCOPE_ALL = "all"


class Employee(Base, UUIDMixin, TimestampMixin):
    """A user of the system: approver, notification recipient, task assignee."""

    __tablename__ = "employees"

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    system_role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        doc="Role name matched against approver_role / recipientRole",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class DelegationRule(Base, UUIDMixin, TimestampMixin):
    """Lets a delegate act with the delegator's role for a date window."""

    __tablename__ = "delegation_rules"

    delegator_id: Mapped[str] = mapped_column(ForeignKey("employees.id"), nullable=False)
    delegate_id: Mapped[str] = mapped_column(
        ForeignKey("employees.id"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    scope: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=DELEGATION_SCOPE_ALL,
        doc="'all' or a single document type",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    delegator: Mapped[Employee] = relationship(foreign_keys=[delegator_id])
    delegate: Mapped[Employee] = relationship(foreign_keys=[delegate_id])
