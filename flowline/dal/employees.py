"""Repositories for employees and approval delegations."""

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flowline.storage.entities import DELEGATION_SCOPE_ALL, DelegationRule, Employee


class EmployeeRepository:
    """Read access to employees."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, employee_id: str) -> Employee | None:
        """Get an employee by ID."""
        return await self.session.get(Employee, employee_id)

    async def list_active_by_role(self, role: str) -> list[Employee]:
        """All active employees holding ``role``."""
        stmt = (
            select(Employee)
            .where(Employee.system_role == role)
            .where(Employee.is_active == True)  # noqa: E712
            .order_by(Employee.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def first_active_by_role(self, role: str) -> Employee | None:
        """First active employee holding ``role``, if any."""
        stmt = (
            select(Employee)
            .where(Employee.system_role == role)
            .where(Employee.is_active == True)  # noqa: E712
            .order_by(Employee.created_at)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class DelegationRepository:
    """Queries over delegation rules.

    A delegation is in force when it is active, today falls inside its
    inclusive date window, its scope covers the document type, and the
    delegator is an active employee.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _active_for(self, delegate_id: str, today: date, document_type: str | None):
        stmt = (
            select(DelegationRule, Employee)
            .join(Employee, DelegationRule.delegator_id == Employee.id)
            .where(DelegationRule.delegate_id == delegate_id)
            .where(DelegationRule.is_active == True)  # noqa: E712
            .where(DelegationRule.start_date <= today)
            .where(DelegationRule.end_date >= today)
            .where(Employee.is_active == True)  # noqa: E712
        )
        if document_type is not None:
            stmt = stmt.where(DelegationRule.scope.in_([DELEGATION_SCOPE_ALL, document_type]))
        return stmt

    async def has_active_delegation(
        self,
        delegate_id: str,
        role: str,
        document_type: str,
        today: date,
    ) -> bool:
        """Whether ``delegate_id`` may act as ``role`` on ``document_type`` today."""
        stmt = (
            self._active_for(delegate_id, today, document_type)
            .where(Employee.system_role == role)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def delegated_roles(self, delegate_id: str, today: date) -> list[tuple[str, str]]:
        """(role, scope) pairs currently delegated to ``delegate_id``."""
        result = await self.session.execute(self._active_for(delegate_id, today, None))
        return [(delegator.system_role, rule.scope) for rule, delegator in result.all()]
