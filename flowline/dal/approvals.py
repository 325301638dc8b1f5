"""Repositories for approval configuration and per-document approval steps."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from flowline.storage.entities import ApprovalStep, ApprovalStepStatus, ApprovalWorkflow


class ApprovalWorkflowRepository:
    """Read access to amount-bracketed approval configuration."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_amount(self, document_type: str, amount: Decimal) -> list[ApprovalWorkflow]:
        """Brackets whose [min_amount, max_amount] range contains ``amount``.

        Ordered by min_amount ascending, which is the chain order.
        """
        stmt = (
            select(ApprovalWorkflow)
            .where(ApprovalWorkflow.document_type == document_type)
            .where(ApprovalWorkflow.min_amount <= amount)
            .where(
                or_(
                    ApprovalWorkflow.max_amount.is_(None),
                    ApprovalWorkflow.max_amount >= amount,
                )
            )
            .order_by(ApprovalWorkflow.min_amount.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_for_role(self, document_type: str, approver_role: str) -> ApprovalWorkflow | None:
        """Highest bracket configured for a role on a document type."""
        stmt = (
            select(ApprovalWorkflow)
            .where(ApprovalWorkflow.document_type == document_type)
            .where(ApprovalWorkflow.approver_role == approver_role)
            .order_by(ApprovalWorkflow.min_amount.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class ApprovalStepRepository:
    """Approval step persistence.

    Step decisions are compare-and-swap updates guarded on
    ``status = 'pending'`` so two concurrent deciders cannot both win.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_document(
        self,
        document_type: str,
        document_id: str,
        with_approver: bool = False,
    ) -> list[ApprovalStep]:
        """All steps of a document ordered by level."""
        stmt = (
            select(ApprovalStep)
            .where(ApprovalStep.document_type == document_type)
            .where(ApprovalStep.document_id == document_id)
            .order_by(ApprovalStep.level.asc())
        )
        if with_approver:
            stmt = stmt.options(selectinload(ApprovalStep.approver))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def existing_levels(self, document_type: str, document_id: str) -> set[int]:
        """Levels already created for a document."""
        stmt = (
            select(ApprovalStep.level)
            .where(ApprovalStep.document_type == document_type)
            .where(ApprovalStep.document_id == document_id)
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def add(
        self,
        document_type: str,
        document_id: str,
        level: int,
        approver_role: str,
    ) -> ApprovalStep:
        """Create a pending step."""
        step = ApprovalStep(
            document_type=document_type,
            document_id=document_id,
            level=level,
            approver_role=approver_role,
            status=ApprovalStepStatus.PENDING.value,
        )
        self.session.add(step)
        await self.session.flush()
        return step

    async def current_pending(self, document_type: str, document_id: str) -> ApprovalStep | None:
        """Lowest-level pending step: the one awaiting a decision."""
        return await self.next_pending_after(document_type, document_id, 0)

    async def next_pending_after(
        self,
        document_type: str,
        document_id: str,
        level: int,
    ) -> ApprovalStep | None:
        """Lowest pending step strictly above ``level``."""
        stmt = (
            select(ApprovalStep)
            .where(ApprovalStep.document_type == document_type)
            .where(ApprovalStep.document_id == document_id)
            .where(ApprovalStep.status == ApprovalStepStatus.PENDING.value)
            .where(ApprovalStep.level > level)
            .order_by(ApprovalStep.level.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def decide(
        self,
        step_id: str,
        status: ApprovalStepStatus,
        approver_id: str,
        notes: str | None,
        decided_at: datetime,
    ) -> bool:
        """Move a pending step to a terminal status.

        Returns:
            False if the step was no longer pending.
        """
        stmt = (
            update(ApprovalStep)
            .where(ApprovalStep.id == step_id)
            .where(ApprovalStep.status == ApprovalStepStatus.PENDING.value)
            .values(
                status=status.value,
                approver_id=approver_id,
                notes=notes,
                decided_at=decided_at,
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def skip_pending_after(self, document_type: str, document_id: str, level: int) -> int:
        """Mark every pending step above ``level`` as skipped."""
        stmt = (
            update(ApprovalStep)
            .where(ApprovalStep.document_type == document_type)
            .where(ApprovalStep.document_id == document_id)
            .where(ApprovalStep.status == ApprovalStepStatus.PENDING.value)
            .where(ApprovalStep.level > level)
            .values(status=ApprovalStepStatus.SKIPPED.value)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def list_pending(self) -> list[ApprovalStep]:
        """Pending steps ordered by document then level.

        Callers keep the first (current) step per document.
        """
        stmt = (
            select(ApprovalStep)
            .where(ApprovalStep.status == ApprovalStepStatus.PENDING.value)
            .order_by(
                ApprovalStep.document_type,
                ApprovalStep.document_id,
                ApprovalStep.level.asc(),
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
