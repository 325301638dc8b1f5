"""Multi-level approval chains.

A document's chain is derived from the ApprovalWorkflow brackets that
contain its amount, lowest bracket first. Submission creates one pending
step per level; the lowest pending level is the one awaiting a decision.
Approving moves to the next level or finalizes the document; rejecting
skips every remaining level and rejects the document.

All writes go through the session the service was built with, so the
step changes and the document update commit (or roll back) together.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from enum import StrEnum

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from flowline.approvals.notifier import ApprovalNotifier
from flowline.dal.approvals import ApprovalStepRepository, ApprovalWorkflowRepository
from flowline.dal.audit import AuditRepository
from flowline.dal.documents import DocumentRepository, document_label, get_document_repository
from flowline.dal.employees import DelegationRepository, EmployeeRepository
from flowline.exceptions import (
    ApprovalConflictError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from flowline.storage.entities import (
    ADMIN_ROLE,
    DELEGATION_SCOPE_ALL,
    ApprovalStep,
    ApprovalStepStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Rejected"


class ApprovalAction(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"


class DocumentApprovalStatus(StrEnum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ApprovalLevel:
    """One level of a computed approval chain."""

    level: int
    approver_role: str
    sla_hours: int


@dataclass(frozen=True)
class ApprovalOutcome:
    """Result of processing one approval decision."""

    document_status: DocumentApprovalStatus
    decided_level: int
    next_level: int | None = None
    next_role: str | None = None
    skipped_levels: int = 0


class ApprovalService:
    """Approval chain operations bound to one session."""

    def __init__(
        self,
        session: AsyncSession,
        notifier: ApprovalNotifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.session = session
        self.workflows = ApprovalWorkflowRepository(session)
        self.steps = ApprovalStepRepository(session)
        self.employees = EmployeeRepository(session)
        self.delegations = DelegationRepository(session)
        self.audit = AuditRepository(session)
        self.notifier = notifier or ApprovalNotifier(session)
        self._clock = clock or (lambda: datetime.now(UTC))

    async def get_approval_chain(
        self,
        document_type: str,
        amount: Decimal | int | float,
    ) -> list[ApprovalLevel]:
        """Levels required for ``amount``, numbered from 1."""
        brackets = await self.workflows.list_for_amount(document_type, Decimal(str(amount)))
        return [
            ApprovalLevel(level=i, approver_role=b.approver_role, sla_hours=b.sla_hours)
            for i, b in enumerate(brackets, start=1)
        ]

    async def get_required_approval(
        self,
        document_type: str,
        amount: Decimal | int | float,
    ) -> ApprovalLevel | None:
        """Top level of the chain, or None when no approval is configured."""
        chain = await self.get_approval_chain(document_type, amount)
        return chain[-1] if chain else None

    async def submit_for_approval(
        self,
        document_type: str,
        document_id: str,
        amount: Decimal | int | float,
        submitted_by_id: str,
    ) -> ApprovalLevel:
        """Put a document into ``pending_approval`` and create its steps.

        Safe to call again: only missing levels are created.

        Returns:
            The top level the document ultimately needs.

        Raises:
            ValidationError: No approval bracket matches the amount.
            UnknownEntityTypeError: Unknown document type.
            ApprovalConflictError: Steps were created concurrently.
        """
        chain = await self.get_approval_chain(document_type, amount)
        if not chain:
            raise ValidationError(
                f"No approval workflow configured for {document_type} with amount {amount}"
            )

        documents = get_document_repository(self.session, document_type)
        now = self._clock()
        sla_due = now + timedelta(hours=chain[0].sla_hours)
        await documents.update_fields(
            document_id,
            status=DocumentApprovalStatus.PENDING_APPROVAL.value,
            sla_due_date=sla_due,
        )

        existing = await self.steps.existing_levels(document_type, document_id)
        try:
            for level in chain:
                if level.level not in existing:
                    await self.steps.add(document_type, document_id, level.level, level.approver_role)
        except IntegrityError as e:
            raise ApprovalConflictError(
                f"Approval steps for {document_type} {document_id} were created concurrently"
            ) from e

        await self.audit.record(
            table_name=document_type,
            record_id=document_id,
            action="update",
            new_values={
                "status": DocumentApprovalStatus.PENDING_APPROVAL.value,
                "slaDueDate": sla_due.isoformat() if sla_due else None,
                "approvalChain": [
                    {"level": lvl.level, "role": lvl.approver_role, "slaHours": lvl.sla_hours}
                    for lvl in chain
                ],
            },
            performed_by_id=submitted_by_id,
        )

        label = document_label(document_type)
        await self.notifier.notify_role(
            chain[0].approver_role,
            title=f"{label} Pending Approval",
            body=f"A {label} requires your Level 1 approval.",
            document_type=document_type,
            document_id=document_id,
        )

        logger.info(
            "[Approval] %s %s submitted: %d level(s), %d new",
            document_type,
            document_id,
            len(chain),
            len([lvl for lvl in chain if lvl.level not in existing]),
        )
        return chain[-1]

    async def is_authorized_approver(
        self,
        user_id: str,
        required_role: str,
        document_type: str,
    ) -> bool:
        """Admins, holders of the role, and active delegates of a holder may decide."""
        user = await self.employees.get(user_id)
        if user is None or not user.is_active:
            return False
        if user.system_role in (ADMIN_ROLE, required_role):
            return True
        return await self.delegations.has_active_delegation(
            user_id,
            required_role,
            document_type,
            self._clock().date(),
        )

    async def process_approval(
        self,
        document_type: str,
        document_id: str,
        action: ApprovalAction | str,
        processed_by_id: str,
        comments: str | None = None,
    ) -> ApprovalOutcome:
        """Decide the document's current approval step.

        Raises:
            ValidationError: Unknown action.
            NotFoundError: The document has no pending step.
            AuthorizationError: The user may not decide this step.
            ApprovalConflictError: The step was decided concurrently.
        """
        try:
            action = ApprovalAction(action)
        except ValueError:
            raise ValidationError(f"Unknown approval action: {action}") from None

        documents = get_document_repository(self.session, document_type)

        step = await self.steps.current_pending(document_type, document_id)
        if step is None:
            raise NotFoundError(
                f"No pending approval step for {document_type} {document_id}",
                entity="approval_step",
            )

        if not await self.is_authorized_approver(processed_by_id, step.approver_role, document_type):
            raise AuthorizationError(
                f"User {processed_by_id} is not authorized to act as {step.approver_role}",
                user_id=processed_by_id,
            )

        if action is ApprovalAction.APPROVE:
            return await self._approve(
                documents, document_type, document_id, step, processed_by_id, comments
            )
        return await self._reject(
            documents, document_type, document_id, step, processed_by_id, comments
        )

    async def _decide(
        self,
        step: ApprovalStep,
        status: ApprovalStepStatus,
        user_id: str,
        notes: str | None,
        now: datetime,
    ) -> None:
        if not await self.steps.decide(step.id, status, user_id, notes, now):
            raise ApprovalConflictError(
                f"Approval step {step.level} of {step.document_type} {step.document_id} "
                "was already decided"
            )

    async def _approve(
        self,
        documents: DocumentRepository,
        document_type: str,
        document_id: str,
        step: ApprovalStep,
        user_id: str,
        comments: str | None,
    ) -> ApprovalOutcome:
        now = self._clock()
        await self._decide(step, ApprovalStepStatus.APPROVED, user_id, comments, now)

        label = document_label(document_type)
        next_step = await self.steps.next_pending_after(document_type, document_id, step.level)

        if next_step is not None:
            config = await self.workflows.find_for_role(document_type, next_step.approver_role)
            sla_due = None
            if config is not None:
                sla_due = now + timedelta(hours=config.sla_hours)
                await documents.update_fields(document_id, sla_due_date=sla_due)
            await self.audit.record(
                table_name=document_type,
                record_id=document_id,
                action="update",
                new_values={
                    "approvedLevel": step.level,
                    "nextLevel": next_step.level,
                    "slaDueDate": sla_due.isoformat() if sla_due else None,
                },
                performed_by_id=user_id,
            )
            await self.notifier.notify_role(
                next_step.approver_role,
                title=f"{label} Awaiting L{next_step.level} Approval",
                body=(
                    f"Level {step.level} approved. "
                    f"Your Level {next_step.level} approval is required."
                ),
                document_type=document_type,
                document_id=document_id,
            )
            logger.info(
                "[Approval] %s %s level %d approved, awaiting level %d (%s)",
                document_type,
                document_id,
                step.level,
                next_step.level,
                next_step.approver_role,
            )
            return ApprovalOutcome(
                document_status=DocumentApprovalStatus.PENDING_APPROVAL,
                decided_level=step.level,
                next_level=next_step.level,
                next_role=next_step.approver_role,
            )

        await documents.update_fields(
            document_id,
            status=DocumentApprovalStatus.APPROVED.value,
            approved_by_id=user_id,
            approved_date=now,
        )
        await self.audit.record(
            table_name=document_type,
            record_id=document_id,
            action="update",
            new_values={"status": DocumentApprovalStatus.APPROVED.value, "finalLevel": step.level},
            performed_by_id=user_id,
        )
        document = await documents.get(document_id)
        await self.notifier.notify_user(
            getattr(document, "created_by_id", None),
            title=f"{label} Approved",
            body=f"Your {label} has been fully approved.",
            document_type=document_type,
            document_id=document_id,
        )
        logger.info("[Approval] %s %s fully approved at level %d", document_type, document_id, step.level)
        return ApprovalOutcome(
            document_status=DocumentApprovalStatus.APPROVED,
            decided_level=step.level,
        )

    async def _reject(
        self,
        documents: DocumentRepository,
        document_type: str,
        document_id: str,
        step: ApprovalStep,
        user_id: str,
        comments: str | None,
    ) -> ApprovalOutcome:
        now = self._clock()
        reason = comments or DEFAULT_REJECTION_REASON
        await self._decide(step, ApprovalStepStatus.REJECTED, user_id, reason, now)
        skipped = await self.steps.skip_pending_after(document_type, document_id, step.level)

        await documents.update_fields(
            document_id,
            status=DocumentApprovalStatus.REJECTED.value,
            rejection_reason=reason,
        )
        await self.audit.record(
            table_name=document_type,
            record_id=document_id,
            action="update",
            new_values={
                "status": DocumentApprovalStatus.REJECTED.value,
                "rejectedAtLevel": step.level,
                "reason": reason,
            },
            performed_by_id=user_id,
        )

        label = document_label(document_type)
        document = await documents.get(document_id)
        body = f"Your {label} was rejected at Level {step.level}."
        if comments:
            body += f" Reason: {comments}"
        await self.notifier.notify_user(
            getattr(document, "created_by_id", None),
            title=f"{label} Rejected",
            body=body,
            document_type=document_type,
            document_id=document_id,
        )
        logger.info(
            "[Approval] %s %s rejected at level %d (%d later level(s) skipped)",
            document_type,
            document_id,
            step.level,
            skipped,
        )
        return ApprovalOutcome(
            document_status=DocumentApprovalStatus.REJECTED,
            decided_level=step.level,
            skipped_levels=skipped,
        )

    async def get_approval_steps(self, document_type: str, document_id: str) -> list[ApprovalStep]:
        """Full approval history of a document, ordered by level."""
        return await self.steps.list_for_document(document_type, document_id, with_approver=True)

    async def get_pending_approvals_for_user(self, user_id: str) -> list[ApprovalStep]:
        """Current steps the user may decide right now.

        Admins see every document's current step. Others see those whose
        role they hold directly or through an active delegation.
        """
        user = await self.employees.get(user_id)
        if user is None or not user.is_active:
            return []

        current: dict[tuple[str, str], ApprovalStep] = {}
        for step in await self.steps.list_pending():
            key = (step.document_type, step.document_id)
            if key not in current or step.level < current[key].level:
                current[key] = step

        if user.system_role == ADMIN_ROLE:
            return list(current.values())

        delegated = await self.delegations.delegated_roles(user_id, self._clock().date())

        def can_decide(step: ApprovalStep) -> bool:
            if step.approver_role == user.system_role:
                return True
            return any(
                role == step.approver_role and scope in (DELEGATION_SCOPE_ALL, step.document_type)
                for role, scope in delegated
            )

        return [step for step in current.values() if can_decide(step)]


async def get_approval_chain(document_type: str, amount: Decimal | int | float) -> list[ApprovalLevel]:
    from flowline.storage import get_session

    async with get_session() as session:
        return await ApprovalService(session).get_approval_chain(document_type, amount)


async def submit_for_approval(
    document_type: str,
    document_id: str,
    amount: Decimal | int | float,
    submitted_by_id: str,
) -> ApprovalLevel:
    """Submit in a single transaction."""
    from flowline.storage import get_committing_session

    async with get_committing_session() as session:
        return await ApprovalService(session).submit_for_approval(
            document_type, document_id, amount, submitted_by_id
        )


async def process_approval(
    document_type: str,
    document_id: str,
    action: ApprovalAction | str,
    processed_by_id: str,
    comments: str | None = None,
) -> ApprovalOutcome:
    """Decide the current step in a single transaction."""
    from flowline.storage import get_committing_session

    async with get_committing_session() as session:
        return await ApprovalService(session).process_approval(
            document_type, document_id, action, processed_by_id, comments
        )


async def get_approval_steps(document_type: str, document_id: str) -> list[ApprovalStep]:
    from flowline.storage import get_session

    async with get_session() as session:
        return await ApprovalService(session).get_approval_steps(document_type, document_id)


async def get_pending_approvals_for_user(user_id: str) -> list[ApprovalStep]:
    from flowline.storage import get_session

    async with get_session() as session:
        return await ApprovalService(session).get_pending_approvals_for_user(user_id)
