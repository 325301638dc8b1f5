"""Multi-level approval chains with SLA deadlines and delegation."""

from flowline.approvals.service import (
    ApprovalAction,
    ApprovalLevel,
    ApprovalOutcome,
    ApprovalService,
    DocumentApprovalStatus,
    get_approval_chain,
    get_approval_steps,
    get_pending_approvals_for_user,
    process_approval,
    submit_for_approval,
)

__all__ = [
    "ApprovalAction",
    "ApprovalLevel",
    "ApprovalOutcome",
    "ApprovalService",
    "DocumentApprovalStatus",
    "get_approval_chain",
    "get_approval_steps",
    "get_pending_approvals_for_user",
    "process_approval",
    "submit_for_approval",
]
