"""Data access layer: repositories over an AsyncSession.

Repositories only flush; committing is the caller's job.
"""

from flowline.dal.approvals import ApprovalStepRepository, ApprovalWorkflowRepository
from flowline.dal.audit import AuditRepository
from flowline.dal.documents import (
    DOCUMENT_LABELS,
    DOCUMENT_MODELS,
    DocumentRepository,
    DocumentType,
    document_label,
    get_document_repository,
    resolve_document_type,
)
from flowline.dal.employees import DelegationRepository, EmployeeRepository
from flowline.dal.follow_ups import FollowUpRepository
from flowline.dal.inventory import DocumentCounterRepository, InventoryRepository
from flowline.dal.notifications import EmailRepository, NotificationRepository, TaskRepository
from flowline.dal.workflow_rules import ExecutionLogRepository, WorkflowRuleRepository

__all__ = [
    "DOCUMENT_LABELS",
    "DOCUMENT_MODELS",
    "ApprovalStepRepository",
    "ApprovalWorkflowRepository",
    "AuditRepository",
    "DelegationRepository",
    "DocumentCounterRepository",
    "DocumentRepository",
    "DocumentType",
    "EmailRepository",
    "EmployeeRepository",
    "ExecutionLogRepository",
    "FollowUpRepository",
    "InventoryRepository",
    "NotificationRepository",
    "TaskRepository",
    "WorkflowRuleRepository",
    "document_label",
    "get_document_repository",
    "resolve_document_type",
]
