"""Database entity models.

All SQLAlchemy ORM models for Flowline.
"""

# Workflows and scheduled rules
from flowline.storage.entities.workflow import Workflow, WorkflowExecutionLog, WorkflowRule

# People
from flowline.storage.entities.employee import (
    ADMIN_ROLE,
    DELEGATION_SCOPE_ALL,
    DelegationRule,
    Employee,
)

# Approvals
from flowline.storage.entities.approval import ApprovalStep, ApprovalStepStatus, ApprovalWorkflow

# Action side effects
from flowline.storage.entities.audit import AuditLog
from flowline.storage.entities.notification import EmailLog, EmailTemplate, Notification, Task

# Master data and stock
from flowline.storage.entities.inventory import (
    DocumentCounter,
    InventoryLevel,
    Item,
    Project,
    Warehouse,
)

# Documents
from flowline.storage.entities.documents import (
    DocumentMixin,
    GatePass,
    GatePassItem,
    Imsf,
    ImsfLine,
    JobOrder,
    MaterialRequisition,
    Mirv,
    MirvLine,
    Mrrv,
    Mrv,
    OsdReport,
    Rfim,
    Shipment,
    StockTransfer,
    StockTransferLine,
)

__all__ = [
    # Workflows
    "Workflow",
    "WorkflowExecutionLog",
    "WorkflowRule",
    # People
    "ADMIN_ROLE",
    "DELEGATION_SCOPE_ALL",
    "DelegationRule",
    "Employee",
    # Approvals
    "ApprovalStep",
    "ApprovalStepStatus",
    "ApprovalWorkflow",
    # Side effects
    "AuditLog",
    "EmailLog",
    "EmailTemplate",
    "Notification",
    "Task",
    # Master data
    "DocumentCounter",
    "InventoryLevel",
    "Item",
    "Project",
    "Warehouse",
    # Documents
    "DocumentMixin",
    "GatePass",
    "GatePassItem",
    "Imsf",
    "ImsfLine",
    "JobOrder",
    "MaterialRequisition",
    "Mirv",
    "MirvLine",
    "Mrrv",
    "Mrv",
    "OsdReport",
    "Rfim",
    "Shipment",
    "StockTransfer",
    "StockTransferLine",
]
