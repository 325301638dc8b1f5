"""SLA breach detection for documents awaiting approval."""

import logging
from datetime import UTC, datetime, timedelta

logger = logging.getLogger(__name__)

SLA_BREACH_TITLE = "SLA Breached"
SLA_BREACH_TYPE = "sla_breach"


async def check_sla_breaches(now: datetime | None = None) -> int:
    """Alert admins and current approvers about overdue approvals.

    A document is overdue when it is ``pending_approval`` and its
    ``sla_due_date`` has passed. Documents alerted within the renotify
    window are skipped. Errors are logged, never raised.

    Returns:
        Number of documents alerted.
    """
    from flowline.dal.approvals import ApprovalStepRepository
    from flowline.dal.documents import DOCUMENT_LABELS, DOCUMENT_MODELS, DocumentRepository
    from flowline.dal.employees import EmployeeRepository
    from flowline.dal.notifications import NotificationRepository
    from flowline.settings import get_settings
    from flowline.storage import get_committing_session
    from flowline.storage.entities import ADMIN_ROLE

    now = now or datetime.now(UTC)
    since = now - timedelta(minutes=get_settings().sla_breach_renotify_minutes)
    alerted = 0

    try:
        async with get_committing_session() as session:
            steps = ApprovalStepRepository(session)
            employees = EmployeeRepository(session)
            notifications = NotificationRepository(session)

            for document_type, model in DOCUMENT_MODELS.items():
                label = DOCUMENT_LABELS[document_type]
                for doc in await DocumentRepository(session, model).list_overdue(now):
                    if await notifications.exists_since(
                        document_type.value, doc.id, SLA_BREACH_TITLE, since
                    ):
                        continue

                    step = await steps.current_pending(document_type.value, doc.id)
                    if step is None:
                        continue

                    recipients: dict[str, None] = {}
                    for role in (ADMIN_ROLE, step.approver_role):
                        for employee in await employees.list_active_by_role(role):
                            recipients[employee.id] = None

                    for recipient_id in recipients:
                        await notifications.create(
                            recipient_id=recipient_id,
                            title=f"{SLA_BREACH_TITLE}: {label}",
                            body=(
                                f"{label} {doc.id} has exceeded its SLA deadline. "
                                f"Requires {step.approver_role} approval."
                            ),
                            notification_type=SLA_BREACH_TYPE,
                            reference_table=document_type.value,
                            reference_id=doc.id,
                        )

                    logger.warning(
                        "[SLA] Breach: %s %s (approver: %s)",
                        label,
                        doc.id,
                        step.approver_role,
                    )
                    alerted += 1
    except Exception as e:
        logger.error("[SLA] SLA check failed: %s", e)
        return 0

    return alerted
