"""Best-effort in-app notifications for approval events.

Notifications are written inside a savepoint so a failure here never
rolls back the approval decision itself.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from flowline.dal.employees import EmployeeRepository
from flowline.dal.notifications import NotificationRepository

logger = logging.getLogger(__name__)

APPROVAL_NOTIFICATION_TYPE = "approval"


class ApprovalNotifier:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def notify_role(
        self,
        role: str,
        title: str,
        body: str,
        document_type: str,
        document_id: str,
    ) -> int:
        """Notify every active employee holding ``role``.

        Returns:
            Number of notifications written (0 on failure).
        """
        try:
            async with self.session.begin_nested():
                employees = await EmployeeRepository(self.session).list_active_by_role(role)
                repo = NotificationRepository(self.session)
                for employee in employees:
                    await repo.create(
                        recipient_id=employee.id,
                        title=title,
                        body=body,
                        notification_type=APPROVAL_NOTIFICATION_TYPE,
                        reference_table=document_type,
                        reference_id=document_id,
                    )
            return len(employees)
        except Exception as e:
            logger.warning("[Approval] Failed to notify role %s: %s", role, e)
            return 0

    async def notify_user(
        self,
        user_id: str | None,
        title: str,
        body: str,
        document_type: str,
        document_id: str,
    ) -> bool:
        """Notify one employee, typically the document's submitter."""
        if not user_id:
            return False
        try:
            async with self.session.begin_nested():
                await NotificationRepository(self.session).create(
                    recipient_id=user_id,
                    title=title,
                    body=body,
                    notification_type=APPROVAL_NOTIFICATION_TYPE,
                    reference_table=document_type,
                    reference_id=document_id,
                )
            return True
        except Exception as e:
            logger.warning("[Approval] Failed to notify user %s: %s", user_id, e)
            return False
