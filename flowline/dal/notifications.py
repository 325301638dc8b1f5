"""Repositories for notifications, tasks and queued email."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flowline.storage.entities import EmailLog, EmailTemplate, Notification, Task


class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        recipient_id: str,
        title: str,
        body: str | None = None,
        notification_type: str = "workflow",
        reference_table: str | None = None,
        reference_id: str | None = None,
    ) -> Notification:
        """Create an unread notification."""
        notification = Notification(
            recipient_id=recipient_id,
            title=title,
            body=body,
            notification_type=notification_type,
            reference_table=reference_table,
            reference_id=reference_id,
        )
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def exists_since(
        self,
        reference_table: str,
        reference_id: str,
        title_contains: str,
        since: datetime,
    ) -> bool:
        """Whether a matching notification was created after ``since``."""
        stmt = (
            select(Notification.id)
            .where(Notification.reference_table == reference_table)
            .where(Notification.reference_id == reference_id)
            .where(Notification.title.contains(title_contains))
            .where(Notification.created_at > since)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None


class TaskRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        title: str,
        created_by_id: str,
        assignee_id: str | None = None,
        description: str | None = None,
        priority: str = "medium",
        due_date: datetime | None = None,
        reference_table: str | None = None,
        reference_id: str | None = None,
    ) -> Task:
        """Create an open task."""
        task = Task(
            title=title,
            description=description,
            assignee_id=assignee_id,
            created_by_id=created_by_id,
            status="open",
            priority=priority,
            due_date=due_date,
            reference_table=reference_table,
            reference_id=reference_id,
        )
        self.session.add(task)
        await self.session.flush()
        return task


class EmailRepository:
    """Email templates and the outgoing email queue."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_template(self, code: str) -> EmailTemplate | None:
        """Template by its code, regardless of active flag."""
        result = await self.session.execute(select(EmailTemplate).where(EmailTemplate.code == code))
        return result.scalar_one_or_none()

    async def queue(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        template_id: str | None = None,
        reference_table: str | None = None,
        reference_id: str | None = None,
    ) -> EmailLog:
        """Add a queued email row for the mail worker."""
        entry = EmailLog(
            template_id=template_id,
            to_email=to_email,
            subject=subject,
            body_html=body_html,
            status="queued",
            reference_table=reference_table,
            reference_id=reference_id,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry
