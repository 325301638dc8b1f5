"""assign_task handler."""

import logging
from datetime import datetime
from typing import Any

from flowline.events import SystemEvent
from flowline.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _parse_due_date(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"assign_task dueDate is not an ISO date: {value!r}") from None


async def assign_task(params: dict[str, Any], event: SystemEvent) -> None:
    """Create an open task.

    Params: title?, assigneeId?, assigneeRole?, priority?, dueDate?
    Without ``assigneeId`` the first active employee of ``assigneeRole``
    is used.
    """
    title = params.get("title") or f"Follow up on {event.entity_type} {event.entity_id}"
    priority = params.get("priority") or "medium"
    due_date = _parse_due_date(params.get("dueDate"))

    from flowline.dal.employees import EmployeeRepository
    from flowline.dal.notifications import TaskRepository
    from flowline.storage import get_committing_session

    async with get_committing_session() as session:
        assignee_id = params.get("assigneeId")
        if not assignee_id and params.get("assigneeRole"):
            employee = await EmployeeRepository(session).first_active_by_role(params["assigneeRole"])
            assignee_id = employee.id if employee is not None else None

        await TaskRepository(session).create(
            title=title,
            description=f"Auto-created by workflow rule for {event.entity_type}:{event.entity_id}",
            assignee_id=assignee_id,
            created_by_id=event.performed_by_id or assignee_id or "",
            priority=priority,
            due_date=due_date,
            reference_table=event.entity_type,
            reference_id=event.entity_id,
        )

    logger.info('[Action:assign_task] Created task: "%s"', title)
