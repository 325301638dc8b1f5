"""send_email and create_notification handlers."""

import logging
from typing import Any

from flowline.events import SystemEvent
from flowline.exceptions import ValidationError

logger = logging.getLogger(__name__)


async def send_email(params: dict[str, Any], event: SystemEvent) -> None:
    """Queue a templated email.

    Params: templateCode, to, variables?, referenceTable?, referenceId?
    ``to`` may be an address or ``role:<role>``.
    """
    template_code = params.get("templateCode")
    to = params.get("to")
    if not template_code or not to:
        raise ValidationError("send_email requires templateCode and to")

    variables: dict[str, Any] = {
        **event.payload,
        "entityType": event.entity_type,
        "entityId": event.entity_id,
        "action": event.action,
        "timestamp": event.timestamp.isoformat(),
        **(params.get("variables") or {}),
    }

    from flowline.services.email import queue_templated_email
    from flowline.storage import get_committing_session

    async with get_committing_session() as session:
        queued = await queue_templated_email(
            session,
            template_code=template_code,
            to=to,
            variables=variables,
            reference_table=params.get("referenceTable") or event.entity_type,
            reference_id=params.get("referenceId") or event.entity_id,
        )

    logger.info(
        "[Action:send_email] Queued %d email(s) using template '%s' to '%s'",
        queued,
        template_code,
        to,
    )


async def create_notification(params: dict[str, Any], event: SystemEvent) -> None:
    """Create one notification per recipient.

    Params: title?, body?, recipientId?, recipientRole?, notificationType?
    ``recipientId`` wins over ``recipientRole``; no recipients is not an error.
    """
    title = params.get("title") or f"{event.entity_type} {event.action}"
    body = params.get("body")
    notification_type = params.get("notificationType") or "workflow"
    recipient_id = params.get("recipientId")
    recipient_role = params.get("recipientRole")

    from flowline.dal.employees import EmployeeRepository
    from flowline.dal.notifications import NotificationRepository
    from flowline.storage import get_committing_session

    async with get_committing_session() as session:
        recipients: list[str] = []
        if recipient_id:
            recipients = [recipient_id]
        elif recipient_role:
            employees = await EmployeeRepository(session).list_active_by_role(recipient_role)
            recipients = [e.id for e in employees]

        repo = NotificationRepository(session)
        for rid in recipients:
            await repo.create(
                recipient_id=rid,
                title=title,
                body=body,
                notification_type=notification_type,
                reference_table=event.entity_type,
                reference_id=event.entity_id,
            )

    logger.info("[Action:create_notification] Created %d notification(s)", len(recipients))
