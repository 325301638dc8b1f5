"""change_status handler."""

import logging
from typing import Any

from flowline.events import SystemEvent
from flowline.exceptions import InvalidTransitionError, ValidationError

logger = logging.getLogger(__name__)


def current_status_from(event: SystemEvent) -> str | None:
    """Status carried by the event: payload.newValues.status, else payload.status."""
    new_values = event.payload.get("newValues")
    if isinstance(new_values, dict) and new_values.get("status"):
        return new_values["status"]
    return event.payload.get("status") or None


async def change_status(params: dict[str, Any], event: SystemEvent) -> None:
    """Move the event's document to ``targetStatus``.

    The transition is checked only when the event carries a current status.
    """
    target_status = params.get("targetStatus")
    if not target_status:
        raise ValidationError("change_status requires targetStatus")

    from flowline.dal.documents import DOCUMENT_MODELS, DocumentRepository, resolve_document_type
    from flowline.services.transitions import can_transition

    document_type = resolve_document_type(event.entity_type)

    current = current_status_from(event)
    if current and not can_transition(document_type, current, target_status):
        raise InvalidTransitionError(event.entity_type, current, target_status)

    from flowline.storage import get_committing_session

    async with get_committing_session() as session:
        repo = DocumentRepository(session, DOCUMENT_MODELS[document_type])
        await repo.update_status(event.entity_id, target_status)

    logger.info(
        "[Action:change_status] %s:%s -> %s",
        event.entity_type,
        event.entity_id,
        target_status,
    )
