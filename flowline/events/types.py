"""System events consumed by workflow actions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SCHEDULED_RULE_TRIGGERED = "scheduled:rule_triggered"
SCHEDULED_EXECUTION = "scheduled_execution"


class SystemEvent(BaseModel):
    """A domain event: something happened to one document.

    Action params and condition field paths address the event through
    its wire form (see :meth:`to_dict`), which uses camelCase keys.
    Parse a wire dict with ``SystemEvent.model_validate``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str
    entity_type: str = Field(alias="entityType")
    entity_id: str = Field(alias="entityId")
    action: str
    performed_by_id: str | None = Field(default=None, alias="performedById")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the event, as sent to webhooks and matched by conditions."""
        exclude = {"performed_by_id"} if self.performed_by_id is None else None
        return self.model_dump(by_alias=True, mode="json", exclude=exclude)


def scheduled_rule_event(
    entity_type: str,
    rule_id: str,
    rule_name: str,
    cron_expression: str,
    now: datetime,
) -> SystemEvent:
    """Synthesize the event a scheduled rule runs its actions against."""
    return SystemEvent(
        type=SCHEDULED_RULE_TRIGGERED,
        entity_type=entity_type,
        entity_id=rule_id,
        action=SCHEDULED_EXECUTION,
        timestamp=now,
        payload={"ruleName": rule_name, "cronExpression": cron_expression},
    )
