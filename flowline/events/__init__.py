"""Event types shared by the action dispatcher and the scheduled rule runner."""

from flowline.events.types import (
    SCHEDULED_EXECUTION,
    SCHEDULED_RULE_TRIGGERED,
    SystemEvent,
    scheduled_rule_event,
)

__all__ = [
    "SCHEDULED_EXECUTION",
    "SCHEDULED_RULE_TRIGGERED",
    "SystemEvent",
    "scheduled_rule_event",
]
