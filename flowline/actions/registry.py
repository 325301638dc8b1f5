"""Action dispatcher.

Maps the closed set of action types to their handlers. The dispatcher
adds no error handling: callers decide whether a failure is isolated
(scheduled rule runner) or propagated (conditional_branch).
"""

from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from flowline.actions.branch import conditional_branch
from flowline.actions.follow_up import create_follow_up
from flowline.actions.notify import create_notification, send_email
from flowline.actions.status import change_status
from flowline.actions.stock import reserve_stock
from flowline.actions.tasks import assign_task
from flowline.actions.webhook import webhook
from flowline.events import SystemEvent
from flowline.exceptions import UnknownActionError

ActionHandler = Callable[[dict[str, Any], SystemEvent], Awaitable[None]]


class ActionType(StrEnum):
    """Every action a workflow rule can run."""

    SEND_EMAIL = "send_email"
    CREATE_NOTIFICATION = "create_notification"
    CHANGE_STATUS = "change_status"
    CREATE_FOLLOW_UP = "create_follow_up"
    RESERVE_STOCK = "reserve_stock"
    ASSIGN_TASK = "assign_task"
    WEBHOOK = "webhook"
    CONDITIONAL_BRANCH = "conditional_branch"


ACTION_HANDLERS: dict[ActionType, ActionHandler] = {
    ActionType.SEND_EMAIL: send_email,
    ActionType.CREATE_NOTIFICATION: create_notification,
    ActionType.CHANGE_STATUS: change_status,
    ActionType.CREATE_FOLLOW_UP: create_follow_up,
    ActionType.RESERVE_STOCK: reserve_stock,
    ActionType.ASSIGN_TASK: assign_task,
    ActionType.WEBHOOK: webhook,
    ActionType.CONDITIONAL_BRANCH: conditional_branch,
}


def get_handler(action_type: str) -> ActionHandler:
    """Look up a handler.

    Raises:
        UnknownActionError: If the type is not registered.
    """
    try:
        return ACTION_HANDLERS[ActionType(action_type)]
    except ValueError:
        raise UnknownActionError(action_type) from None


async def execute_actions(action_type: str, params: dict[str, Any], event: SystemEvent) -> None:
    """Run one action against an event."""
    handler = get_handler(action_type)
    await handler(params, event)
