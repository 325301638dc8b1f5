"""conditional_branch handler."""

import json
import logging
from contextvars import ContextVar
from typing import Any

from flowline.actions.conditions import evaluate_condition, get_nested_value
from flowline.events import SystemEvent
from flowline.exceptions import ValidationError
from flowline.settings import get_settings

logger = logging.getLogger(__name__)

# Nesting level of the conditional_branch currently executing in this task
_branch_depth: ContextVar[int] = ContextVar("branch_depth", default=0)


def current_branch_depth() -> int:
    return _branch_depth.get()


async def conditional_branch(params: dict[str, Any], event: SystemEvent) -> None:
    """Evaluate ``condition`` against the event and run one action list.

    Params: condition {field, op, value}, trueActions?, falseActions?

    The chosen actions run in order through the dispatcher; the first
    failure stops the list and propagates.

    Raises:
        ValidationError: Missing condition, or nesting beyond max_branch_depth.
    """
    condition = params.get("condition")
    if not isinstance(condition, dict) or not condition.get("field"):
        raise ValidationError("conditional_branch requires a condition")

    depth = _branch_depth.get() + 1
    max_depth = get_settings().max_branch_depth
    if depth > max_depth:
        raise ValidationError(f"conditional_branch nesting exceeds maximum depth of {max_depth}")

    actual = get_nested_value(event.to_dict(), condition["field"])
    result = evaluate_condition(actual, condition.get("op", ""), condition.get("value"))
    actions = (params.get("trueActions") if result else params.get("falseActions")) or []

    logger.info(
        "[Action:conditional_branch] Condition %s %s %s -> %s (%d actions)",
        condition["field"],
        condition.get("op"),
        json.dumps(condition.get("value"), default=str),
        result,
        len(actions),
    )

    from flowline.actions.registry import execute_actions

    token = _branch_depth.set(depth)
    try:
        for action in actions:
            await execute_actions(action.get("type", ""), action.get("params") or {}, event)
    finally:
        _branch_depth.reset(token)
